"""External provider adapters for whatsfact.

Each capability is a small protocol so alternate providers or test doubles
can be swapped in without touching pipeline logic:
- Transcriber (speech-to-text)
- VisionAnnotator (OCR, labels, localized objects)
- ContentExtractor (URL content)
- RiskScorer (URL risk)
- Reasoner (answer generation)
- Synthesizer (text-to-speech)
"""

from whatsfact.providers.base import (
    ContentExtractor,
    ProviderError,
    ProviderResult,
    Reasoner,
    RiskScorer,
    Synthesizer,
    Transcriber,
    VisionAnnotator,
    first_success,
)
from whatsfact.providers.content import SupadataExtractor
from whatsfact.providers.reasoning import PerplexityReasoner
from whatsfact.providers.risk import RISK_UNAVAILABLE, ScamMinderScorer
from whatsfact.providers.speech import ElevenLabsSynthesizer, OpenAISynthesizer
from whatsfact.providers.transcription import DeepgramTranscriber
from whatsfact.providers.vision import GoogleVisionAnnotator

__all__ = [
    "RISK_UNAVAILABLE",
    "ContentExtractor",
    "DeepgramTranscriber",
    "ElevenLabsSynthesizer",
    "GoogleVisionAnnotator",
    "OpenAISynthesizer",
    "PerplexityReasoner",
    "ProviderError",
    "ProviderResult",
    "Reasoner",
    "RiskScorer",
    "ScamMinderScorer",
    "SupadataExtractor",
    "Synthesizer",
    "Transcriber",
    "VisionAnnotator",
    "first_success",
]
