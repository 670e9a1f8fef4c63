"""Click CLI for running and inspecting the fact-check pipeline."""

from __future__ import annotations

import asyncio
from typing import IO

import click

from whatsfact.config import Settings
from whatsfact.sanitizer.sanitizer import AnswerSanitizer
from whatsfact.webhook.models import InboundEvent


@click.group()
def cli() -> None:
    """WhatsApp fact-check webhook tools."""


@cli.command()
@click.argument("text")
def check(text: str) -> None:
    """Fact-check TEXT with the configured providers and print the reply."""
    from whatsfact.server.app import build_pipeline

    pipeline = build_pipeline(Settings.from_env())
    outcome = asyncio.run(pipeline.process(InboundEvent(raw_text=text)))
    click.echo(outcome.payload.text)
    if outcome.payload.media_url:
        click.echo(f"Audio: {outcome.payload.media_url}")


@cli.command()
@click.argument("answer_file", type=click.File("r"))
@click.option("--max-length", default=1600, show_default=True, help="Reply length ceiling.")
def sanitize(answer_file: IO[str], max_length: int) -> None:
    """Print the WhatsApp-safe, bounded form of a raw provider answer."""
    sanitizer = AnswerSanitizer(max_length=max_length)
    click.echo(sanitizer.sanitize(answer_file.read()))


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=3000, show_default=True, type=int)
def serve(host: str, port: int) -> None:
    """Run the webhook server under uvicorn."""
    import uvicorn

    uvicorn.run("whatsfact.server.app:create_app_from_env", factory=True, host=host, port=port)
