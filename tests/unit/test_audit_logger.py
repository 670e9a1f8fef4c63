"""Tests for the audit logger."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from whatsfact.audit.logger import AuditLogger
from whatsfact.models import AuditEvent, AuditEventType, RiskLevel


def _make_event(**kwargs: object) -> AuditEvent:
    defaults: dict[str, object] = {
        "event_type": AuditEventType.MESSAGE_PROCESSED,
        "sender": "whatsapp:+15550001111",
        "action": "fact_check",
        "result": "success",
        "risk_level": RiskLevel.INFO,
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)  # type: ignore[arg-type]


def test_log_appends_json_line(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file))
    logger.log(_make_event(details={"input_kind": "text"}))

    lines = log_file.read_text().strip().split("\n")
    assert len(lines) == 1
    parsed = json.loads(lines[0])
    assert parsed["event_type"] == "message_processed"
    assert parsed["risk_level"] == "info"
    assert parsed["details"] == {"input_kind": "text"}


def test_log_multiple_events_append(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file))

    for i in range(3):
        logger.log(_make_event(action=f"action_{i}"))

    lines = log_file.read_text().strip().split("\n")
    assert [json.loads(line)["action"] for line in lines] == ["action_0", "action_1", "action_2"]


def test_log_creates_file_if_missing(tmp_path: Path) -> None:
    log_file = tmp_path / "subdir" / "audit.jsonl"
    assert not log_file.exists()

    AuditLogger(log_path=str(log_file)).log(_make_event())

    assert log_file.exists()


def test_none_fields_are_omitted(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(_make_event(sender=None))

    parsed = json.loads(log_file.read_text())
    assert "sender" not in parsed
    assert "details" not in parsed


def test_timestamps_are_iso8601(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(_make_event())

    parsed = json.loads(log_file.read_text())
    assert datetime.fromisoformat(parsed["timestamp"]).tzinfo is not None


def test_rotation_moves_full_log_to_backup(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file), max_bytes=200, backup_count=2)

    for i in range(10):
        logger.log(_make_event(action=f"action_{i}"))

    assert log_file.exists()
    assert (tmp_path / "audit.jsonl.1").exists()
    assert not (tmp_path / "audit.jsonl.3").exists()
    last = json.loads(log_file.read_text().strip().split("\n")[-1])
    assert last["action"] == "action_9"


def test_from_env_reads_limits(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUDIT_LOG_MAX_BYTES", "1024")
    monkeypatch.setenv("AUDIT_LOG_BACKUP_COUNT", "3")
    logger = AuditLogger.from_env(str(tmp_path / "audit.jsonl"))
    assert logger._max_bytes == 1024
    assert logger._backup_count == 3
