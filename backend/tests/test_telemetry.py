"""Tests for telemetry.instrument — one api_call event per request."""
import asyncio
import json
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from tenq.core.errors import DateConflict
from tenq.services.telemetry import emit_event, instrument


class _Body:
    target_date = "2025-01-01"


def _events(caplog) -> list[dict]:
    return [
        json.loads(r.getMessage().split("telemetry=", 1)[1])
        for r in caplog.records
        if r.name == "tenq.telemetry"
    ]


class TestInstrument:
    def test_success_event(self, caplog):
        @instrument(route="/api/questions/upload")
        async def endpoint(request):
            return "ok"

        with caplog.at_level(logging.INFO, logger="tenq.telemetry"):
            assert asyncio.run(endpoint(request=_Body())) == "ok"
        event = _events(caplog)[0]
        assert event["route"] == "/api/questions/upload"
        assert event["target_date"] == "2025-01-01"
        assert event["ok"] is True
        assert event["error_code"] is None

    def test_pipeline_error_recorded(self, caplog):
        @instrument(route="/api/questions/upload")
        async def endpoint(request):
            raise DateConflict("2025-01-01", 10)

        with caplog.at_level(logging.INFO, logger="tenq.telemetry"):
            with pytest.raises(DateConflict):
                asyncio.run(endpoint(request=_Body()))
        event = _events(caplog)[0]
        assert event["ok"] is False
        assert event["error_code"] == "DATE_CONFLICT"
        assert event["retryable"] is True

    def test_other_error_uses_class_name(self, caplog):
        @instrument(route="/x")
        async def endpoint():
            raise KeyError("k")

        with caplog.at_level(logging.INFO, logger="tenq.telemetry"):
            with pytest.raises(KeyError):
                asyncio.run(endpoint())
        assert _events(caplog)[0]["error_code"] == "KeyError"

    def test_sync_function_rejected(self):
        with pytest.raises(TypeError):
            instrument(route="/x")(lambda: None)


def test_emit_event_without_db(monkeypatch):
    monkeypatch.delenv("ENABLE_TELEMETRY_DB", raising=False)
    payload = emit_event("api_call", route="/x", ok=True)
    assert payload["route"] == "/x"
    assert payload["ok"] is True
