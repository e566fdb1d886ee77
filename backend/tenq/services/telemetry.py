"""Per-request pipeline events.

Every instrumented endpoint emits one ``api_call`` event: route, target date
(when the request body names one), latency, and for failures the pipeline
error code and whether the operator may retry. Events are logged as one-line
JSON; with ENABLE_TELEMETRY_DB=1 they are also inserted into pipeline_events.
"""
import time
import json
import logging
import asyncio
import os
from typing import Optional
from functools import wraps

from tenq.core.errors import PipelineError

logger = logging.getLogger("tenq.telemetry")

EVENTS_TABLE = "pipeline_events"


def emit_event(event: str, *, route: str, target_date: Optional[str] = None,
               error_code: Optional[str] = None, retryable: Optional[bool] = None,
               latency_ms: Optional[int] = None, ok: Optional[bool] = None) -> dict:
    payload = {
        "event": event,
        "route": route,
        "target_date": target_date,
        "error_code": error_code,
        "retryable": retryable,
        "latency_ms": latency_ms,
        "ok": ok,
        "ts": time.time(),
    }
    logger.info("telemetry=%s", json.dumps(payload, separators=(",", ":")))

    if os.getenv("ENABLE_TELEMETRY_DB", "0") == "1":
        try:
            from tenq.core.deps import get_supabase_client
            row = {k: v for k, v in payload.items() if k != "ts"}
            get_supabase_client().table(EVENTS_TABLE).insert(row).execute()
        except Exception as e:
            # best-effort: a lost event must not fail the request
            logger.error("[telemetry.emit_event] %s", e, exc_info=True)
    return payload


def _target_date(kwargs: dict) -> Optional[str]:
    request = kwargs.get("request")
    return getattr(request, "target_date", None) or kwargs.get("date")


def instrument(route: str):
    def deco(fn):
        if not asyncio.iscoroutinefunction(fn):
            raise TypeError("instrument() wraps async endpoints only")

        @wraps(fn)
        async def wrapped(*args, **kwargs):
            t0 = time.time()
            ok = True
            code = None
            retryable = None
            try:
                return await fn(*args, **kwargs)
            except PipelineError as e:
                ok, code, retryable = False, e.code, e.retryable
                raise
            except Exception as e:
                ok, code = False, e.__class__.__name__
                raise
            finally:
                dt = int((time.time() - t0) * 1000)
                emit_event("api_call", route=route, target_date=_target_date(kwargs),
                           error_code=code, retryable=retryable, latency_ms=dt, ok=ok)
        return wrapped
    return deco
