"""
Health check endpoints for system monitoring.
"""

import time
from typing import Any, Dict

from fastapi import APIRouter, Request

from gemini_relay.core.config import Settings
from gemini_relay.core.credentials import describe_credentials

router = APIRouter()

# Track application start time for uptime calculation
_app_start_time = time.time()


def check_credentials(settings: Settings) -> Dict[str, Any]:
    """Report which authorization path dispatches will take."""
    mode, source = describe_credentials(settings)
    status = {"mode": mode}
    if source:
        status["source"] = source
    return status


def check_models(settings: Settings) -> Dict[str, Any]:
    """Report the ordered model candidates."""
    return {
        "primary": settings.models[0],
        "fallbacks": list(settings.models[1:]),
    }


def check_retry_policy(settings: Settings) -> Dict[str, Any]:
    """Report the retry policy constants."""
    policy = settings.retry
    return {
        "max_attempts": policy.max_attempts,
        "initial_delay_ms": policy.initial_delay_ms,
        "backoff_factor": policy.backoff_factor,
        "retryable_statuses": sorted(policy.retryable_statuses),
    }


@router.get("/health")
async def health_check():
    """Liveness check; always ok."""
    return {"ok": True}


@router.get("/health/detailed")
async def detailed_health_check(request: Request):
    """
    Configuration snapshot: credential mode, model candidates and retry policy.
    Makes no upstream calls.
    """
    settings: Settings = request.app.state.settings
    return {
        "ok": True,
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "uptime_seconds": int(time.time() - _app_start_time),
        "components": {
            "credentials": check_credentials(settings),
            "models": check_models(settings),
            "retry_policy": check_retry_policy(settings),
        },
    }
