"""
Generate router.
Provides POST /api/generate, relaying a prompt to Gemini with retries and
model fallback.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from gemini_relay.core.error_formatters import (
    create_error_response,
    format_validation_error,
)
from gemini_relay.routing.dispatcher import RetryingDispatcher
from gemini_relay.routing.errors import UpstreamError, ValidationError
from gemini_relay.routing.models import GenerateRequestBody

logger = logging.getLogger("generate_router")

router = APIRouter()


def get_dispatcher(request: Request) -> RetryingDispatcher:
    """Dispatcher built once at startup and stored on app state."""
    return request.app.state.dispatcher


@router.post("/api/generate")
async def generate(
    body: Optional[GenerateRequestBody] = None,
    dispatcher: RetryingDispatcher = Depends(get_dispatcher),
):
    """
    Relay a prompt upstream.

    Returns ``{"text", "raw"}`` on success, 400 for a missing prompt, 502 when
    every model failed and 500 for anything else.
    """
    try:
        result = await dispatcher.generate(body.prompt if body else None)
    except ValidationError as e:
        return JSONResponse(status_code=400, content=format_validation_error(str(e)))
    except UpstreamError as e:
        logger.warning(f"All models failed, last status {e.status} from {e.model}")
        return create_error_response(e)
    except Exception as e:
        logger.exception(f"Server error: {e}")
        return create_error_response(e)

    return JSONResponse(
        content={"raw": result.raw, "text": result.text},
        headers={"X-Gemini-Model": result.model},
    )
