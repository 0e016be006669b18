"""
Error formatters for the relay's JSON error bodies.

Callers always receive a JSON object; the shapes below are the whole
outward error contract.
"""

from typing import Any, Dict, Sequence

from fastapi.responses import JSONResponse

from gemini_relay.routing.errors import UpstreamError


def format_validation_error(message: str) -> Dict[str, Any]:
    """Client fault, e.g. a missing prompt."""
    return {"error": message}


def format_request_error(errors: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Request body that failed JSON parsing or model validation.

    Only the first problem is reported, as ``<loc>: <msg>``.
    """
    first = errors[0] if errors else {}
    field = ".".join(str(loc) for loc in first.get("loc", ()))
    message = first.get("msg", "Validation failed")
    details = f"{field}: {message}" if field else message
    return {"error": "invalid request", "details": details}


def format_upstream_error(status: int, body: str) -> Dict[str, Any]:
    """
    Every model candidate failed.

    Args:
        status: HTTP status of the last model's final response
        body: Raw body text of that response
    """
    return {"error": "upstream error", "status": status, "body": body}


def format_internal_error(details: str) -> Dict[str, Any]:
    """Anything uncaught: transport exhaustion, credentials, bad upstream JSON."""
    return {"error": "internal error", "details": details}


def create_error_response(exc: Exception) -> JSONResponse:
    """
    Map an exception raised by the dispatcher to its HTTP response.

    UpstreamError becomes 502 with the upstream status and body; everything
    else becomes a generic 500.
    """
    if isinstance(exc, UpstreamError):
        return JSONResponse(
            status_code=502, content=format_upstream_error(exc.status, exc.body)
        )
    return JSONResponse(status_code=500, content=format_internal_error(str(exc)))
