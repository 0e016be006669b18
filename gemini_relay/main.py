# Load environment variables from .env file FIRST, before settings are read
from dotenv import load_dotenv
load_dotenv()

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from gemini_relay import __version__
from gemini_relay.core.config import Settings, load_settings
from gemini_relay.core.credentials import (
    CredentialResolver,
    stage_service_account_credentials,
)
from gemini_relay.core.error_formatters import format_request_error
from gemini_relay.core.logging import configure_logging
from gemini_relay.core.startup_validation import StartupValidationError, validate_startup
from gemini_relay.middleware.body_limit import BodySizeLimitMiddleware
from gemini_relay.middleware.logging_middleware import LoggingMiddleware
from gemini_relay.routers.generate import router as generate_router
from gemini_relay.routers.health import router as health_router
from gemini_relay.routing.dispatcher import RetryingDispatcher

logger = logging.getLogger("gemini_relay")


def create_app(
    settings: Optional[Settings] = None,
    dispatcher: Optional[RetryingDispatcher] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Relay settings; read from the environment if not provided
        dispatcher: Prebuilt dispatcher; built from settings if not provided

    Returns:
        Configured FastAPI app
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    # Stage service-account JSON before anything resolves credentials
    staged_path = stage_service_account_credentials(settings)
    if staged_path:
        settings = settings.model_copy(update={"credentials_path": staged_path})

    try:
        validate_startup(settings)
    except StartupValidationError as e:
        logger.error(str(e))
        if settings.fail_on_startup_validation:
            raise

    if dispatcher is None:
        dispatcher = RetryingDispatcher(settings, resolver=CredentialResolver(settings))

    app = FastAPI(
        title="Gemini Relay",
        description="Prompt relay to the Gemini API with retries and model fallback",
        version=__version__,
    )
    app.state.settings = settings
    app.state.dispatcher = dispatcher

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=format_request_error(exc.errors()))

    # Add body limit first so it sits innermost, behind CORS and logging
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    # Add logging middleware (sets request_id)
    app.add_middleware(LoggingMiddleware)

    # Add CORS middleware (last - outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(generate_router)
    app.include_router(health_router)

    return app


app = create_app()
