"""
Startup validation for ensuring the relay is properly configured.
"""
import logging
import os
from typing import List, Tuple

from gemini_relay.core.config import Settings

logger = logging.getLogger("startup_validation")


class StartupValidationError(Exception):
    """Raised when startup validation fails."""
    pass


def validate_credentials(settings: Settings) -> Tuple[bool, str]:
    """
    Validate that some authorization source is configured.

    Application Default Credentials may still work without explicit
    configuration, so a miss here is a warning, not an error.

    Returns:
        Tuple of (is_valid, message)
    """
    if settings.google_api_key:
        return True, ""

    if settings.credentials_path:
        if not os.path.isfile(settings.credentials_path):
            return False, f"Service account file not found: {settings.credentials_path}"
        return True, ""

    return False, (
        "Neither GOOGLE_API_KEY nor a service account is configured; "
        "falling back to Application Default Credentials"
    )


def validate_models(settings: Settings) -> Tuple[bool, str]:
    """
    Validate the model candidate list.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not settings.models:
        return False, "No model candidates configured"
    if len(set(settings.models)) != len(settings.models):
        return False, f"Duplicate model candidates: {', '.join(settings.models)}"
    return True, ""


def validate_startup(settings: Settings) -> List[str]:
    """
    Perform all startup validations.

    Returns:
        Warnings that did not block startup

    Raises:
        StartupValidationError: If any critical validation fails
    """
    errors = []
    warnings = []

    creds_valid, creds_message = validate_credentials(settings)
    if not creds_valid:
        warnings.append(f"Credentials: {creds_message}")

    models_valid, models_error = validate_models(settings)
    if not models_valid:
        errors.append(f"Model Config: {models_error}")

    for warning in warnings:
        logger.warning(warning)

    if errors:
        error_msg = "Startup validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise StartupValidationError(error_msg)

    return warnings
