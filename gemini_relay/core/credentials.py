"""
Credential resolution for upstream calls.

A dispatch is authorized either with a static API key (sent as the ``key``
query parameter) or with a bearer token minted from a service account. The
API key always wins when configured; tokens are fetched fresh on every
resolve and never cached.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Literal, Optional, Tuple, Union

import google.auth
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from pydantic import BaseModel, ConfigDict, Field

from gemini_relay.core.config import CLOUD_PLATFORM_SCOPE, Settings
from gemini_relay.routing.errors import CredentialError

logger = logging.getLogger("credentials")


class APIKey(BaseModel):
    """Static key appended to the request URL."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["api_key"] = "api_key"
    value: str = Field(..., min_length=1)

    def apply(self, params: Dict[str, str], headers: Dict[str, str]) -> None:
        params["key"] = self.value


class BearerToken(BaseModel):
    """Short-lived token sent in the Authorization header."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bearer_token"] = "bearer_token"
    value: str = Field(..., min_length=1)

    def apply(self, params: Dict[str, str], headers: Dict[str, str]) -> None:
        headers["Authorization"] = f"Bearer {self.value}"


Credential = Union[APIKey, BearerToken]

TokenFetcher = Callable[[Settings], Any]


def stage_service_account_credentials(settings: Settings) -> Optional[str]:
    """
    Write a raw service-account JSON blob to disk for google-auth to load.

    Points GOOGLE_APPLICATION_CREDENTIALS at the written file so libraries
    that use Application Default Credentials pick it up too.

    Args:
        settings: Settings carrying ``service_account_json``

    Returns:
        Path written, or None when there is nothing to stage or the write failed
    """
    raw = settings.service_account_json
    if not raw:
        return None

    out_path = Path(settings.service_account_path)
    try:
        out_path.write_text(raw, encoding="utf-8")
        out_path.chmod(0o600)
    except OSError as e:
        logger.error(f"Failed writing service account JSON to {out_path}: {e}")
        return None

    os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = str(out_path)
    logger.info(f"Wrote service account to {out_path}")
    return str(out_path)


def fetch_service_account_token(settings: Settings) -> Any:
    """
    Load service-account credentials and refresh them.

    Blocking; callers run it off the event loop.

    Returns:
        Refreshed google-auth credentials (the token is on ``.token``)
    """
    scopes = [CLOUD_PLATFORM_SCOPE]
    if settings.credentials_path:
        credentials, _ = google.auth.load_credentials_from_file(
            settings.credentials_path, scopes=scopes
        )
    else:
        credentials, _ = google.auth.default(scopes=scopes)

    credentials.refresh(GoogleAuthRequest())
    return credentials


def coerce_token(value: Any) -> Optional[str]:
    """
    Extract a token string from whatever the token source handed back.

    Accepts a plain string, an object exposing ``.token``, or a mapping with a
    ``"token"`` entry.
    """
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        token = value.get("token")
    else:
        token = getattr(value, "token", None)
    if isinstance(token, str) and token:
        return token
    return None


class CredentialResolver:
    """Produces the Credential for one model attempt."""

    def __init__(self, settings: Settings, token_fetcher: Optional[TokenFetcher] = None):
        self._settings = settings
        self._token_fetcher = token_fetcher or fetch_service_account_token

    @property
    def mode(self) -> str:
        return self._settings.credential_mode

    async def resolve(self) -> Credential:
        """
        Resolve the credential for a dispatch.

        Raises:
            CredentialError: No API key and the service-account exchange failed
        """
        if self._settings.google_api_key:
            return APIKey(value=self._settings.google_api_key)

        try:
            raw_token = await asyncio.to_thread(self._token_fetcher, self._settings)
        except GoogleAuthError as e:
            logger.error(f"Service account token exchange failed: {e}")
            raise CredentialError(f"Service account token exchange failed: {e}") from e

        token = coerce_token(raw_token)
        if token is None:
            raise CredentialError("Service account token source returned no usable token")
        return BearerToken(value=token)


def describe_credentials(settings: Settings) -> Tuple[str, Optional[str]]:
    """Credential mode plus the file it is loaded from, for health reporting."""
    mode = settings.credential_mode
    if mode == "service_account":
        return mode, settings.credentials_path
    return mode, None
