"""
Process-wide configuration.

Settings are read from the environment exactly once at startup and then
passed explicitly to the credential resolver, the dispatcher and the app
factory. Nothing downstream reads os.environ on its own.
"""

import os
from typing import FrozenSet, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_PRIMARY_MODEL = "gemini-2.5-flash"
DEFAULT_FALLBACK_MODEL = "gemini-2.5-mini"
DEFAULT_API_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_SERVICE_ACCOUNT_PATH = "/tmp/google_service_account.json"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class RetryPolicy(BaseModel):
    """Bounded-retry policy for a single model's upstream call."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=7, ge=1, description="Attempt ceiling per model")
    initial_delay_ms: float = Field(default=600, ge=0, description="Wait before the first retry")
    backoff_factor: float = Field(default=1.8, ge=1, description="Delay multiplier applied after each wait")
    retryable_statuses: FrozenSet[int] = Field(
        default=frozenset({429, 500, 502, 503, 504}),
        description="Statuses that indicate transient upstream unavailability",
    )

    def is_retryable(self, status_code: int) -> bool:
        return status_code in self.retryable_statuses

    def delays_ms(self) -> List[float]:
        """Backoff waits the policy would produce if every attempt failed."""
        delays = []
        delay = self.initial_delay_ms
        for _ in range(self.max_attempts - 1):
            delays.append(delay)
            delay *= self.backoff_factor
        return delays


class Settings(BaseModel):
    """Immutable relay configuration."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 3000
    google_api_key: Optional[str] = None
    service_account_json: Optional[str] = None
    service_account_path: str = DEFAULT_SERVICE_ACCOUNT_PATH
    credentials_path: Optional[str] = None
    models: Tuple[str, ...] = (DEFAULT_PRIMARY_MODEL, DEFAULT_FALLBACK_MODEL)
    api_base_url: str = DEFAULT_API_BASE_URL
    upstream_timeout_seconds: float = 60.0
    cors_origins: Tuple[str, ...] = ("*",)
    max_body_bytes: int = 2 * 1024 * 1024
    log_level: str = "info"
    fail_on_startup_validation: bool = False
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    @field_validator("models")
    @classmethod
    def _models_not_empty(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        models = tuple(m for m in value if m)
        if not models:
            raise ValueError("at least one model candidate is required")
        return models

    @property
    def credential_mode(self) -> str:
        """Which authorization path a dispatch will take."""
        if self.google_api_key:
            return "api_key"
        if self.credentials_path or self.service_account_json:
            return "service_account"
        return "application_default"


def _split_csv(value: str) -> Tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        Frozen Settings instance
    """
    env = os.environ if environ is None else environ

    models = (
        env.get("GEMINI_PRIMARY_MODEL", DEFAULT_PRIMARY_MODEL),
        env.get("GEMINI_FALLBACK_MODEL", DEFAULT_FALLBACK_MODEL),
    )

    return Settings(
        host=env.get("HOST", "0.0.0.0"),
        port=int(env.get("PORT", "3000")),
        google_api_key=env.get("GOOGLE_API_KEY") or None,
        service_account_json=env.get("GOOGLE_SERVICE_ACCOUNT_JSON") or None,
        service_account_path=env.get("GOOGLE_SERVICE_ACCOUNT_PATH", DEFAULT_SERVICE_ACCOUNT_PATH),
        credentials_path=env.get("GOOGLE_APPLICATION_CREDENTIALS") or None,
        models=models,
        api_base_url=env.get("GEMINI_API_BASE_URL", DEFAULT_API_BASE_URL),
        upstream_timeout_seconds=float(env.get("UPSTREAM_TIMEOUT_SECONDS", "60")),
        cors_origins=_split_csv(env.get("CORS_ORIGINS", "*")),
        max_body_bytes=int(env.get("MAX_BODY_BYTES", str(2 * 1024 * 1024))),
        log_level=env.get("LOG_LEVEL", "info"),
        fail_on_startup_validation=env.get("FAIL_ON_STARTUP_VALIDATION", "false").lower() == "true",
    )
