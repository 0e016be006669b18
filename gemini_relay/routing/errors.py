"""
Error taxonomy for the relay.

ValidationError short-circuits before any I/O. NetworkError and UpstreamError
propagate out of the dispatcher to the request handler. CredentialError is
raised by the resolver when no authorization mechanism can be produced.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for relay failures."""


class ValidationError(RelayError):
    """The inbound request is unusable (missing or empty prompt)."""


class CredentialError(RelayError):
    """Neither an API key nor a usable service-account token is available."""


class NetworkError(RelayError):
    """The transport failed on the final attempt for a model."""

    def __init__(self, message: str, model: Optional[str] = None, attempts: int = 0):
        super().__init__(message)
        self.model = model
        self.attempts = attempts


class UpstreamError(RelayError):
    """Every model candidate was exhausted with a non-2xx status."""

    def __init__(self, status: int, body: str, model: Optional[str] = None):
        super().__init__(f"Upstream error {status} from model {model}")
        self.status = status
        self.body = body
        self.model = model
