"""
Gemini Generative Language REST provider.

Builds generateContent requests against the v1beta REST surface. Sending,
retrying and fallback are handled by the routing layer.
"""

from typing import Dict

import httpx

from gemini_relay.core.config import DEFAULT_API_BASE_URL
from gemini_relay.core.credentials import Credential
from gemini_relay.routing.models import GenerationRequest


def model_endpoint(model_name: str, base_url: str = DEFAULT_API_BASE_URL) -> str:
    """
    Get the generateContent URL for a model.

    Args:
        model_name: Model identifier (e.g. "gemini-2.5-flash")
        base_url: Upstream host, scheme included

    Returns:
        Full endpoint URL without query string
    """
    return f"{base_url.rstrip('/')}/v1beta/models/{model_name}:generateContent"


class GeminiProvider:
    """Provider for the Gemini generateContent REST endpoint."""

    def __init__(self, base_url: str = DEFAULT_API_BASE_URL):
        self.base_url = base_url

    def build_request(
        self,
        client: httpx.AsyncClient,
        model: str,
        request: GenerationRequest,
        credential: Credential,
    ) -> httpx.Request:
        """
        Build the outbound POST for one model.

        Args:
            client: Client the request will be sent through
            model: Model identifier
            request: Validated generation request
            credential: API key or bearer token to attach

        Returns:
            Unsent httpx.Request, safe to send more than once
        """
        params: Dict[str, str] = {}
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        credential.apply(params, headers)

        return client.build_request(
            "POST",
            model_endpoint(model, self.base_url),
            params=params or None,
            headers=headers,
            json=request.to_payload(),
        )
