"""
Retrying Dispatcher - sends a prompt through the ordered model candidates.

For each model, in priority order:
1. Resolve a credential and build the generateContent request
2. Send it through the bounded-retry loop
3. 2xx: extract text and return immediately
4. Any other status: fall through to the next model, or raise UpstreamError
   if this was the last one

A NetworkError out of the retry loop is raised straight away, even when
fallback models remain. Only status-code failures fall through.
"""

import asyncio
import logging
from typing import Optional, Tuple

import httpx

from gemini_relay.core.config import Settings
from gemini_relay.core.credentials import CredentialResolver
from gemini_relay.core.extraction import extract_text
from gemini_relay.providers.gemini_provider import GeminiProvider
from gemini_relay.routing.errors import NetworkError, UpstreamError, ValidationError
from gemini_relay.routing.models import GenerationRequest, GenerationResult
from gemini_relay.routing.retry import Sleeper, send_with_retry

logger = logging.getLogger("retrying_dispatcher")


class RetryingDispatcher:
    """
    Forwards prompts upstream with per-model retries and model fallback.

    Candidates and retries are strictly sequential; the only suspension
    points are the upstream call and the backoff wait.
    """

    def __init__(
        self,
        settings: Settings,
        resolver: Optional[CredentialResolver] = None,
        provider: Optional[GeminiProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        """
        Initialize the dispatcher.

        Args:
            settings: Immutable relay settings (models, policy, timeout)
            resolver: Credential resolver (built from settings if not provided)
            provider: Request builder (built from settings if not provided)
            transport: Optional httpx transport, used by tests
            sleep: Backoff sleeper, used by tests
        """
        self._settings = settings
        self._resolver = resolver or CredentialResolver(settings)
        self._provider = provider or GeminiProvider(settings.api_base_url)
        self._transport = transport
        self._sleep = sleep

    @property
    def models(self) -> Tuple[str, ...]:
        return self._settings.models

    async def generate(self, prompt: Optional[str]) -> GenerationResult:
        """
        Generate text for a prompt.

        Args:
            prompt: Prompt text; None or empty is rejected before any I/O

        Returns:
            GenerationResult from the first model that answered 2xx

        Raises:
            ValidationError: Prompt missing or empty
            CredentialError: No usable authorization mechanism
            NetworkError: Transport failed on a model's final attempt
            UpstreamError: Every model answered non-2xx
        """
        if not prompt:
            raise ValidationError("Missing prompt")
        request = GenerationRequest(prompt=prompt)

        models = self.models
        last_index = len(models) - 1

        async with httpx.AsyncClient(
            timeout=self._settings.upstream_timeout_seconds,
            transport=self._transport,
        ) as client:
            for index, model in enumerate(models):
                logger.info(f"Trying model: {model}")

                credential = await self._resolver.resolve()
                http_request = self._provider.build_request(client, model, request, credential)

                try:
                    response = await send_with_retry(
                        client, http_request, self._settings.retry, sleep=self._sleep
                    )
                except NetworkError as e:
                    e.model = model
                    logger.error(f"Model {model} failed at the transport level: {e}")
                    raise

                if response.is_success:
                    raw = response.json()
                    logger.info(f"Model {model} succeeded")
                    return GenerationResult(text=extract_text(raw), raw=raw, model=model)

                logger.warning(f"Model {model} failed with status {response.status_code}")

                if index == last_index:
                    raise UpstreamError(
                        status=response.status_code,
                        body=response.text,
                        model=model,
                    )

        # Unreachable: Settings guarantees at least one model.
        raise UpstreamError(status=502, body="", model=None)
