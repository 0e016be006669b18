"""
Bounded-retry send.

One request is sent up to ``RetryPolicy.max_attempts`` times. The loop is a
small state machine:

    ATTEMPTING --transient failure, attempts left--> BACKOFF
    ATTEMPTING --transient failure, final attempt--> EXHAUSTED
    ATTEMPTING --any other status--------------------> SUCCESS
    BACKOFF    --after waiting, delay *= factor------> ATTEMPTING

"Transient failure" is either a retryable status or an httpx transport error.
SUCCESS means the response is settled and returned as-is, which includes
non-retryable 4xx statuses. EXHAUSTED returns the last response, or raises
NetworkError when the final attempt failed at the transport level.

The delay is never reset and has no cap or jitter, so a slow upstream can
make a single call's total latency grow to the sum of all backoff waits.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx

from gemini_relay.core.config import RetryPolicy
from gemini_relay.core.logging import redact_url
from gemini_relay.routing.errors import NetworkError

logger = logging.getLogger("retry")

Sleeper = Callable[[float], Awaitable[None]]


class RetryState(str, Enum):
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    EXHAUSTED = "exhausted"
    SUCCESS = "success"


def next_state(
    response: Optional[httpx.Response],
    error: Optional[BaseException],
    attempt: int,
    policy: RetryPolicy,
) -> RetryState:
    """
    Transition out of ATTEMPTING.

    Args:
        response: Response of the attempt, None if the transport failed
        error: Transport error of the attempt, None if a response arrived
        attempt: 1-based attempt number just completed
        policy: Retry policy in force

    Returns:
        BACKOFF, EXHAUSTED or SUCCESS
    """
    final = attempt >= policy.max_attempts
    if error is None and response is not None and not policy.is_retryable(response.status_code):
        return RetryState.SUCCESS
    return RetryState.EXHAUSTED if final else RetryState.BACKOFF


async def send_with_retry(
    client: httpx.AsyncClient,
    request: httpx.Request,
    policy: RetryPolicy,
    sleep: Sleeper = asyncio.sleep,
) -> httpx.Response:
    """
    Send a request, retrying transient failures with exponential backoff.

    Args:
        client: Client used to send
        request: Prepared request, re-sent unchanged on every attempt
        policy: Attempt ceiling, backoff schedule and retryable statuses
        sleep: Awaitable taking seconds; replaced in tests

    Returns:
        The first non-retryable response, or the last response when the
        ceiling is reached on a retryable status

    Raises:
        NetworkError: The transport errored on the final attempt
    """
    state = RetryState.ATTEMPTING
    attempt = 0
    delay_ms = policy.initial_delay_ms
    response: Optional[httpx.Response] = None
    error: Optional[httpx.TransportError] = None
    target = redact_url(request.url)

    while True:
        if state is RetryState.ATTEMPTING:
            attempt += 1
            try:
                response = await client.send(request)
                error = None
            except httpx.TransportError as e:
                response = None
                error = e
                logger.warning(f"Network error on attempt {attempt} for {target}: {e!r}")
            else:
                if policy.is_retryable(response.status_code):
                    logger.warning(
                        f"Gemini error {response.status_code} - retry {attempt}/{policy.max_attempts}"
                    )
            state = next_state(response, error, attempt, policy)

        elif state is RetryState.BACKOFF:
            if response is not None:
                await response.aclose()
            await sleep(delay_ms / 1000)
            delay_ms *= policy.backoff_factor
            state = RetryState.ATTEMPTING

        elif state is RetryState.EXHAUSTED:
            if error is not None:
                raise NetworkError(
                    f"Network error after {attempt} attempts to {target}: {error!r}",
                    attempts=attempt,
                ) from error
            return response

        else:
            return response
