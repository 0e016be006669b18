"""
Shared test helpers: a scripted Gemini upstream and a recording sleeper.
"""
from typing import Any, Dict, List, Union

import httpx

PRIMARY = "gemini-2.5-flash"
FALLBACK = "gemini-2.5-mini"
BASE_URL = "https://upstream.test"

Outcome = Union[int, Dict[str, Any], httpx.Response, Exception]


def model_from_request(request: httpx.Request) -> str:
    """Pull the model name out of a generateContent URL path."""
    return request.url.path.split("/models/", 1)[1].split(":", 1)[0]


def gemini_body(text: str) -> Dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


class RecordingSleep:
    """Async stand-in for asyncio.sleep that only records the requested waits."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def delays_ms(self) -> List[float]:
        return [seconds * 1000 for seconds in self.calls]


class UpstreamStub:
    """
    Scripted Gemini upstream served through httpx.MockTransport.

    Each model maps to a list of outcomes consumed one per request; the last
    outcome repeats once the list runs out. An outcome is a status code, a
    JSON dict (served as 200), a ready httpx.Response, or an exception to
    raise from the transport.
    """

    def __init__(self, script: Dict[str, List[Outcome]]):
        self.script = {model: list(outcomes) for model, outcomes in script.items()}
        self.requests: List[httpx.Request] = []

    def calls_for(self, model: str) -> int:
        return sum(1 for r in self.requests if model_from_request(r) == model)

    @property
    def models_called(self) -> List[str]:
        seen: List[str] = []
        for request in self.requests:
            model = model_from_request(request)
            if model not in seen:
                seen.append(model)
        return seen

    def _handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcomes = self.script[model_from_request(request)]
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]

        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, httpx.Response):
            return outcome
        if isinstance(outcome, dict):
            return httpx.Response(200, json=outcome)
        return httpx.Response(outcome, text=f"status {outcome} body")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handler)


def connect_error() -> httpx.ConnectError:
    return httpx.ConnectError("connection refused")
