#!/usr/bin/env python3
"""
Fallback Scenario Tester
Command-line tool to exercise retry and model fallback against a simulated
upstream, without network access or real backoff waits.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Union

import httpx

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gemini_relay.core.config import Settings
from gemini_relay.core.credentials import CredentialResolver
from gemini_relay.routing.dispatcher import RetryingDispatcher
from gemini_relay.routing.errors import NetworkError, UpstreamError

PRIMARY = "gemini-2.5-flash"
FALLBACK = "gemini-2.5-mini"

Outcome = Union[int, str]

# model -> outcomes consumed per request; the last one repeats.
# An int is a status code, "ok" is a 200 with text, "connect" a refused connection.
SCENARIOS: Dict[str, Dict[str, List[Outcome]]] = {
    "basic_success": {PRIMARY: ["ok"], FALLBACK: ["ok"]},
    "retry_then_success": {PRIMARY: [503, 429, "ok"], FALLBACK: ["ok"]},
    "model_fallback": {PRIMARY: [503], FALLBACK: ["ok"]},
    "non_retryable_fallback": {PRIMARY: [404], FALLBACK: ["ok"]},
    "all_fail": {PRIMARY: [500], FALLBACK: [404]},
    "network_fatal": {PRIMARY: ["connect"], FALLBACK: ["ok"]},
}

# Whether each scenario should end in a 2xx result.
EXPECTED_SUCCESS: Dict[str, bool] = {
    "basic_success": True,
    "retry_then_success": True,
    "model_fallback": True,
    "non_retryable_fallback": True,
    "all_fail": False,
    "network_fatal": False,
}


class ScenarioUpstream:
    """Simulated generateContent endpoint that logs every call."""

    def __init__(self, script: Dict[str, List[Outcome]]):
        self.script = {model: list(outcomes) for model, outcomes in script.items()}
        self.call_log: List[Dict[str, Any]] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        model = request.url.path.split("/models/", 1)[1].split(":", 1)[0]
        outcomes = self.script[model]
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        self.call_log.append({"model": model, "outcome": outcome})

        if outcome == "connect":
            raise httpx.ConnectError("connection refused", request=request)
        if outcome == "ok":
            text = f"Simulated response from {model}"
            return httpx.Response(
                200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]}
            )
        return httpx.Response(outcome, text=f"simulated {outcome}")


async def _no_wait(seconds: float) -> None:
    return None


async def run_scenario(name: str, verbose: bool = False) -> bool:
    """Run one scenario and print what happened. Returns True on a 2xx result."""
    upstream = ScenarioUpstream(SCENARIOS[name])
    settings = Settings(google_api_key="scenario-key", models=(PRIMARY, FALLBACK))
    dispatcher = RetryingDispatcher(
        settings,
        resolver=CredentialResolver(settings),
        transport=httpx.MockTransport(upstream.handle),
        sleep=_no_wait,
    )

    print(f"\n=== {name} ===")
    succeeded = False
    try:
        result = await dispatcher.generate("ping")
        print(f"  success via {result.model}: {result.text!r}")
        succeeded = True
    except UpstreamError as e:
        print(f"  upstream error {e.status} from {e.model}: {e.body!r}")
    except NetworkError as e:
        print(f"  network error on {e.model} after {e.attempts} attempts")

    print(f"  upstream calls: {len(upstream.call_log)}")
    if verbose:
        for i, entry in enumerate(upstream.call_log, start=1):
            print(f"    {i}. {entry['model']} -> {entry['outcome']}")
    return succeeded


async def main_async(args) -> int:
    """Run the selected scenarios. Returns 1 if any outcome was unexpected."""
    names = list(SCENARIOS) if args.scenario == "all" else [args.scenario]
    unexpected = []
    for name in names:
        succeeded = await run_scenario(name, verbose=args.verbose)
        if succeeded != EXPECTED_SUCCESS[name]:
            unexpected.append(name)

    if unexpected:
        print(f"\nUnexpected outcome: {', '.join(unexpected)}")
        return 1
    print(f"\nAll {len(names)} scenario(s) behaved as expected")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Exercise retry and model fallback scenarios")
    parser.add_argument(
        "scenario",
        nargs="?",
        default="all",
        choices=["all", *SCENARIOS],
        help="Scenario to run (default: all)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Print every upstream call")
    args = parser.parse_args()
    sys.exit(asyncio.run(main_async(args)))


if __name__ == "__main__":
    main()
