import os

import pytest

# Set environment variables before importing app modules
os.environ.setdefault("GOOGLE_API_KEY", "test_google_key")
os.environ.pop("GOOGLE_SERVICE_ACCOUNT_JSON", None)

from gemini_relay.core.config import Settings
from tests.helpers import BASE_URL, FALLBACK, PRIMARY, RecordingSleep


@pytest.fixture
def settings():
    """Settings with an API key and a test upstream host."""
    return Settings(
        google_api_key="test-key",
        api_base_url=BASE_URL,
        models=(PRIMARY, FALLBACK),
    )


@pytest.fixture
def sleeper():
    """Recording replacement for asyncio.sleep."""
    return RecordingSleep()
