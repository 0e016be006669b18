"""
Tests for credential resolution and service-account staging.
"""

import os
from types import SimpleNamespace
from unittest.mock import MagicMock, Mock, patch

import pytest
from google.auth.exceptions import DefaultCredentialsError

from gemini_relay.core.config import CLOUD_PLATFORM_SCOPE, Settings
from gemini_relay.core.credentials import (
    APIKey,
    BearerToken,
    CredentialResolver,
    coerce_token,
    fetch_service_account_token,
    stage_service_account_credentials,
)
from gemini_relay.routing.errors import CredentialError

SERVICE_ACCOUNT_JSON = '{"type": "service_account", "project_id": "demo"}'


class TestResolve:
    """CredentialResolver.resolve precedence and failure handling."""

    @pytest.mark.asyncio
    async def test_api_key_wins_over_service_account(self):
        settings = Settings(
            google_api_key="my-key",
            service_account_json=SERVICE_ACCOUNT_JSON,
            credentials_path="/tmp/sa.json",
        )
        fetcher = Mock(return_value="token")
        resolver = CredentialResolver(settings, token_fetcher=fetcher)

        credential = await resolver.resolve()

        assert credential == APIKey(value="my-key")
        fetcher.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "raw_token",
        [
            "plain-token",
            SimpleNamespace(token="plain-token"),
            {"token": "plain-token"},
        ],
    )
    async def test_bearer_token_from_any_token_shape(self, raw_token):
        resolver = CredentialResolver(Settings(), token_fetcher=Mock(return_value=raw_token))

        credential = await resolver.resolve()

        assert isinstance(credential, BearerToken)
        assert credential.value == "plain-token"

    @pytest.mark.asyncio
    async def test_token_fetched_on_every_resolve(self):
        fetcher = Mock(side_effect=["t1", "t2"])
        resolver = CredentialResolver(Settings(), token_fetcher=fetcher)

        first = await resolver.resolve()
        second = await resolver.resolve()

        assert (first.value, second.value) == ("t1", "t2")
        assert fetcher.call_count == 2

    @pytest.mark.asyncio
    async def test_fetcher_receives_settings(self):
        settings = Settings(credentials_path="/tmp/sa.json")
        fetcher = Mock(return_value="t")
        resolver = CredentialResolver(settings, token_fetcher=fetcher)

        await resolver.resolve()

        fetcher.assert_called_once_with(settings)

    @pytest.mark.asyncio
    async def test_google_auth_failure_becomes_credential_error(self):
        cause = DefaultCredentialsError("no credentials found")
        resolver = CredentialResolver(Settings(), token_fetcher=Mock(side_effect=cause))

        with pytest.raises(CredentialError) as exc_info:
            await resolver.resolve()

        assert exc_info.value.__cause__ is cause

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_token", [None, "", SimpleNamespace(token=None), {"access": "x"}])
    async def test_unusable_token_is_credential_error(self, raw_token):
        resolver = CredentialResolver(Settings(), token_fetcher=Mock(return_value=raw_token))

        with pytest.raises(CredentialError):
            await resolver.resolve()

    def test_mode_reflects_settings(self):
        assert CredentialResolver(Settings(google_api_key="k")).mode == "api_key"
        assert CredentialResolver(Settings(credentials_path="/x.json")).mode == "service_account"
        assert CredentialResolver(Settings()).mode == "application_default"


class TestCredentialApply:
    """Each variant attaches itself to a different part of the request."""

    def test_api_key_goes_to_params(self):
        params, headers = {}, {}
        APIKey(value="k").apply(params, headers)
        assert params == {"key": "k"}
        assert headers == {}

    def test_bearer_goes_to_header(self):
        params, headers = {}, {}
        BearerToken(value="t").apply(params, headers)
        assert params == {}
        assert headers == {"Authorization": "Bearer t"}


def test_coerce_token_prefers_string():
    assert coerce_token("abc") == "abc"
    assert coerce_token(SimpleNamespace(token="abc")) == "abc"
    assert coerce_token({"token": "abc"}) == "abc"
    assert coerce_token(42) is None


class TestFetchServiceAccountToken:
    """google-auth wiring for token acquisition."""

    def test_loads_from_credentials_path(self):
        creds = MagicMock()
        settings = Settings(credentials_path="/tmp/sa.json")

        with patch(
            "google.auth.load_credentials_from_file", return_value=(creds, "demo")
        ) as mock_load, patch(
            "gemini_relay.core.credentials.GoogleAuthRequest"
        ) as mock_request:
            result = fetch_service_account_token(settings)

        mock_load.assert_called_once_with("/tmp/sa.json", scopes=[CLOUD_PLATFORM_SCOPE])
        creds.refresh.assert_called_once_with(mock_request.return_value)
        assert result is creds

    def test_uses_application_default_without_path(self):
        creds = MagicMock()

        with patch("google.auth.default", return_value=(creds, None)) as mock_default, patch(
            "gemini_relay.core.credentials.GoogleAuthRequest"
        ):
            result = fetch_service_account_token(Settings())

        mock_default.assert_called_once_with(scopes=[CLOUD_PLATFORM_SCOPE])
        creds.refresh.assert_called_once()
        assert result is creds


class TestStageServiceAccount:
    """Writing GOOGLE_SERVICE_ACCOUNT_JSON to disk at startup."""

    def test_writes_file_and_sets_env(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
        out = tmp_path / "sa.json"
        settings = Settings(service_account_json=SERVICE_ACCOUNT_JSON, service_account_path=str(out))

        path = stage_service_account_credentials(settings)

        assert path == str(out)
        assert out.read_text(encoding="utf-8") == SERVICE_ACCOUNT_JSON
        assert os.environ["GOOGLE_APPLICATION_CREDENTIALS"] == str(out)

    def test_nothing_to_stage(self, tmp_path):
        settings = Settings(service_account_path=str(tmp_path / "sa.json"))

        assert stage_service_account_credentials(settings) is None
        assert not (tmp_path / "sa.json").exists()

    def test_write_failure_returns_none(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
        settings = Settings(
            service_account_json=SERVICE_ACCOUNT_JSON,
            service_account_path=str(tmp_path / "missing-dir" / "sa.json"),
        )

        assert stage_service_account_credentials(settings) is None
        assert "GOOGLE_APPLICATION_CREDENTIALS" not in os.environ
