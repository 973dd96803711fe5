"""
Configuration tests: application settings, search settings and client construction.
"""

import time
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

import config
from config import AppConfig, ManagedIdentityToken, get_app_config, get_search_client
from sat_search.config import SatSearchConfig, get_sat_config


ES_ENV_VARS = ("ES_HOST", "ES_REQUEST_TIMEOUT", "ES_API_KEY", "ES_USE_MANAGED_IDENTITY", "ES_TOKEN_SCOPE")


@pytest.fixture
def clean_es_env(monkeypatch):
    for name in ES_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class RecordingElasticsearch:
    """Stands in for elasticsearch.Elasticsearch and records constructor arguments."""

    instances = []

    def __init__(self, hosts, **settings):
        self.hosts = hosts
        self.settings = settings
        self.parent = None
        RecordingElasticsearch.instances.append(self)

    def options(self, **overrides):
        view = object.__new__(RecordingElasticsearch)
        view.hosts = self.hosts
        view.settings = {**self.settings, **overrides}
        view.parent = self
        return view


@pytest.fixture
def recording_client(monkeypatch):
    RecordingElasticsearch.instances = []
    monkeypatch.setattr("elasticsearch.Elasticsearch", RecordingElasticsearch)
    return RecordingElasticsearch


class FakeCredential:
    """Hands out numbered tokens with a configurable lifetime."""

    def __init__(self, lifetime=3600):
        self.lifetime = lifetime
        self.scopes = []

    def get_token(self, scope):
        self.scopes.append(scope)
        return SimpleNamespace(
            token=f"aad-token-{len(self.scopes)}",
            expires_on=int(time.time()) + self.lifetime
        )


@pytest.fixture
def managed_identity(clean_es_env, monkeypatch):
    credential = FakeCredential()
    monkeypatch.setattr("azure.identity.DefaultAzureCredential", lambda: credential)
    clean_es_env.setenv("ES_USE_MANAGED_IDENTITY", "true")
    clean_es_env.setenv("ES_TOKEN_SCOPE", "https://search.example.com/.default")
    return credential


class TestAppConfig:

    def test_defaults(self, clean_es_env):
        settings = AppConfig()

        assert settings.es_host == "http://localhost:9200"
        assert settings.es_request_timeout == 50.0
        assert settings.es_api_key is None
        assert settings.es_use_managed_identity is False

    def test_bare_host_gets_scheme(self, clean_es_env):
        clean_es_env.setenv("ES_HOST", "search.internal:9200/")
        assert AppConfig().es_host == "http://search.internal:9200"

    def test_https_host_kept(self, clean_es_env):
        clean_es_env.setenv("ES_HOST", "https://search.example.com")
        assert AppConfig().es_host == "https://search.example.com"

    def test_managed_identity_requires_scope(self, clean_es_env):
        clean_es_env.setenv("ES_USE_MANAGED_IDENTITY", "true")
        with pytest.raises(ValidationError):
            AppConfig()

    def test_invalid_timeout(self, clean_es_env):
        clean_es_env.setenv("ES_REQUEST_TIMEOUT", "0")
        with pytest.raises(ValidationError):
            AppConfig()

    def test_singleton(self, clean_es_env):
        assert get_app_config() is get_app_config()


class TestSearchClient:

    def test_direct_client(self, clean_es_env, recording_client):
        client = get_search_client()

        assert client.hosts == "http://localhost:9200"
        assert client.settings == {"request_timeout": 50.0, "max_retries": 0, "retry_on_timeout": False}

    def test_api_key(self, clean_es_env, recording_client):
        clean_es_env.setenv("ES_API_KEY", "secret")

        client = get_search_client()

        assert client.settings["api_key"] == "secret"
        assert "bearer_auth" not in client.settings

    def test_managed_identity_token(self, managed_identity, recording_client):
        client = get_search_client()

        assert client.settings["bearer_auth"] == "aad-token-1"
        assert "api_key" not in client.settings
        assert managed_identity.scopes == ["https://search.example.com/.default"]

    def test_managed_identity_ignores_api_key(self, managed_identity, recording_client, monkeypatch):
        monkeypatch.setenv("ES_API_KEY", "ignored")

        client = get_search_client()

        assert "api_key" not in client.settings
        assert client.settings["bearer_auth"] == "aad-token-1"

    def test_managed_identity_token_reused_while_fresh(self, managed_identity, recording_client):
        first = get_search_client()
        second = get_search_client()

        assert first.settings["bearer_auth"] == second.settings["bearer_auth"] == "aad-token-1"
        assert len(managed_identity.scopes) == 1
        assert first.parent is second.parent
        assert len(recording_client.instances) == 1

    def test_managed_identity_token_renewed_near_expiry(self, managed_identity, recording_client):
        managed_identity.lifetime = config.TOKEN_REFRESH_MARGIN_SECONDS - 1

        first = get_search_client()
        second = get_search_client()

        assert first.settings["bearer_auth"] == "aad-token-1"
        assert second.settings["bearer_auth"] == "aad-token-2"
        assert len(recording_client.instances) == 1

    def test_client_created_once(self, clean_es_env, recording_client):
        assert get_search_client() is get_search_client()
        assert len(recording_client.instances) == 1

    def test_validate_configuration(self, clean_es_env):
        assert config.validate_configuration() is True


class TestManagedIdentityToken:

    def test_acquisition_failure_is_reported(self):
        class BrokenCredential:
            def get_token(self, scope):
                raise RuntimeError("IMDS endpoint unavailable")

        token = ManagedIdentityToken("https://search.example.com/.default", credential=BrokenCredential())

        with pytest.raises(Exception, match="Managed identity authentication failed"):
            token.get()

    def test_expired_token_is_replaced(self):
        credential = FakeCredential(lifetime=-10)
        token = ManagedIdentityToken("scope", credential=credential)

        assert token.get() == "aad-token-1"
        assert token.get() == "aad-token-2"


class TestSatSearchConfig:

    def test_defaults(self, monkeypatch):
        for name in ("ES_INDEX", "NAME", "SAT_LICENSE", "WEBSITE", "SAT_AUTHOR",
                     "SAT_DEFAULT_LIMIT", "SAT_FOUND_SHORT_PAGE_CORRECTION"):
            monkeypatch.delenv(name, raising=False)

        settings = SatSearchConfig()

        assert settings.index == "sat-api"
        assert settings.api_name == "sat-api"
        assert settings.api_license == "CC0-1.0"
        assert settings.website == "https://api.developmentseed.org/satellites/"
        assert settings.author == "Development Seed"
        assert settings.default_limit == 1
        assert settings.found_short_page_correction is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("ES_INDEX", "scenes-v2")
        monkeypatch.setenv("NAME", "landsat-api")
        monkeypatch.setenv("SAT_DEFAULT_LIMIT", "20")
        monkeypatch.setenv("SAT_FOUND_SHORT_PAGE_CORRECTION", "false")

        settings = SatSearchConfig()

        assert settings.index == "scenes-v2"
        assert settings.api_name == "landsat-api"
        assert settings.default_limit == 20
        assert settings.found_short_page_correction is False

    def test_singleton(self):
        assert get_sat_config() is get_sat_config()
