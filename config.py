# ============================================================================
# CONTEXT - APPLICATION CONFIGURATION
# ============================================================================
# STATUS: Core Infrastructure - Configuration Management
# PURPOSE: Centralized configuration for the Elasticsearch connection with managed identity support
# EXPORTS: AppConfig, get_app_config, get_search_client, ManagedIdentityToken, validate_configuration
# DEPENDENCIES: pydantic-settings, elasticsearch, azure-identity
# SOURCE: Environment variables, Azure managed identity
# PATTERNS: Singleton pattern for config and client, lazy initialization for credentials
# ============================================================================

"""
Application Configuration Module

Provides centralized configuration management for the satellite search API:
- Elasticsearch client creation (one client per process)
- Support for direct and token-authenticated store access
- Environment-based configuration with validation

Authentication Modes:
    1. Direct (local development, self-managed clusters):
       - Requires: ES_HOST
       - Optional: ES_API_KEY
       - Use when: ES_USE_MANAGED_IDENTITY=false or not set

    2. Managed Identity (Azure production):
       - Requires: System-assigned managed identity enabled, ES_TOKEN_SCOPE
       - Use when: ES_USE_MANAGED_IDENTITY=true
       - Requests carry an Azure AD bearer token, renewed before it expires

Usage:
    from config import get_search_client

    client = get_search_client()
    client.search(index="sat-api", query={"match_all": {}})
"""

import logging
import time
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# ============================================================================
# Application Configuration
# ============================================================================

class AppConfig(BaseSettings):
    """
    Application-wide configuration loaded from environment variables.

    Attributes:
        es_host: Elasticsearch URL (scheme added when missing)
        es_request_timeout: Client request timeout in seconds
        es_api_key: API key for direct access (optional)
        es_use_managed_identity: Authenticate with an Azure AD bearer token
        es_token_scope: Token scope requested for managed identity
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Elasticsearch Connection
    es_host: str = Field(default="http://localhost:9200", description="Elasticsearch URL")
    es_request_timeout: float = Field(default=50.0, gt=0, description="Request timeout (seconds)")
    es_api_key: Optional[str] = Field(default=None, description="Elasticsearch API key")

    # Authentication Mode
    es_use_managed_identity: bool = Field(
        default=False,
        description="Use Azure managed identity for authentication"
    )
    es_token_scope: Optional[str] = Field(
        default=None,
        validate_default=True,
        description="Azure AD scope for the store token"
    )

    @field_validator("es_host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Accept bare host:port values by defaulting to http."""
        if not v:
            raise ValueError("ES_HOST must not be empty")
        if "://" not in v:
            v = f"http://{v}"
        return v.rstrip("/")

    @field_validator("es_token_scope")
    @classmethod
    def validate_token_scope(cls, v, info):
        """Ensure a scope is provided when using managed identity."""
        if info.data.get("es_use_managed_identity") and not v:
            raise ValueError(
                "ES_TOKEN_SCOPE is required when ES_USE_MANAGED_IDENTITY=true"
            )
        return v


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """
    Get singleton application configuration instance.

    Returns:
        AppConfig: Validated configuration object

    Raises:
        ValidationError: If environment variables are invalid
    """
    return AppConfig()


# ============================================================================
# Elasticsearch Client
# ============================================================================

# Refresh the managed identity token this many seconds before it expires
TOKEN_REFRESH_MARGIN_SECONDS = 300


def get_search_client():
    """
    Get the Elasticsearch client for one store call.

    The underlying client (connection pool included) is created once and
    shared by all requests; it is never closed per request. Retries are
    disabled so each request issues exactly one call.

    With managed identity, the shared client is returned through
    `client.options(bearer_auth=...)` carrying a token that is renewed
    shortly before it expires.

    Returns:
        elasticsearch.Elasticsearch

    Raises:
        ValueError: If managed identity is requested but azure-identity is missing
    """
    client = _get_base_client()

    if get_app_config().es_use_managed_identity:
        return client.options(bearer_auth=_get_managed_identity_token().get())

    return client


@lru_cache(maxsize=1)
def _get_base_client():
    from elasticsearch import Elasticsearch

    config = get_app_config()

    options = {
        "request_timeout": config.es_request_timeout,
        "max_retries": 0,
        "retry_on_timeout": False,
    }

    if config.es_use_managed_identity:
        auth_mode = "managed_identity"
    elif config.es_api_key:
        options["api_key"] = config.es_api_key
        auth_mode = "api_key"
    else:
        auth_mode = "none"

    logger.info(f"Creating Elasticsearch client for {config.es_host} (auth: {auth_mode})")

    return Elasticsearch(config.es_host, **options)


class ManagedIdentityToken:
    """
    Azure AD access token for the store, renewed before expiry.

    The credential is created once; `get()` returns the cached token until it
    is within TOKEN_REFRESH_MARGIN_SECONDS of `expires_on`.
    """

    def __init__(self, scope: str, credential=None):
        self.scope = scope
        self.credential = credential or _create_credential()
        self._token = None

    def get(self) -> str:
        if self._token is None or self._token.expires_on - time.time() < TOKEN_REFRESH_MARGIN_SECONDS:
            self._token = self._acquire()
        return self._token.token

    def _acquire(self):
        logger.info(f"Acquiring managed identity token for scope {self.scope}")

        try:
            token = self.credential.get_token(self.scope)
        except Exception as e:
            logger.error(f"Failed to acquire managed identity token: {e}")
            raise Exception(
                f"Managed identity authentication failed: {e}. "
                "Ensure system-assigned managed identity is enabled and has access to the search cluster."
            ) from e

        logger.info("✅ Successfully acquired managed identity token")
        return token


@lru_cache(maxsize=1)
def _get_managed_identity_token() -> ManagedIdentityToken:
    return ManagedIdentityToken(get_app_config().es_token_scope)


def _create_credential():
    """
    Create the Azure credential used for managed identity.

    Raises:
        ValueError: If azure-identity is not installed
    """
    try:
        from azure.identity import DefaultAzureCredential
    except ImportError:
        logger.error("azure-identity package not installed")
        raise ValueError(
            "Managed identity requires azure-identity package. "
            "Install with: pip install azure-identity"
        )

    return DefaultAzureCredential()


# ============================================================================
# Configuration Validation
# ============================================================================

def validate_configuration() -> bool:
    """
    Validate configuration on application startup.

    Returns:
        bool: True if configuration is valid

    Raises:
        Exception: If configuration validation fails
    """
    try:
        config = get_app_config()
        logger.info("Configuration validation:")
        logger.info(f"  Elasticsearch Host: {config.es_host}")
        logger.info(f"  Request Timeout: {config.es_request_timeout}s")
        logger.info(f"  API Key: {'set' if config.es_api_key else 'not set'}")
        logger.info(f"  Managed Identity: {config.es_use_managed_identity}")
        return True

    except Exception as e:
        logger.error(f"❌ Configuration validation failed: {e}")
        raise


# ============================================================================
# Module Initialization
# ============================================================================

if __name__ == "__main__":
    # For testing configuration
    logging.basicConfig(level=logging.INFO)
    validate_configuration()
