# ============================================================================
# CONTEXT - DOCUMENT STORE
# ============================================================================
# STATUS: Core Infrastructure - Search backend access
# PURPOSE: Single capability interface over the Elasticsearch client
# EXPORTS: ElasticsearchDocumentStore, get_document_store
# DEPENDENCIES: elasticsearch, config, util_logger, sat_search.store, sat_search.exceptions
# SCOPE: Read-only search operations for API serving
# PATTERNS: Repository pattern, Shared client, Errors wrapped once
# ============================================================================

"""
Document Store - Read-Only Search Access

The search orchestrator only depends on `DocumentStore.search(request)`
(`sat_search.store`). `ElasticsearchDocumentStore` is the single
implementation; its client (direct or token-authenticated) is chosen at
process start by `config.get_search_client()` and looked up per call so
managed identity tokens stay current.

Failures are raised once as `StoreError` with the client exception chained;
nothing is retried here.

Usage:
    from infrastructure import get_document_store
    from sat_search.store import SearchRequest

    store = get_document_store()
    body = store.search(SearchRequest(index="sat-api", body={"query": {"match_all": {}}}, size=1))
"""

from functools import lru_cache
from typing import Any, Dict

from elasticsearch import ApiError, TransportError

from config import get_search_client
from util_logger import LoggerFactory, ComponentType
from sat_search.exceptions import StoreError
from sat_search.store import DocumentStore, SearchRequest

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "ElasticsearchDocumentStore")


class ElasticsearchDocumentStore(DocumentStore):
    """
    Elasticsearch-backed document store.

    Thread Safety:
    - The underlying client is shared and safe for concurrent requests
    """

    def __init__(self, client=None):
        """
        Initialize store with a client.

        Args:
            client: Elasticsearch client (process-wide client if not provided)
        """
        self._client = client

    @property
    def client(self):
        """Injected client, or the process-wide client with current credentials."""
        if self._client is not None:
            return self._client
        return get_search_client()

    def search(self, request: SearchRequest) -> Dict[str, Any]:
        """
        Execute a single search.

        Args:
            request: Search request

        Returns:
            Raw response body

        Raises:
            StoreError: On any client or transport failure
        """
        kwargs: Dict[str, Any] = dict(request.body)
        kwargs["index"] = request.index
        kwargs["size"] = request.size
        kwargs["from_"] = request.offset
        if request.source_fields:
            kwargs["source"] = request.source_fields

        try:
            response = self.client.search(**kwargs)
        except (ApiError, TransportError) as e:
            logger.error(f"Search against '{request.index}' failed: {e}")
            raise StoreError(f"Search against '{request.index}' failed: {e}") from e

        return getattr(response, "body", response)

    def ping(self) -> bool:
        return bool(self.client.ping())

    def index_exists(self, index: str) -> bool:
        try:
            return bool(self.client.indices.exists(index=index))
        except (ApiError, TransportError) as e:
            raise StoreError(f"Index check for '{index}' failed: {e}") from e

    def count(self, index: str) -> int:
        try:
            response = self.client.count(index=index)
        except (ApiError, TransportError) as e:
            raise StoreError(f"Count on '{index}' failed: {e}") from e
        return int(response["count"])


@lru_cache(maxsize=1)
def get_document_store() -> DocumentStore:
    """Process-wide document store."""
    return ElasticsearchDocumentStore()
