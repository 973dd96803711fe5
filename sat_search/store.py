# ============================================================================
# CONTEXT - DOCUMENT STORE CONTRACT
# ============================================================================
# STATUS: Standalone Module - Store interface for the search orchestrator
# PURPOSE: Request value object and the read-only store capability interface
# EXPORTS: SearchRequest, DocumentStore
# DEPENDENCIES: None (implemented by infrastructure.document_store)
# PATTERNS: Repository interface, Frozen value object
# ============================================================================

"""
Document store contract consumed by the search orchestrator.

The orchestrator only calls `DocumentStore.search(request)`; implementations
live in `infrastructure` (`ElasticsearchDocumentStore`). `ping`,
`index_exists` and `count` back the detailed health check.

Response shape returned by `search`:

    {
        "hits": {"total": <int or {"value": int, "relation": str}>,
                 "hits": [{"_source": {...}}, ...]},
        "aggregations": {...}      # only for aggregation requests
    }
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SearchRequest:
    """One search round-trip: body (query/sort/aggs) plus paging and source filtering."""
    index: str
    body: Dict[str, Any]
    size: int
    offset: int = 0
    source_fields: Optional[List[str]] = None


class DocumentStore:
    """Capability interface for the search backend."""

    def search(self, request: SearchRequest) -> Dict[str, Any]:
        raise NotImplementedError

    def ping(self) -> bool:
        raise NotImplementedError

    def index_exists(self, index: str) -> bool:
        raise NotImplementedError

    def count(self, index: str) -> int:
        raise NotImplementedError
