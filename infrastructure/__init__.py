# ============================================================================
# CONTEXT - INFRASTRUCTURE MODULE
# ============================================================================
# STATUS: Core Infrastructure - Search backend access
# PURPOSE: Shared infrastructure components for the satellite search API
# EXPORTS: ElasticsearchDocumentStore, get_document_store
# DEPENDENCIES: elasticsearch, config, sat_search.store
# ============================================================================

"""
Infrastructure Module

Provides the document store used by the satellite search API:
- Elasticsearch client wrapper (ElasticsearchDocumentStore)
- Process-wide store accessor (get_document_store)
"""

from .document_store import (
    ElasticsearchDocumentStore,
    get_document_store
)

__version__ = "1.0.0"
__all__ = [
    "ElasticsearchDocumentStore",
    "get_document_store"
]
