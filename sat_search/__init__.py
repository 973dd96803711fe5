# ============================================================================
# CONTEXT - SATELLITE SEARCH API MODULE
# ============================================================================
# STATUS: Standalone Module - Satellite imagery metadata search
# PURPOSE: Search scene metadata by text, point, area, ranges and exact terms
# EXPORTS: SatSearch, SatSearchConfig, get_sat_config, get_search_triggers,
#          compile_query, compile_aggregation, validate_geojson, filter_by_aoi_coverage
# INTERFACES: DocumentStore (sat_search.store)
# PYDANTIC_MODELS: SimpleSearchResponse, GeoJSONSearchResponse, CountResponse, LegacySearchResponse
# DEPENDENCIES: pydantic, shapely, pyproj, geojson, azure-functions
# SOURCE: Environment variables for index and response metadata
# SCOPE: Standalone satellite search API
# PATTERNS: Service Layer, Query Builder, Standalone Module
# ENTRY_POINTS: from sat_search import get_search_triggers
# ============================================================================

"""
Satellite Search API - Standalone Module

Architecture:
    sat_search/
    ├── exceptions.py    # Error taxonomy
    ├── config.py        # Index, field names and response metadata
    ├── geometry.py      # GeoJSON validation and geometry operations
    ├── queries.py       # Parameter map -> query plan
    ├── aggregations.py  # fields -> aggregation plan
    ├── coverage.py      # AOI coverage post-filter
    ├── models.py        # Pagination state and response models
    ├── store.py         # Document store contract
    ├── service.py       # Single-use search orchestrator
    └── triggers.py      # Azure Functions HTTP handlers

Integration:
    # In function_app.py (ONLY integration point)
    from sat_search import get_search_triggers

    for trigger in get_search_triggers():
        app.route(
            route=trigger['route'],
            methods=trigger['methods'],
            auth_level=func.AuthLevel.ANONYMOUS
        )(trigger['handler'])
"""

from .exceptions import (
    SatSearchError,
    InvalidGeoJson,
    SelfIntersectingPolygon,
    InvalidCoordinates,
    StoreError,
    ConfigurationError
)
from .config import SatSearchConfig, get_sat_config
from .geometry import GeometryOperations, validate_geojson
from .queries import compile_query
from .aggregations import compile_aggregation
from .coverage import filter_by_aoi_coverage
from .store import DocumentStore, SearchRequest
from .service import SatSearch
from .triggers import get_search_triggers

__version__ = "1.0.0"
__all__ = [
    "SatSearchError",
    "InvalidGeoJson",
    "SelfIntersectingPolygon",
    "InvalidCoordinates",
    "StoreError",
    "ConfigurationError",
    "SatSearchConfig",
    "get_sat_config",
    "GeometryOperations",
    "validate_geojson",
    "compile_query",
    "compile_aggregation",
    "filter_by_aoi_coverage",
    "DocumentStore",
    "SearchRequest",
    "SatSearch",
    "get_search_triggers"
]
