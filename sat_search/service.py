# ============================================================================
# CONTEXT - SATELLITE SEARCH SERVICE
# ============================================================================
# STATUS: Standalone Service - Search orchestration
# PURPOSE: Compile one request, run one store call, shape one response
# EXPORTS: SatSearch, total_hits
# INTERFACES: DocumentStore (sat_search.store)
# PYDANTIC_MODELS: SimpleSearchResponse, GeoJSONSearchResponse, CountResponse, LegacySearchResponse
# DEPENDENCIES: sat_search.queries, sat_search.aggregations, sat_search.coverage, util_logger
# SOURCE: Document store (Elasticsearch)
# SCOPE: Business logic for the search endpoints
# PATTERNS: Service Layer, Single-use orchestrator
# ENTRY_POINTS: SatSearch(params).simple() / .geojson() / .count() / .legacy()
# ============================================================================

"""
Satellite Search Service - Business Logic Layer

A `SatSearch` is built from one parameter map and answers exactly one output
mode:

    simple()   flat list of source documents (AOI coverage filter applied)
    geojson()  FeatureCollection of scene footprints
    count()    total hits plus aggregation buckets (no documents)
    legacy()   Landsat-only free-text search with the historical envelope

Pagination and the optional AOI coverage spec are computed once at
construction. Each mode compiles its plan, issues exactly one store call and
reshapes the raw hits; store failures surface once as StoreError.
"""

from typing import Any, Dict, List, Optional

from util_logger import LoggerFactory, ComponentType, log_exceptions

from .aggregations import AggregationPlan, compile_aggregation
from .config import SatSearchConfig, get_sat_config
from .coverage import filter_by_aoi_coverage
from .geometry import GeometryOperations
from .models import (
    AoiCoverageSpec,
    PaginationState,
    SearchMeta,
    SimpleSearchResponse,
    FeatureCollectionProperties,
    GeoJSONSearchResponse,
    CountMeta,
    CountResponse,
    LegacyResultsMeta,
    LegacyMeta,
    LegacySearchResponse
)
from .queries import FREE_TEXT_KEY, INTERSECTS_KEY, QueryPlan, compile_query, split_fields
from .store import DocumentStore, SearchRequest

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "SatSearch")

AOI_COVERAGE_KEY = "aoi_coverage_percentage"
CLOUD_COVER_ALIAS = ("cloudCoverFull", "cloud_coverage")
GEOJSON_PROPERTIES = ("scene_id", "satellite_name", "cloud_coverage", "date", "thumbnail")


def total_hits(response: Dict[str, Any]) -> int:
    """
    Total hit count from a store response.

    Accepts both the bare integer and the `{"value": n, "relation": ...}`
    object used by current Elasticsearch versions.
    """
    total = response.get("hits", {}).get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)
    return int(total or 0)


def source_documents(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    """`_source` of every hit, in store order."""
    return [hit.get("_source", {}) for hit in response.get("hits", {}).get("hits", [])]


class SatSearch:
    """
    Single-use search orchestrator.

    Responsibilities:
    - Own pagination state and the AOI coverage spec
    - Compile the query or aggregation plan
    - Submit exactly one request to the document store
    - Shape the raw response into one output contract
    """

    def __init__(
        self,
        params: Optional[Dict[str, Any]] = None,
        store: Optional[DocumentStore] = None,
        config: Optional[SatSearchConfig] = None,
        geometry_ops: Optional[GeometryOperations] = None
    ):
        """
        Initialize orchestrator for one request.

        Args:
            params: Flat parameter map (query string or JSON body)
            store: Document store (process-wide Elasticsearch store if not provided)
            config: Search configuration (uses singleton if not provided)
            geometry_ops: Geometry backend (process default if not provided)

        Raises:
            ValidationError: page/limit/skip or aoi_coverage_percentage are invalid
        """
        self.config = config or get_sat_config()
        self.geometry_ops = geometry_ops
        self._store = store
        self._consumed = False

        params = dict(params or {})
        threshold = params.pop(AOI_COVERAGE_KEY, None)
        self.params = params

        self.pagination = PaginationState.from_params(params, default_limit=self.config.default_limit)

        # Coverage filtering only makes sense against an intersects geometry
        self.aoi_spec: Optional[AoiCoverageSpec] = None
        if threshold not in (None, "") and params.get(INTERSECTS_KEY):
            self.aoi_spec = AoiCoverageSpec(threshold=threshold, geometry=params[INTERSECTS_KEY])

    @property
    def store(self) -> DocumentStore:
        if self._store is None:
            from infrastructure import get_document_store
            self._store = get_document_store()
        return self._store

    # ========================================================================
    # PLAN BUILDING
    # ========================================================================

    def build_search(self, params: Optional[Dict[str, Any]] = None) -> SearchRequest:
        """
        Compile the paged search request.

        Args:
            params: Parameter map to compile (defaults to the request parameters)

        Raises:
            InvalidCoordinates, InvalidGeoJson, SelfIntersectingPolygon
        """
        params = self.params if params is None else params
        plan: QueryPlan = compile_query(params, config=self.config, geometry_ops=self.geometry_ops)

        return SearchRequest(
            index=self.config.index,
            body=plan.to_body(),
            size=self.pagination.size,
            offset=self.pagination.offset,
            source_fields=split_fields(params.get("fields")) or None
        )

    def build_aggregation(self) -> SearchRequest:
        """Compile the aggregation request (size 0, no offset, no sort)."""
        plan: AggregationPlan = compile_aggregation(
            self.params, config=self.config, geometry_ops=self.geometry_ops
        )

        return SearchRequest(
            index=self.config.index,
            body=plan.to_body(),
            size=plan.size
        )

    # ========================================================================
    # OUTPUT MODES
    # ========================================================================

    def simple(self) -> SimpleSearchResponse:
        """
        Flat list of source documents.

        Each document gets `cloudCoverFull` defaulted to `cloud_coverage`.
        With an AOI coverage spec, results below the threshold are dropped
        and, when the survivors fall short of the page size, `found` is
        lowered to their count (see `found_short_page_correction`).
        """
        self._claim("simple")
        response = self._execute(self.build_search())

        found = total_hits(response)
        results = source_documents(response)

        alias, source = CLOUD_COVER_ALIAS
        for result in results:
            result.setdefault(alias, result.get(source))

        results = filter_by_aoi_coverage(
            results,
            self.aoi_spec,
            footprint_field=self.config.footprint_field,
            geometry_ops=self.geometry_ops
        )

        if self.config.found_short_page_correction and len(results) < self.pagination.size:
            found = len(results)

        return SimpleSearchResponse(
            meta=SearchMeta(
                found=found,
                name=self.config.api_name,
                license=self.config.api_license,
                website=self.config.website,
                page=self.pagination.reported_page,
                limit=self.pagination.size
            ),
            results=results
        )

    def geojson(self) -> GeoJSONSearchResponse:
        """FeatureCollection with a narrow property set and the footprint as geometry."""
        self._claim("geojson")
        response = self._execute(self.build_search())

        features = [
            {
                "type": "Feature",
                "properties": {name: document.get(name) for name in GEOJSON_PROPERTIES},
                "geometry": document.get(self.config.footprint_field)
            }
            for document in source_documents(response)
        ]

        return GeoJSONSearchResponse(
            properties=FeatureCollectionProperties(
                found=total_hits(response),
                limit=self.pagination.size,
                page=self.pagination.reported_page
            ),
            features=features
        )

    def count(self) -> CountResponse:
        """Total hits and the store's aggregation buckets, unmodified."""
        self._claim("count")
        response = self._execute(self.build_aggregation())

        return CountResponse(
            meta=CountMeta(
                found=total_hits(response),
                name=self.config.api_name,
                license=self.config.api_license,
                website=self.config.website
            ),
            counts=response.get("aggregations")
        )

    def legacy(self) -> LegacySearchResponse:
        """
        Free-text search restricted to Landsat scenes.

        The configured filter is ANDed onto `search`, or used alone when the
        request has none. `meta.results.skip` reports the document offset.
        """
        self._claim("legacy")

        params = dict(self.params)
        search = params.get(FREE_TEXT_KEY)
        if search:
            params[FREE_TEXT_KEY] = f"{search} AND {self.config.legacy_filter}"
        else:
            params[FREE_TEXT_KEY] = self.config.legacy_filter

        response = self._execute(self.build_search(params))

        return LegacySearchResponse(
            meta=LegacyMeta(
                author=self.config.author,
                results=LegacyResultsMeta(
                    skip=self.pagination.offset,
                    limit=self.pagination.size,
                    total=total_hits(response)
                )
            ),
            results=source_documents(response)
        )

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _claim(self, mode: str) -> None:
        if self._consumed:
            raise RuntimeError(
                f"SatSearch instances are single-use; cannot run '{mode}' after a previous search"
            )
        self._consumed = True

    @log_exceptions(logger=logger)
    def _execute(self, request: SearchRequest) -> Dict[str, Any]:
        logger.debug(
            f"Searching '{request.index}' (size={request.size}, offset={request.offset})",
            extra={'custom_dimensions': {'body': request.body}}
        )
        response = self.store.search(request)
        logger.info(f"Store returned {total_hits(response)} hits from '{request.index}'")
        return response
