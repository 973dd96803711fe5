# ============================================================================
# CONTEXT - SATELLITE SEARCH MODELS
# ============================================================================
# STATUS: Standalone Models - Request state and response shapes
# PURPOSE: Pagination state, AOI coverage spec and the four response envelopes
# EXPORTS: PaginationState, AoiCoverageSpec, SearchMeta, SimpleSearchResponse,
#          GeoJSONSearchResponse, CountResponse, LegacySearchResponse
# INTERFACES: Pydantic BaseModel
# PYDANTIC_MODELS: All classes in this file
# DEPENDENCIES: pydantic, typing
# VALIDATION: Pydantic v2 validation (string parameters are coerced)
# PATTERNS: Data Transfer Objects (DTOs)
# ============================================================================

"""
Satellite Search Pydantic Models

Request-side models are immutable and built once per request from the
parameter map. Response-side models mirror the JSON returned by each endpoint:

    simple   -> {"meta": {...}, "results": [...]}
    geojson  -> {"type": "FeatureCollection", "properties": {...}, "features": [...]}
    count    -> {"meta": {...}, "counts": {...}}
    legacy   -> {"meta": {"author": ..., "results": {...}}, "results": [...]}
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# REQUEST STATE
# ============================================================================

class PaginationState(BaseModel):
    """
    Page window for a single request.

    `skip` only changes the page reported back to the caller; the offset is
    always derived from `page` and `size`.
    """
    model_config = ConfigDict(frozen=True)

    page: int = Field(
        default=1,
        ge=1,
        description="1-based page number"
    )
    size: int = Field(
        default=1,
        ge=1,
        description="Number of documents per page (request `limit`)"
    )
    skip: Optional[int] = Field(
        default=None,
        ge=0,
        description="Page number to report instead of `page`"
    )

    @property
    def offset(self) -> int:
        """Index of the first document of the page."""
        return (self.page - 1) * self.size

    @property
    def reported_page(self) -> int:
        """Page echoed in response metadata."""
        return self.skip if self.skip is not None else self.page

    @classmethod
    def from_params(cls, params: Dict[str, Any], default_limit: int = 1) -> "PaginationState":
        """
        Build pagination state from request parameters.

        Raises:
            ValidationError: If page/limit/skip are not positive integers
        """
        values: Dict[str, Any] = {"size": params.get("limit") or default_limit}
        if params.get("page"):
            values["page"] = params["page"]
        if params.get("skip") not in (None, ""):
            values["skip"] = params["skip"]
        return cls(**values)


class AoiCoverageSpec(BaseModel):
    """Minimum share (percent) of the AOI geometry a result footprint must cover."""
    model_config = ConfigDict(frozen=True)

    threshold: float = Field(
        ge=0,
        description="Minimum coverage percentage"
    )
    geometry: Any = Field(
        description="AOI as GeoJSON object or JSON string (the request `intersects`)"
    )


# ============================================================================
# RESPONSES
# ============================================================================

class SearchMeta(BaseModel):
    """Metadata envelope of the simple endpoint."""
    found: int = Field(description="Number of matching documents")
    name: str = Field(description="API name")
    license: str = Field(description="Data license")
    website: str = Field(description="API website")
    page: int = Field(description="Requested page")
    limit: int = Field(description="Page size")


class SimpleSearchResponse(BaseModel):
    """Flat list of source documents."""
    meta: SearchMeta
    results: List[Dict[str, Any]] = Field(default_factory=list)


class FeatureCollectionProperties(BaseModel):
    """Paging metadata carried by the GeoJSON response."""
    found: int
    limit: int
    page: int


class GeoJSONSearchResponse(BaseModel):
    """GeoJSON FeatureCollection of scene footprints."""
    type: Literal["FeatureCollection"] = "FeatureCollection"
    properties: FeatureCollectionProperties
    features: List[Dict[str, Any]] = Field(default_factory=list)


class CountMeta(BaseModel):
    """Metadata envelope of the count endpoint."""
    found: int
    name: str
    license: str
    website: str


class CountResponse(BaseModel):
    """Total hits plus the raw aggregation buckets."""
    meta: CountMeta
    counts: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Aggregations exactly as returned by the store"
    )


class LegacyResultsMeta(BaseModel):
    skip: int
    limit: int
    total: int


class LegacyMeta(BaseModel):
    author: str
    results: LegacyResultsMeta


class LegacySearchResponse(BaseModel):
    """Envelope of the historical Landsat-only search."""
    meta: LegacyMeta
    results: List[Dict[str, Any]] = Field(default_factory=list)
