# ============================================================================
# CONTEXT - SATELLITE SEARCH CONFIGURATION
# ============================================================================
# STATUS: Standalone Configuration - Satellite Search API
# PURPOSE: Self-contained configuration for index, field names and response metadata
# EXPORTS: SatSearchConfig, get_sat_config
# INTERFACES: Pydantic BaseModel
# PYDANTIC_MODELS: SatSearchConfig
# DEPENDENCIES: pydantic, os
# SOURCE: Environment variables
# PATTERNS: Settings Pattern, Singleton via cached function
# ENTRY_POINTS: from sat_search.config import get_sat_config
# ============================================================================

"""
Satellite Search API Configuration

Environment Variables (all optional):
    - ES_INDEX: Index holding scene metadata (default: "sat-api")
    - NAME: API name reported in response metadata (default: "sat-api")
    - SAT_LICENSE: License reported in response metadata (default: "CC0-1.0")
    - WEBSITE: Website reported in response metadata
    - SAT_AUTHOR: Author reported by the legacy endpoint (default: "Development Seed")
    - SAT_DATE_FIELD: Date field used for sorting and histograms (default: "date")
    - SAT_FOOTPRINT_FIELD: Geometry field holding scene footprints (default: "data_geometry")
    - SAT_DEFAULT_LIMIT: Page size when no limit is given (default: 1)
    - SAT_LEGACY_FILTER: Query appended by the legacy endpoint (default: "satellite_name:landsat")
    - SAT_FOUND_SHORT_PAGE_CORRECTION: Replace meta.found by the filtered count
      when it is smaller than the page size (default: true)
"""

import os
from typing import Optional

from pydantic import BaseModel, Field


class SatSearchConfig(BaseModel):
    """Configuration for the satellite search endpoints."""

    index: str = Field(
        default_factory=lambda: os.getenv("ES_INDEX", "sat-api"),
        description="Search index containing scene metadata"
    )

    # Response metadata
    api_name: str = Field(
        default_factory=lambda: os.getenv("NAME", "sat-api"),
        description="API name reported in meta.name"
    )
    api_license: str = Field(
        default_factory=lambda: os.getenv("SAT_LICENSE", "CC0-1.0"),
        description="Data license reported in meta.license"
    )
    website: str = Field(
        default_factory=lambda: os.getenv("WEBSITE", "https://api.developmentseed.org/satellites/"),
        description="Website reported in meta.website"
    )
    author: str = Field(
        default_factory=lambda: os.getenv("SAT_AUTHOR", "Development Seed"),
        description="Author reported by the legacy endpoint"
    )

    # Index layout
    date_field: str = Field(
        default_factory=lambda: os.getenv("SAT_DATE_FIELD", "date"),
        description="Date field used for sorting and the date histogram"
    )
    footprint_field: str = Field(
        default_factory=lambda: os.getenv("SAT_FOOTPRINT_FIELD", "data_geometry"),
        description="geo_shape field holding each scene footprint"
    )

    # Behaviour
    default_limit: int = Field(
        default_factory=lambda: int(os.getenv("SAT_DEFAULT_LIMIT", "1")),
        ge=1,
        description="Page size when the request has no limit"
    )
    legacy_filter: str = Field(
        default_factory=lambda: os.getenv("SAT_LEGACY_FILTER", "satellite_name:landsat"),
        description="Query string ANDed into legacy searches"
    )
    found_short_page_correction: bool = Field(
        default_factory=lambda: os.getenv("SAT_FOUND_SHORT_PAGE_CORRECTION", "true").lower() == "true",
        description=(
            "Replace meta.found by the AOI-filtered count, but only when that "
            "count is below the page size (historical behaviour)"
        )
    )


# Singleton instance cache
_config_cache: Optional[SatSearchConfig] = None


def get_sat_config() -> SatSearchConfig:
    """
    Get singleton satellite search configuration.

    Returns:
        Cached configuration instance
    """
    global _config_cache

    if _config_cache is None:
        _config_cache = SatSearchConfig()

    return _config_cache
