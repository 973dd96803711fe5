# ============================================================================
# CONTEXT - AOI COVERAGE FILTER
# ============================================================================
# STATUS: Standalone Module - Post-filter for search results
# PURPOSE: Drop results whose footprint covers too little of the area of interest
# EXPORTS: filter_by_aoi_coverage, coverage_percentage
# DEPENDENCIES: sat_search.geometry (shapely, pyproj)
# ============================================================================

"""
AOI Coverage Filter

For every result, the share of the query geometry (AOI) covered by the
result's footprint is computed as

    sum over AOI components f of  area(f ∩ footprint) / area(AOI) * 100

and results below the requested threshold are dropped. Order is preserved,
so filtering twice with the same spec returns the same list.

The AOI was validated when the query was compiled; here it is only
normalized (string -> object) and structurally re-checked.
"""

import logging
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError
from .geometry import GeometryOperations, geometry_components, get_geometry_operations, validate_geojson
from .models import AoiCoverageSpec

logger = logging.getLogger(__name__)

# Decimal places kept before the threshold comparison
PERCENTAGE_DECIMALS = 9


def coverage_percentage(
    aoi_components: List[Dict[str, Any]],
    footprint: Optional[Dict[str, Any]],
    aoi_area: float,
    geometry_ops: GeometryOperations
) -> float:
    """
    Percentage of the AOI covered by a footprint.

    Args:
        aoi_components: Geometries making up the AOI
        footprint: Result footprint geometry (None scores 0)
        aoi_area: Area of the whole AOI (must be positive)
        geometry_ops: Geometry backend

    Returns:
        Coverage percentage rounded to PERCENTAGE_DECIMALS (0 when nothing overlaps)
    """
    if not footprint:
        return 0.0

    percentage = 0.0
    for component in aoi_components:
        overlap = geometry_ops.intersect(component, footprint)
        if overlap is None:
            continue
        percentage += geometry_ops.area(overlap) / aoi_area * 100

    return round(percentage, PERCENTAGE_DECIMALS)


def filter_by_aoi_coverage(
    results: List[Dict[str, Any]],
    aoi_spec: Optional[AoiCoverageSpec],
    footprint_field: str = "data_geometry",
    geometry_ops: Optional[GeometryOperations] = None
) -> List[Dict[str, Any]]:
    """
    Keep results whose footprint covers at least `aoi_spec.threshold` percent of the AOI.

    Args:
        results: Source documents, in store order
        aoi_spec: Threshold and AOI geometry; None returns `results` unchanged
        footprint_field: Document field holding the footprint geometry
        geometry_ops: Geometry backend (process default if not provided)

    Returns:
        Surviving results, order preserved

    Raises:
        InvalidGeoJson: AOI geometry is not valid GeoJSON
        ConfigurationError: AOI geometry has zero area
    """
    if aoi_spec is None:
        return results

    ops = geometry_ops or get_geometry_operations()
    geometry = validate_geojson(aoi_spec.geometry, check_self_intersection=False, geometry_ops=ops)

    aoi_area = ops.area(geometry)
    if aoi_area <= 0:
        raise ConfigurationError(
            "AOI coverage requires an intersects geometry with a non-zero area"
        )

    components = geometry_components(geometry)
    kept = [
        result for result in results
        if coverage_percentage(components, result.get(footprint_field), aoi_area, ops) >= aoi_spec.threshold
    ]

    logger.info(
        f"AOI coverage filter kept {len(kept)}/{len(results)} results "
        f"(threshold {aoi_spec.threshold}%)"
    )

    return kept
