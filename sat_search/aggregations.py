# ============================================================================
# CONTEXT - AGGREGATION BUILDER
# ============================================================================
# STATUS: Standalone Module - Count endpoint aggregations
# PURPOSE: Turn a `fields` list into date histogram and terms aggregations
# EXPORTS: compile_aggregation, AggregationPlan, aggregation_builders
# DEPENDENCIES: sat_search.queries, sat_search.config
# PATTERNS: Builder table keyed by field name
# ============================================================================

"""
Aggregation Builder

Builds the bucket aggregations behind the count endpoint from a
comma-separated `fields` parameter:

    date                    -> date_histogram  (daily buckets, newest first)
    satellite_name, ...     -> terms_<field>

Unknown field names are ignored. The remaining parameters are compiled into
the query the aggregations run over; no documents are requested.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .config import SatSearchConfig, get_sat_config
from .geometry import GeometryOperations
from .queries import QueryPlan, compile_query, split_fields

logger = logging.getLogger(__name__)

TERMS_FIELDS = (
    "satellite_name",
    "latitude_band",
    "utm_zone",
    "product_path",
    "grid_square",
    "sensing_orbit_number",
    "sensing_orbit_direction",
)

HISTOGRAM_INTERVAL = "day"
HISTOGRAM_FORMAT = "yyyy-MM-dd"  # renders bucket keys as YYYY-MM-DD


def date_histogram(field_name: str) -> Dict[str, Any]:
    """Daily date histogram keyed `<field>_histogram`."""
    return {
        f"{field_name}_histogram": {
            "date_histogram": {
                "field": field_name,
                "calendar_interval": HISTOGRAM_INTERVAL,
                "format": HISTOGRAM_FORMAT,
                "order": {"_key": "desc"}
            }
        }
    }


def terms(field_name: str) -> Dict[str, Any]:
    """Terms aggregation keyed `terms_<field>`."""
    return {f"terms_{field_name}": {"terms": {"field": field_name}}}


def aggregation_builders(config: SatSearchConfig) -> Dict[str, Callable[[str], Dict[str, Any]]]:
    """Recognized field names and the aggregation each one produces."""
    builders: Dict[str, Callable[[str], Dict[str, Any]]] = {config.date_field: date_histogram}
    for name in TERMS_FIELDS:
        builders[name] = terms
    return builders


@dataclass(frozen=True)
class AggregationPlan:
    """Aggregations plus the query they run over. Never returns hits."""
    query: QueryPlan
    aggregations: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    size: int = 0

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = self.query.to_body(include_sort=False)
        if self.aggregations:
            body["aggs"] = dict(self.aggregations)
        return body


def compile_aggregation(
    params: Dict[str, Any],
    config: Optional[SatSearchConfig] = None,
    geometry_ops: Optional[GeometryOperations] = None
) -> AggregationPlan:
    """
    Compile `fields` into aggregations and the rest into a query.

    Args:
        params: Flat parameter map
        config: Search configuration (singleton if not provided)
        geometry_ops: Geometry backend for `intersects` validation

    Returns:
        AggregationPlan with size 0
    """
    config = config or get_sat_config()
    builders = aggregation_builders(config)

    aggregations: Dict[str, Dict[str, Any]] = {}
    for name in split_fields(params.get("fields")):
        builder = builders.get(name)
        if builder is None:
            logger.debug(f"Ignoring unknown aggregation field '{name}'")
            continue
        aggregations.update(builder(name))

    remaining = {key: value for key, value in params.items() if key != "fields"}
    query = compile_query(remaining, config=config, geometry_ops=geometry_ops)

    return AggregationPlan(query=query, aggregations=aggregations, size=0)
