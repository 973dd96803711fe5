# ============================================================================
# CONTEXT - QUERY COMPILER
# ============================================================================
# STATUS: Standalone Module - Parameter map to search query plan
# PURPOSE: Translate flat request parameters into a boolean query plan
# EXPORTS: ParameterKind, classify_parameter, classify_parameters,
#          ClassifiedParameters, QueryPlan, compile_query, split_fields
# DEPENDENCIES: sat_search.geometry, sat_search.config
# PATTERNS: Ordered rule list, pure fold into typed buckets, Query Builder
# ============================================================================

"""
Query Compiler

Every parameter key is classified once by an ordered rule list:

    Control     limit, page, skip, fields            -> no clause
    FreeText    search                               -> query_string (sole clause)
    Contains    contains=lon,lat                     -> 1km circle geo_shape
    Intersects  intersects=<GeoJSON>                 -> OR-group of geo_shape
    Range       <field>_from / <field>_to            -> inclusive range
                cloud_from / cloud_to                -> range on cloud_coverage
    Term        everything else                      -> exact match

Clauses are then built from the classified buckets in a fixed order
(contains, intersects, ranges, aliased terms, remaining terms) and ANDed.
A plan without clauses matches everything. Every plan sorts by date, newest
first.

The resulting QueryPlan is store-agnostic; `to_dsl()` / `to_body()` render
it as Elasticsearch query DSL.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .config import SatSearchConfig, get_sat_config
from .exceptions import InvalidCoordinates
from .geometry import GeometryOperations, geometry_components, validate_geojson

logger = logging.getLogger(__name__)

CONTROL_KEYS = ("limit", "page", "skip", "fields")
FREE_TEXT_KEY = "search"
CONTAINS_KEY = "contains"
INTERSECTS_KEY = "intersects"

RANGE_ALIASES = {
    "cloud_from": ("cloud_coverage", "from"),
    "cloud_to": ("cloud_coverage", "to"),
}
RANGE_SUFFIXES = {"_from": "from", "_to": "to"}

# (parameter, field) in the order clauses are emitted
TERM_ALIASES = (
    ("scene_id", "scene_id"),
    ("sensor", "satellite_name"),
)

CONTAINS_PATTERN = re.compile(r"[-0-9.,]+")
CONTAINS_RADIUS = "1km"


# ============================================================================
# PARAMETER CLASSIFICATION
# ============================================================================

class ParameterKind(str, Enum):
    """Classification of a request parameter key."""
    CONTROL = "control"
    FREE_TEXT = "free_text"
    CONTAINS = "contains"
    INTERSECTS = "intersects"
    RANGE = "range"
    TERM = "term"


def _is_range_key(key: str) -> bool:
    return key in RANGE_ALIASES or key.endswith(tuple(RANGE_SUFFIXES))


# First match wins; unmatched keys are terms
_CLASSIFICATION_RULES = (
    (lambda key: key in CONTROL_KEYS, ParameterKind.CONTROL),
    (lambda key: key == FREE_TEXT_KEY, ParameterKind.FREE_TEXT),
    (lambda key: key == CONTAINS_KEY, ParameterKind.CONTAINS),
    (lambda key: key == INTERSECTS_KEY, ParameterKind.INTERSECTS),
    (_is_range_key, ParameterKind.RANGE),
)


def classify_parameter(key: str) -> ParameterKind:
    """Classify a single parameter key."""
    for matches, kind in _CLASSIFICATION_RULES:
        if matches(key):
            return kind
    return ParameterKind.TERM


def range_target(key: str) -> Tuple[str, str]:
    """
    Split a range key into (field, bound).

    Example: "date_from" -> ("date", "from"), "cloud_to" -> ("cloud_coverage", "to")
    """
    if key in RANGE_ALIASES:
        return RANGE_ALIASES[key]
    for suffix, bound in RANGE_SUFFIXES.items():
        if key.endswith(suffix):
            return key[:-len(suffix)], bound
    raise ValueError(f"'{key}' is not a range parameter")


@dataclass(frozen=True)
class ClassifiedParameters:
    """Parameters sorted into typed buckets. Built once, never mutated."""
    free_text: Optional[str] = None
    contains: Optional[Any] = None
    intersects: Optional[Any] = None
    ranges: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    terms: Dict[str, Any] = field(default_factory=dict)


def classify_parameters(params: Dict[str, Any]) -> ClassifiedParameters:
    """
    Fold a parameter map into ClassifiedParameters.

    Empty search/contains/intersects values are dropped. Range bounds are
    grouped by target field; term values keep their request order.
    """
    free_text = None
    contains = None
    intersects = None
    ranges: Dict[str, Dict[str, Any]] = {}
    terms: Dict[str, Any] = {}

    for key, value in params.items():
        kind = classify_parameter(key)

        if kind == ParameterKind.FREE_TEXT:
            free_text = value or None
        elif kind == ParameterKind.CONTAINS:
            contains = value or None
        elif kind == ParameterKind.INTERSECTS:
            intersects = value or None
        elif kind == ParameterKind.RANGE:
            target, bound = range_target(key)
            ranges.setdefault(target, {})[bound] = value
        elif kind == ParameterKind.TERM:
            terms[key] = value

    return ClassifiedParameters(
        free_text=free_text,
        contains=contains,
        intersects=intersects,
        ranges=ranges,
        terms=terms
    )


def split_fields(fields: Union[str, List[str], None]) -> List[str]:
    """Split a comma-separated `fields` value into field names."""
    if not fields:
        return []
    if isinstance(fields, str):
        fields = fields.split(",")
    return [str(name).strip() for name in fields if str(name).strip()]


# ============================================================================
# CLAUSES
# ============================================================================

@dataclass(frozen=True)
class FreeTextClause:
    """Lucene query string over all fields."""
    query: str

    def to_dsl(self) -> Dict[str, Any]:
        return {"query_string": {"query": self.query}}


@dataclass(frozen=True)
class GeoShapeClause:
    """Footprint intersects the given shape."""
    field: str
    shape: Dict[str, Any]

    def to_dsl(self) -> Dict[str, Any]:
        return {"geo_shape": {self.field: {"shape": self.shape}}}


@dataclass(frozen=True)
class AnyOfClause:
    """At least one member clause must match."""
    clauses: Tuple[Any, ...]

    def to_dsl(self) -> Dict[str, Any]:
        return {
            "bool": {
                "should": [clause.to_dsl() for clause in self.clauses],
                "minimum_should_match": 1
            }
        }


@dataclass(frozen=True)
class RangeClause:
    """Inclusive range; either bound may be open."""
    field: str
    gte: Any = None
    lte: Any = None

    def to_dsl(self) -> Dict[str, Any]:
        bounds = {}
        if self.gte is not None:
            bounds["gte"] = self.gte
        if self.lte is not None:
            bounds["lte"] = self.lte
        return {"range": {self.field: bounds}}


@dataclass(frozen=True)
class TermClause:
    """Exact, non-lenient match on a single field."""
    field: str
    value: Any

    def to_dsl(self) -> Dict[str, Any]:
        return {
            "match": {
                self.field: {
                    "query": self.value,
                    "lenient": False,
                    "zero_terms_query": "none"
                }
            }
        }


Clause = Union[FreeTextClause, GeoShapeClause, AnyOfClause, RangeClause, TermClause]


@dataclass(frozen=True)
class QueryPlan:
    """Conjunction of clauses plus a descending date sort."""
    clauses: Tuple[Clause, ...] = ()
    sort_field: str = "date"

    @property
    def is_match_all(self) -> bool:
        return not self.clauses

    @property
    def is_free_text(self) -> bool:
        return any(isinstance(clause, FreeTextClause) for clause in self.clauses)

    def to_dsl(self) -> Dict[str, Any]:
        """Render the query part as Elasticsearch DSL."""
        if self.is_match_all:
            return {"match_all": {}}
        if self.is_free_text:
            return self.clauses[0].to_dsl()
        return {"bool": {"must": [clause.to_dsl() for clause in self.clauses]}}

    def to_body(self, include_sort: bool = True) -> Dict[str, Any]:
        """Render the search body (query and sort)."""
        body: Dict[str, Any] = {"query": self.to_dsl()}
        if include_sort:
            body["sort"] = [{self.sort_field: {"order": "desc"}}]
        return body


# ============================================================================
# COMPILER
# ============================================================================

def compile_query(
    params: Dict[str, Any],
    config: Optional[SatSearchConfig] = None,
    geometry_ops: Optional[GeometryOperations] = None
) -> QueryPlan:
    """
    Compile request parameters into a QueryPlan.

    Args:
        params: Flat parameter map (query string or JSON body)
        config: Search configuration (singleton if not provided)
        geometry_ops: Geometry backend used to validate `intersects`

    Returns:
        QueryPlan

    Raises:
        InvalidCoordinates: Malformed or out-of-range `contains`
        InvalidGeoJson: Unparseable or invalid `intersects`
        SelfIntersectingPolygon: `intersects` polygon crosses itself
    """
    config = config or get_sat_config()
    classified = classify_parameters(params)

    # Legacy free-text search ignores every other parameter
    if classified.free_text:
        return QueryPlan(
            clauses=(FreeTextClause(str(classified.free_text)),),
            sort_field=config.date_field
        )

    clauses: List[Clause] = []

    if classified.contains is not None:
        clauses.append(_contains_clause(classified.contains, config.footprint_field))

    if classified.intersects is not None:
        clauses.append(_intersects_clause(classified.intersects, config.footprint_field, geometry_ops))

    for target, bounds in classified.ranges.items():
        clauses.append(RangeClause(
            field=target,
            gte=_lower(bounds.get("from")),
            lte=_lower(bounds.get("to"))
        ))

    remaining = dict(classified.terms)
    for parameter, target in TERM_ALIASES:
        if parameter in remaining:
            clauses.append(TermClause(target, remaining.pop(parameter)))

    for key, value in remaining.items():
        clauses.append(TermClause(key, value))

    plan = QueryPlan(clauses=tuple(clauses), sort_field=config.date_field)
    logger.debug(f"Compiled {len(plan.clauses)} clauses from {len(params)} parameters")

    return plan


def _lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def _contains_clause(value: Any, footprint_field: str) -> GeoShapeClause:
    if not isinstance(value, str) or not CONTAINS_PATTERN.fullmatch(value):
        raise InvalidCoordinates(value)

    parts = value.split(",")
    if len(parts) != 2:
        raise InvalidCoordinates(value)

    try:
        lon, lat = float(parts[0]), float(parts[1])
    except ValueError:
        raise InvalidCoordinates(value) from None

    if not -180 <= lon <= 180 or not -90 <= lat <= 90:
        raise InvalidCoordinates(value)

    return GeoShapeClause(
        field=footprint_field,
        shape={"type": "circle", "coordinates": [lon, lat], "radius": CONTAINS_RADIUS}
    )


def _intersects_clause(
    value: Any,
    footprint_field: str,
    geometry_ops: Optional[GeometryOperations]
) -> AnyOfClause:
    geometry = validate_geojson(value, geometry_ops=geometry_ops)
    return AnyOfClause(tuple(
        GeoShapeClause(field=footprint_field, shape=_store_shape(component))
        for component in geometry_components(geometry)
    ))


def _store_shape(geometry: Dict[str, Any]) -> Dict[str, Any]:
    """GeoJSON geometry with the lower-case type names the store expects."""
    if geometry["type"] == "GeometryCollection":
        return {
            "type": "geometrycollection",
            "geometries": [_store_shape(member) for member in geometry["geometries"]]
        }
    return {"type": geometry["type"].lower(), "coordinates": geometry["coordinates"]}
