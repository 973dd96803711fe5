# ============================================================================
# CONTEXT - GEOMETRY VALIDATION & OPERATIONS
# ============================================================================
# STATUS: Standalone Module - GeoJSON validation and geometric primitives
# PURPOSE: Validate caller GeoJSON and expose area/intersection primitives
# EXPORTS: GeometryOperations, get_geometry_operations, parse_geojson,
#          validate_geojson, geometry_components
# DEPENDENCIES: geojson, shapely, pyproj
# PATTERNS: Capability object (swap GeometryOperations without touching callers)
# ============================================================================

"""
Geometry Validation and Operations

Two concerns live here:

1. Validation of caller-supplied GeoJSON (`validate_geojson`):
   - JSON strings are parsed, objects are used as-is
   - Structure is checked with the `geojson` library (ring closure,
     position arity, JSON-compliant numbers) plus a non-empty coordinates check
   - Polygons are rejected when two non-adjacent edges intersect

2. Geometric primitives (`GeometryOperations`):
   - area(geometry)               -> equal-area (EPSG:6933) area in square metres
   - intersect(a, b)              -> GeoJSON geometry or None when disjoint
   - self_intersections(polygon)  -> list of (x, y) crossing points

The query compiler and the AOI coverage filter only talk to the capability
object, so another geometry backend can be substituted by passing a different
instance.
"""

import json
import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple, Union

import geojson
from pyproj import Transformer
from shapely import STRtree
from shapely.geometry import LineString, mapping, shape
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform
from shapely.validation import make_valid

from .exceptions import InvalidGeoJson, SelfIntersectingPolygon

logger = logging.getLogger(__name__)

GEOMETRY_TYPES = {
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
    "GeometryCollection",
}
GEOJSON_TYPES = GEOMETRY_TYPES | {"Feature", "FeatureCollection"}

SOURCE_CRS = "EPSG:4326"
# NSIDC EASE-Grid 2.0 global, cylindrical equal-area on WGS84
EQUAL_AREA_CRS = "EPSG:6933"

GeometryLike = Union[Dict[str, Any], BaseGeometry]


# ============================================================================
# GEOMETRY OPERATIONS
# ============================================================================

class GeometryOperations:
    """
    Geometric primitives backed by shapely (topology) and pyproj (projection).

    Accepts GeoJSON mappings or shapely geometries; returns GeoJSON mappings.
    Feature and FeatureCollection inputs are reduced to their geometries.

    Areas are measured after projecting WGS84 lon/lat onto a cylindrical
    equal-area CRS. Meridians and parallels stay straight there, so the pieces
    produced by the lon/lat intersection in `intersect` add up to the area of
    the whole (a footprint covering half an AOI scores exactly 50%).
    """

    def __init__(self, equal_area_crs: str = EQUAL_AREA_CRS):
        self.transformer = Transformer.from_crs(SOURCE_CRS, equal_area_crs, always_xy=True)

    def area(self, geometry: GeometryLike) -> float:
        """Area in square metres, summed over all components."""
        total = 0.0
        for component in self._shapes(geometry):
            total += transform(self.transformer.transform, component).area
        return total

    def intersect(self, geometry_a: GeometryLike, geometry_b: GeometryLike) -> Optional[Dict[str, Any]]:
        """Intersection of two geometries, or None when they do not overlap."""
        shape_a = self._valid_shape(geometry_a)
        shape_b = self._valid_shape(geometry_b)

        if not shape_a.intersects(shape_b):
            return None

        result = shape_a.intersection(shape_b)
        if result.is_empty:
            return None
        return mapping(result)

    def self_intersections(self, polygon: GeometryLike) -> List[Tuple[float, float]]:
        """
        Points where two non-adjacent edges of a (multi)polygon meet.

        Every ring is broken into segments; candidate pairs come from an
        STRtree query and pairs sharing a vertex within the same ring are
        skipped. An empty list means the polygon is simple.
        """
        geom = polygon if isinstance(polygon, BaseGeometry) else shape(polygon)
        if geom.geom_type == "MultiPolygon":
            polygons = list(geom.geoms)
        elif geom.geom_type == "Polygon":
            polygons = [geom]
        else:
            return []

        points: List[Tuple[float, float]] = []
        for poly in polygons:
            segments, owners = self._ring_segments(poly)
            if len(segments) < 2:
                continue

            tree = STRtree(segments)
            left, right = tree.query(segments, predicate="intersects")

            for a, b in zip(left.tolist(), right.tolist()):
                if a >= b or self._adjacent(owners[a], owners[b]):
                    continue
                crossing = segments[a].intersection(segments[b])
                points.extend(_representative_points(crossing))

        return points

    # ------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------

    @staticmethod
    def _ring_segments(poly) -> Tuple[List[LineString], List[Tuple[int, int, int]]]:
        segments = []
        owners = []
        for ring_index, ring in enumerate([poly.exterior, *poly.interiors]):
            coords = _dedupe_consecutive(list(ring.coords))
            count = len(coords) - 1
            for i in range(count):
                segments.append(LineString([coords[i], coords[i + 1]]))
                owners.append((ring_index, i, count))
        return segments, owners

    @staticmethod
    def _adjacent(owner_a: Tuple[int, int, int], owner_b: Tuple[int, int, int]) -> bool:
        ring_a, index_a, count = owner_a
        ring_b, index_b, _ = owner_b
        if ring_a != ring_b:
            return False
        gap = abs(index_a - index_b)
        return gap == 1 or gap == count - 1

    def _shapes(self, geometry: GeometryLike) -> List[BaseGeometry]:
        if isinstance(geometry, BaseGeometry):
            return [geometry]
        return [shape(component) for component in geometry_components(geometry)]

    @staticmethod
    def _valid_shape(geometry: GeometryLike) -> BaseGeometry:
        geom = geometry if isinstance(geometry, BaseGeometry) else shape(geometry)
        if not geom.is_valid:
            geom = make_valid(geom)
        return geom


@lru_cache(maxsize=1)
def get_geometry_operations() -> GeometryOperations:
    """Process-wide default geometry backend."""
    return GeometryOperations()


def _dedupe_consecutive(coords: List[tuple]) -> List[tuple]:
    result = []
    for coord in coords:
        if not result or coord != result[-1]:
            result.append(coord)
    return result


def _representative_points(geom: BaseGeometry) -> List[Tuple[float, float]]:
    if geom.is_empty:
        return []
    if geom.geom_type == "Point":
        return [(geom.x, geom.y)]
    if hasattr(geom, "geoms"):
        points = []
        for part in geom.geoms:
            points.extend(_representative_points(part))
        return points
    # Collinear overlap: report where it starts
    x, y = geom.coords[0][:2]
    return [(x, y)]


# ============================================================================
# PARSING & VALIDATION
# ============================================================================

def parse_geojson(value: Any) -> Dict[str, Any]:
    """
    Normalize a GeoJSON value to a dict.

    Raises:
        InvalidGeoJson: If a string does not parse as JSON or the value is not an object
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError as e:
            raise InvalidGeoJson() from e

    if not isinstance(value, dict):
        raise InvalidGeoJson()

    return value


def geometry_components(obj: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Geometries making up a GeoJSON object.

    FeatureCollection -> each feature's geometry, Feature -> its geometry,
    bare geometry -> itself. Missing geometries are returned as None.
    """
    geojson_type = obj.get("type")
    if geojson_type == "FeatureCollection":
        return [
            feature.get("geometry") if isinstance(feature, dict) else None
            for feature in obj.get("features") or []
        ]
    if geojson_type == "Feature":
        return [obj.get("geometry")]
    return [obj]


def validate_geojson(
    value: Any,
    check_self_intersection: bool = True,
    geometry_ops: Optional[GeometryOperations] = None
) -> Dict[str, Any]:
    """
    Validate caller-supplied GeoJSON.

    Args:
        value: GeoJSON object or JSON-encoded string
        check_self_intersection: Reject polygons with crossing edges
        geometry_ops: Geometry backend (process default if not provided)

    Returns:
        The parsed GeoJSON dict

    Raises:
        InvalidGeoJson: Unparseable or structurally invalid input
        SelfIntersectingPolygon: A polygon has non-adjacent edges that cross
    """
    obj = parse_geojson(value)
    _check_structure(obj)

    if check_self_intersection:
        ops = geometry_ops or get_geometry_operations()
        for component in _polygonal_members(geometry_components(obj)):
            points = ops.self_intersections(component)
            if points:
                logger.info(f"Rejected self-intersecting {component['type']} ({len(points)} crossings)")
                raise SelfIntersectingPolygon(points)

    return obj


def _check_structure(obj: Dict[str, Any]) -> None:
    if obj.get("type") not in GEOJSON_TYPES:
        raise InvalidGeoJson()

    try:
        instance = geojson.loads(json.dumps(obj))
    except (TypeError, ValueError, AttributeError, KeyError) as e:
        raise InvalidGeoJson() from e

    if not isinstance(instance, geojson.GeoJSON) or not instance.is_valid:
        raise InvalidGeoJson()

    components = geometry_components(obj)
    if not components:
        raise InvalidGeoJson()

    for component in components:
        if not _has_coordinates(component):
            raise InvalidGeoJson()


def _polygonal_members(geometries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Polygons and multipolygons, including those nested in geometry collections."""
    members = []
    for geometry in geometries:
        if geometry["type"] == "GeometryCollection":
            members.extend(_polygonal_members(geometry.get("geometries") or []))
        elif geometry["type"] in ("Polygon", "MultiPolygon"):
            members.append(geometry)
    return members


def _has_coordinates(geometry: Any) -> bool:
    if not isinstance(geometry, dict) or geometry.get("type") not in GEOMETRY_TYPES:
        return False
    if geometry["type"] == "GeometryCollection":
        members = geometry.get("geometries") or []
        return bool(members) and all(_has_coordinates(member) for member in members)
    coordinates = geometry.get("coordinates")
    return isinstance(coordinates, list) and len(coordinates) > 0
