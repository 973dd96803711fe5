# ============================================================================
# CONTEXT - SATELLITE SEARCH EXCEPTIONS
# ============================================================================
# STATUS: Standalone Module - Error taxonomy for the satellite search API
# PURPOSE: Typed errors raised by the validator, compiler, filter and store
# EXPORTS: SatSearchError, InvalidGeoJson, SelfIntersectingPolygon,
#          InvalidCoordinates, StoreError, ConfigurationError
# DEPENDENCIES: none
# ============================================================================

"""
Satellite Search Exceptions

All errors are raised synchronously to the immediate caller and are never
retried. The HTTP triggers map them to status codes:

    InvalidGeoJson, SelfIntersectingPolygon, InvalidCoordinates -> 400
    ConfigurationError                                           -> 400
    StoreError                                                   -> 502
"""


class SatSearchError(Exception):
    """Base class for all satellite search errors."""

    error_type = "SatSearchError"


class InvalidGeoJson(SatSearchError, ValueError):
    """Geometry is not parseable or not structurally valid GeoJSON."""

    error_type = "InvalidGeoJson"

    def __init__(self, message: str = "Invalid Geojson"):
        super().__init__(message)


class SelfIntersectingPolygon(SatSearchError, ValueError):
    """A polygon ring has two non-adjacent edges that cross."""

    error_type = "SelfIntersectingPolygon"

    def __init__(self, points=None):
        self.points = list(points or [])
        message = "Invalid Polygon: polygon must not be self-intersecting"
        if self.points:
            message += f" (first intersection at {self.points[0]})"
        super().__init__(message)


class InvalidCoordinates(SatSearchError, ValueError):
    """The `contains` value is malformed or out of range."""

    error_type = "InvalidCoordinates"

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"Invalid coordinates: '{value}'. Expected 'lon,lat' with "
            "lon in [-180, 180] and lat in [-90, 90]"
        )


class StoreError(SatSearchError):
    """Opaque document store failure (the original exception is chained)."""

    error_type = "StoreError"


class ConfigurationError(SatSearchError):
    """Request cannot be evaluated as configured (e.g. zero-area AOI)."""

    error_type = "ConfigurationError"
