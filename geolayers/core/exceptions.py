# geolayers/core/exceptions.py


class GeoLayersError(Exception):
    """Base class for errors raised by the spatial engine."""


class InvalidGeometryType(GeoLayersError, ValueError):
    """Geometry payload has a missing/unrecognized type or malformed coordinates."""


class InvalidArgument(GeoLayersError, ValueError):
    """Null or malformed input handed to the geometry store."""


class GeometryNotFound(GeoLayersError, LookupError):
    """A geometry reference has no stored record."""

    def __init__(self, geometry_id: str):
        super().__init__(f"Geometry {geometry_id} not found")
        self.geometry_id = geometry_id


class FilterGeometryNotFound(GeoLayersError, LookupError):
    """No layer resolves the filter text to a boundary."""

    def __init__(self, filter_value: str):
        super().__init__(
            f'Could not find boundary data for "{filter_value}". '
            "Try searching for a known neighborhood, park, or school zone."
        )
        self.filter_value = filter_value


class UpstreamUnavailable(GeoLayersError):
    """The open-data portal did not return a usable layer."""
