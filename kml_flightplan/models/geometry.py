"""Geometry value types.

A ``PolygonRing`` is the single output of geometry extraction and the
single geometry input of every downstream component.  Points are
concrete ``GeoPoint`` values; nothing downstream needs to guess field
names on a loosely-typed point object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

#: Closure tolerance in degrees.
CLOSURE_EPSILON = 1e-9

#: Minimum vertices of a ring once the closing duplicate is stripped.
MIN_RING_VERTICES = 3


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A WGS 84 position.

    Attributes:
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
    """

    latitude: float
    longitude: float

    def almost_equals(self, other: GeoPoint, eps: float = CLOSURE_EPSILON) -> bool:
        """Whether *other* is the same position within *eps* degrees.

        Only used to detect an explicitly closed ring.
        """
        return (
            abs(self.latitude - other.latitude) < eps
            and abs(self.longitude - other.longitude) < eps
        )


@dataclass(frozen=True, slots=True)
class PolygonRing:
    """An open polygon ring: >= 3 points, closing duplicate removed.

    Point order is the flight order of the generated waypoints.

    Raises:
        InsufficientVertices: If constructed with fewer than 3 points.
    """

    points: tuple[GeoPoint, ...]

    def __post_init__(self) -> None:
        if len(self.points) < MIN_RING_VERTICES:
            from kml_flightplan.activities.extract_geometry._validation import (
                InsufficientVertices,
            )

            msg = (
                f"Polygon must have at least {MIN_RING_VERTICES} unique points, "
                f"got {len(self.points)}."
            )
            raise InsufficientVertices(msg)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[GeoPoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> GeoPoint:
        return self.points[index]

    def as_lon_lat(self) -> list[tuple[float, float]]:
        """Return the ring as ``(lon, lat)`` tuples (KML axis order)."""
        return [(p.longitude, p.latitude) for p in self.points]

    def to_dict(self) -> dict[str, object]:
        """Serialise to a JSON-friendly dict."""
        return {"coordinates": [[lon, lat] for lon, lat in self.as_lon_lat()]}

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> PolygonRing:
        """Deserialise from ``to_dict()`` output.

        Raises:
            TypeError: If ``coordinates`` is not a list of pairs.
            InsufficientVertices: If fewer than 3 points are present.
        """
        raw = data.get("coordinates", [])
        if not isinstance(raw, list):
            msg = f"coordinates must be a list, got {type(raw).__name__}"
            raise TypeError(msg)
        points = []
        for pair in raw:
            if not isinstance(pair, list | tuple) or len(pair) < 2:
                msg = f"coordinate must be a [lon, lat] pair, got {pair!r}"
                raise TypeError(msg)
            points.append(GeoPoint(latitude=float(pair[1]), longitude=float(pair[0])))
        return cls(tuple(points))
