"""
boundaries.py — Country boundary polygons and membership tests.

A country owns one or more polygons (mainland, islands, exclaves). An
epicentre belongs to a country when it falls inside ANY of them:

    contains(p, cc) = ∃ poly ∈ polygons_for(cc) : p ∈ poly

Within a polygon, holes (enclaves belonging to someone else) are cut out,
but a hole's edge still counts as inside — the closed-boundary rule holds
everywhere.

Overlapping claims between countries are not disambiguated: each lookup
is answered for the requested country code only.

Dataset lifecycle
=================
The default index is read from a packaged GeoJSON FeatureCollection
(``data/country_boundaries.geojson``) or from ``settings.BOUNDARY_DATA_PATH``.
It is built lazily on first use behind a lock, then shared read-only for
the rest of the process. Any ``BoundaryIndex`` can be injected instead,
e.g. a small synthetic one in tests.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple, Union

from quakefeed.core.config import settings
from quakefeed.core.errors import UnknownCountryError
from quakefeed.spatial.geometry import (
    EDGE_EPSILON,
    Coordinate,
    LatLon,
    point_in_ring,
    point_on_boundary,
    split_at_antimeridian,
)

logger = logging.getLogger(__name__)

PACKAGED_DATASET = "country_boundaries.geojson"

# Property keys tried in order. Natural Earth sets ISO_A2 to "-99" for some
# countries (France, Norway) and puts the code in ISO_A2_EH instead.
CODE_PROPERTIES = ("iso_a2", "ISO_A2", "iso_a2_eh", "ISO_A2_EH")
NAME_PROPERTIES = ("name", "NAME", "admin", "ADMIN")
UNASSIGNED_CODE = "-99"

PointLike = Union[Coordinate, Tuple[float, float]]


# ═══════════════════════════════════════════════════════════════════════════
# Data Structures
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BoundaryPolygon:
    """One closed ring of a country's territory, with optional holes."""
    country_code: str
    ring: Tuple[LatLon, ...]
    holes: Tuple[Tuple[LatLon, ...], ...] = ()

    # Latitude band of the outer ring, for cheap rejection
    min_lat: float = field(init=False, repr=False, compare=False)
    max_lat: float = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if len(self.ring) < 3:
            raise ValueError(
                f"Polygon for {self.country_code} needs at least 3 vertices, "
                f"got {len(self.ring)}"
            )
        lats = [lat for lat, _ in self.ring]
        object.__setattr__(self, "min_lat", min(lats))
        object.__setattr__(self, "max_lat", max(lats))

    def contains(self, lat: float, lon: float) -> bool:
        if not (self.min_lat - EDGE_EPSILON <= lat <= self.max_lat + EDGE_EPSILON):
            return False
        if not point_in_ring(lat, lon, self.ring):
            return False
        for hole in self.holes:
            if point_in_ring(lat, lon, hole) and not point_on_boundary(lat, lon, hole):
                return False
        return True


@dataclass(frozen=True)
class CountryBoundary:
    """All polygons for one ISO-3166 alpha-2 code."""
    country_code: str
    name: str
    polygons: Tuple[BoundaryPolygon, ...]


class BoundaryDataSource(Protocol):
    """Supplies raw boundary data when an index is built."""

    def load(self) -> Mapping[str, CountryBoundary]:
        ...


# ═══════════════════════════════════════════════════════════════════════════
# GeoJSON Source
# ═══════════════════════════════════════════════════════════════════════════

def _ring_from_geojson(coords: Iterable[Iterable[float]]) -> Tuple[LatLon, ...]:
    """GeoJSON positions are [lon, lat]; rings here are (lat, lon)."""
    ring = tuple((float(pos[1]), float(pos[0])) for pos in coords)
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring = ring[:-1]
    return ring


def _hemisphere(ring: Tuple[LatLon, ...]) -> bool:
    return sum(lon for _, lon in ring) >= 0.0


def _split_polygon(
    code: str,
    outer: Tuple[LatLon, ...],
    holes: List[Tuple[LatLon, ...]],
) -> List[BoundaryPolygon]:
    """One polygon, or one per hemisphere when the outline crosses ±180°."""
    pieces = split_at_antimeridian(outer)
    if len(pieces) == 1:
        return [BoundaryPolygon(code, outer, tuple(holes))]

    hole_pieces = [piece for hole in holes for piece in split_at_antimeridian(hole)]
    return [
        BoundaryPolygon(
            code, piece,
            tuple(h for h in hole_pieces if _hemisphere(h) == _hemisphere(piece)),
        )
        for piece in pieces
    ]


def _polygons_from_geometry(code: str, geometry: Mapping[str, Any]) -> List[BoundaryPolygon]:
    gtype = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if gtype == "Polygon":
        polygon_coords = [coords]
    elif gtype == "MultiPolygon":
        polygon_coords = coords
    else:
        raise ValueError(f"Unsupported geometry type for {code}: {gtype!r}")

    polygons: List[BoundaryPolygon] = []
    for rings in polygon_coords:
        if not rings:
            continue
        outer, *holes = rings
        polygons.extend(_split_polygon(
            code,
            _ring_from_geojson(outer),
            [_ring_from_geojson(h) for h in holes],
        ))
    return polygons


def _first_property(props: Mapping[str, Any], keys: Tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = str(props.get(key) or "").strip()
        if value and value != UNASSIGNED_CODE:
            return value
    return None


class GeoJSONBoundarySource:
    """
    Reads a GeoJSON FeatureCollection of country geometries.

    Each feature needs an ISO-3166 alpha-2 code and a Polygon or
    MultiPolygon geometry. Natural Earth admin-0 files load as they are:
    the code is the first usable value of ``CODE_PROPERTIES`` (so a
    ``"-99"`` ISO_A2 falls back to ISO_A2_EH) and the name comes from
    ``NAME_PROPERTIES``. Features without any usable code are skipped.
    Features sharing a code are merged. Rings crossing ±180° are split.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None

    def _read_text(self) -> str:
        if self.path is not None:
            return self.path.read_text(encoding="utf-8")
        return (
            resources.files("quakefeed.spatial")
            .joinpath("data").joinpath(PACKAGED_DATASET)
            .read_text(encoding="utf-8")
        )

    def load(self) -> Mapping[str, CountryBoundary]:
        data = json.loads(self._read_text())
        grouped: Dict[str, List[BoundaryPolygon]] = {}
        names: Dict[str, str] = {}

        for feature in data.get("features", []):
            props = feature.get("properties") or {}
            code = _first_property(props, CODE_PROPERTIES)
            if code is None:
                continue
            code = code.upper()
            grouped.setdefault(code, []).extend(
                _polygons_from_geometry(code, feature.get("geometry") or {})
            )
            names.setdefault(code, _first_property(props, NAME_PROPERTIES) or code)

        return {
            code: CountryBoundary(code, names[code], tuple(polys))
            for code, polys in grouped.items()
        }


# ═══════════════════════════════════════════════════════════════════════════
# Index
# ═══════════════════════════════════════════════════════════════════════════

def normalize_country_code(code: str) -> str:
    return code.strip().upper()


class BoundaryIndex:
    """
    Read-only country code → polygons lookup.

    Usage:
        index = BoundaryIndex.from_source(GeoJSONBoundarySource())
        index.contains(Coordinate(39.93, 32.85), "TR")   # True
    """

    def __init__(self, countries: Mapping[str, CountryBoundary]):
        self._countries: Mapping[str, CountryBoundary] = MappingProxyType({
            normalize_country_code(code): boundary
            for code, boundary in countries.items()
        })

    @classmethod
    def from_source(cls, source: BoundaryDataSource) -> "BoundaryIndex":
        return cls(source.load())

    @classmethod
    def from_polygons(
        cls,
        polygons: Mapping[str, Iterable[Iterable[LatLon]]],
    ) -> "BoundaryIndex":
        """Build an index from plain ``{code: [ring, ...]}`` data."""
        countries = {}
        for code, rings in polygons.items():
            cc = normalize_country_code(code)
            countries[cc] = CountryBoundary(
                cc, cc,
                tuple(BoundaryPolygon(cc, tuple(ring)) for ring in rings),
            )
        return cls(countries)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and normalize_country_code(code) in self._countries

    def __len__(self) -> int:
        return len(self._countries)

    def country_codes(self) -> Tuple[str, ...]:
        return tuple(sorted(self._countries))

    def name_for(self, code: str) -> str:
        return self._boundary(code).name

    def _boundary(self, code: str) -> CountryBoundary:
        boundary = self._countries.get(normalize_country_code(code))
        if boundary is None:
            raise UnknownCountryError(code)
        return boundary

    def polygons_for(self, code: str) -> Tuple[BoundaryPolygon, ...]:
        """All polygons of a country. Raises UnknownCountryError."""
        return self._boundary(code).polygons

    def contains(self, point: PointLike, code: str) -> bool:
        """
        Is ``point`` inside any polygon of ``code`` (boundary inclusive)?

        Parameters
        ----------
        point : Coordinate | (lat, lon)
            Epicentre to test.
        code : str
            ISO-3166 alpha-2 country code (case-insensitive).

        Raises
        ------
        UnknownCountryError
            If the code has no boundary data.
        """
        if isinstance(point, Coordinate):
            lat, lon = point.latitude, point.longitude
        else:
            lat, lon = float(point[0]), float(point[1])
        return any(poly.contains(lat, lon) for poly in self.polygons_for(code))


# ═══════════════════════════════════════════════════════════════════════════
# Process-wide default
# ═══════════════════════════════════════════════════════════════════════════

_default_index: Optional[BoundaryIndex] = None
_default_lock = threading.Lock()


def get_boundary_index() -> BoundaryIndex:
    """Return the shared index, loading it on first use."""
    global _default_index
    index = _default_index
    if index is not None:
        return index

    with _default_lock:
        if _default_index is None:
            source = GeoJSONBoundarySource(settings.BOUNDARY_DATA_PATH)
            _default_index = BoundaryIndex.from_source(source)
            logger.info(
                "Boundary index loaded: %d countries (%s)",
                len(_default_index),
                settings.BOUNDARY_DATA_PATH or "packaged dataset",
            )
        return _default_index
