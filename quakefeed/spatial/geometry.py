"""
geometry.py — Planar point-in-polygon on (latitude, longitude) rings.

All coordinates are in **decimal degrees**. Rings are sequences of
``(latitude, longitude)`` vertices; the closing vertex may or may not be
repeated.

Ray casting around the anti-meridian
====================================
A naive ray cast on raw longitudes breaks for rings that straddle ±180°
(Fiji, the Aleutians, Chukotka): an edge from 179° to −179° looks 358° wide
when it is really 2° wide.

We therefore unwrap the ring into a local frame centred on the test point:

    x₀     = wrap(λ₀ − λₚ)
    xₖ₊₁   = xₖ + wrap(λₖ₊₁ − λₖ)
    y      = φ

where wrap() maps a longitude delta onto [−180, 180) — the shorter arc.
The test point sits at (0, φₚ) and a horizontal ray is cast towards +x.
An edge toggles the inside flag when it straddles φₚ and crosses the ray
at x > 0.

Splitting at the anti-meridian
==============================
Datasets should store territory that straddles ±180° as two rings, one
per hemisphere, each spanning less than 180° of longitude. A ring stored
as one continuous outline is cut with ``split_at_antimeridian``: its
longitudes are made continuous, the ring is clipped against the 180°
meridian on both sides, and the far piece is shifted back by 360°.

Closed boundary
===============
A point lying exactly on an edge or vertex counts as inside. Edge hits are
checked first with a small tolerance (``EDGE_EPSILON`` degrees) so repeated
queries of the same point always agree.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

LatLon = Tuple[float, float]

# Tolerance for the on-edge test (degrees; ~0.1 mm at the equator)
EDGE_EPSILON: float = 1e-9


@dataclass(frozen=True)
class Coordinate:
    """A geographic point in decimal degrees."""
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not (-90.0 <= self.latitude <= 90.0):
            raise ValueError(
                f"Latitude must be in [-90, 90], got {self.latitude}"
            )
        if not (-180.0 <= self.longitude <= 180.0):
            raise ValueError(
                f"Longitude must be in [-180, 180], got {self.longitude}"
            )

    @property
    def lat_rad(self) -> float:
        """Latitude in radians."""
        return math.radians(self.latitude)

    @property
    def lon_rad(self) -> float:
        """Longitude in radians."""
        return math.radians(self.longitude)


def wrap_longitude(delta: float) -> float:
    """
    Map a longitude difference onto [-180, 180).

    >>> wrap_longitude(358.0)
    -2.0
    >>> wrap_longitude(-181.0)
    179.0
    """
    return (delta + 180.0) % 360.0 - 180.0


def _unwrap_ring(ring: Sequence[LatLon], lon: float) -> List[Tuple[float, float]]:
    """Project a ring into the (x, y) frame centred on longitude ``lon``."""
    points: List[Tuple[float, float]] = []
    prev_lon = None
    x = 0.0
    for v_lat, v_lon in ring:
        if prev_lon is None:
            x = wrap_longitude(v_lon - lon)
        else:
            x += wrap_longitude(v_lon - prev_lon)
        prev_lon = v_lon
        points.append((x, v_lat))
    return points


def _on_segment(
    px: float, py: float,
    ax: float, ay: float,
    bx: float, by: float,
) -> bool:
    """Is (px, py) on the closed segment a→b (within EDGE_EPSILON)?"""
    if not (min(ax, bx) - EDGE_EPSILON <= px <= max(ax, bx) + EDGE_EPSILON
            and min(ay, by) - EDGE_EPSILON <= py <= max(ay, by) + EDGE_EPSILON):
        return False
    dx, dy = bx - ax, by - ay
    length = math.hypot(dx, dy)
    if length == 0.0:
        return math.hypot(px - ax, py - ay) <= EDGE_EPSILON
    cross = (px - ax) * dy - (py - ay) * dx
    return abs(cross) / length <= EDGE_EPSILON


def _closed(pts: List[Tuple[float, float]]) -> List[Tuple[float, float]]:
    if pts[0] != pts[-1]:
        pts.append(pts[0])
    return pts


def point_on_boundary(lat: float, lon: float, ring: Sequence[LatLon]) -> bool:
    """True when the point lies on one of the ring's edges or vertices."""
    if len(ring) < 2:
        return False
    pts = _closed(_unwrap_ring(ring, lon))
    return any(
        _on_segment(0.0, lat, ax, ay, bx, by)
        for (ax, ay), (bx, by) in zip(pts, pts[1:])
    )


def point_in_ring(lat: float, lon: float, ring: Sequence[LatLon]) -> bool:
    """
    Closed point-in-polygon test for a single ring.

    Parameters
    ----------
    lat, lon : float
        Test point in decimal degrees.
    ring : sequence of (lat, lon)
        Polygon vertices; need not repeat the first vertex at the end.

    Returns
    -------
    bool
        True when the point is strictly inside or on the boundary.

    Examples
    --------
    >>> square = [(0, 0), (0, 10), (10, 10), (10, 0)]
    >>> point_in_ring(5, 5, square), point_in_ring(0, 5, square)
    (True, True)
    >>> point_in_ring(11, 5, square)
    False
    >>> fiji = [(-19, 177), (-16, 177), (-16, -179), (-19, -179)]
    >>> point_in_ring(-17.5, 179.9, fiji), point_in_ring(-17.5, -179.5, fiji)
    (True, True)
    """
    if len(ring) < 3:
        return False

    pts = _closed(_unwrap_ring(ring, lon))

    py = lat
    inside = False
    for (ax, ay), (bx, by) in zip(pts, pts[1:]):
        if _on_segment(0.0, py, ax, ay, bx, by):
            return True
        if (ay > py) != (by > py):
            x_cross = ax + (py - ay) * (bx - ax) / (by - ay)
            if x_cross > 0.0:
                inside = not inside
    return inside


# ═══════════════════════════════════════════════════════════════════════════
# Anti-meridian splitting
# ═══════════════════════════════════════════════════════════════════════════

def crosses_antimeridian(ring: Sequence[LatLon]) -> bool:
    """True when some edge of the ring jumps across ±180° (raw Δλ > 180)."""
    return any(
        abs(b_lon - a_lon) > 180.0
        for (_, a_lon), (_, b_lon) in zip(ring, list(ring[1:]) + list(ring[:1]))
    )


def unwrap_longitudes(ring: Sequence[LatLon]) -> List[LatLon]:
    """Make consecutive longitudes continuous; results may leave [-180, 180]."""
    out: List[LatLon] = []
    for v_lat, v_lon in ring:
        if not out:
            out.append((v_lat, v_lon))
        else:
            out.append((v_lat, out[-1][1] + wrap_longitude(v_lon - out[-1][1])))
    return out


def _clip_at_meridian(
    ring: Sequence[LatLon],
    meridian: float,
    keep: Callable[[float], bool],
) -> List[LatLon]:
    """Sutherland-Hodgman clip of a ring against one vertical line."""
    clipped: List[LatLon] = []
    for (a_lat, a_lon), (b_lat, b_lon) in zip(ring, list(ring[1:]) + list(ring[:1])):
        a_in, b_in = keep(a_lon), keep(b_lon)
        if a_in:
            clipped.append((a_lat, a_lon))
        if a_in != b_in and a_lon != b_lon:
            t = (meridian - a_lon) / (b_lon - a_lon)
            crossing = (a_lat + t * (b_lat - a_lat), meridian)
            if not clipped or clipped[-1] != crossing:
                clipped.append(crossing)
    return clipped


def split_at_antimeridian(ring: Sequence[LatLon]) -> List[Tuple[LatLon, ...]]:
    """
    Cut a ring that crosses ±180° into one ring per hemisphere.

    A ring that does not cross is returned unchanged, as the only element.

    Examples
    --------
    >>> west, east = split_at_antimeridian([(-19, 177), (-16, 177), (-16, -179), (-19, -179)])
    >>> max(lon for _, lon in west), min(lon for _, lon in east)
    (180.0, -180.0)
    """
    if not crosses_antimeridian(ring):
        return [tuple(ring)]

    unwrapped = unwrap_longitudes(ring)
    if max(lon for _, lon in unwrapped) > 180.0:
        meridian, shift = 180.0, -360.0
    else:
        meridian, shift = -180.0, 360.0

    near = _clip_at_meridian(unwrapped, meridian, lambda lon: abs(lon) <= 180.0)
    far = _clip_at_meridian(unwrapped, meridian, lambda lon: abs(lon) >= 180.0)
    far = [(f_lat, f_lon + shift) for f_lat, f_lon in far]

    return [tuple(piece) for piece in (near, far) if len(piece) >= 3]
