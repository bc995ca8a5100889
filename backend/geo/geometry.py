from __future__ import annotations

from typing import Any, Iterator

from shapely.errors import GEOSException
from shapely.geometry import MultiPolygon, Polygon

from geo.aoi import BBox, bbox_of_points

Ring = list[tuple[float, float]]


def to_polygonal(geometry: dict[str, Any] | None) -> Polygon | MultiPolygon | None:
    """
    Convert a GeoJSON Polygon/MultiPolygon dict into a valid shapely geometry.

    Returns None for anything we can't use as-is (unsupported type, too few
    vertices, empty, self-intersecting). Invalid shapes are not repaired:
    callers treat them as "never intersects".
    """
    if not geometry:
        return None
    gtype = geometry.get("type")
    coords = geometry.get("coordinates")
    if not coords:
        return None

    try:
        if gtype == "Polygon":
            shape: Polygon | MultiPolygon = _polygon(coords)
        elif gtype == "MultiPolygon":
            shape = MultiPolygon([_polygon(p) for p in coords])
        else:
            return None
        if shape.is_empty or not shape.is_valid:
            return None
        return shape
    except (ValueError, TypeError, IndexError, GEOSException):
        return None


def geometry_bbox(geometry: dict[str, Any] | None) -> BBox | None:
    """
    Bounding box straight from the coordinates, valid geometry or not.
    """
    if not geometry:
        return None
    try:
        return bbox_of_points(_iter_positions(geometry))
    except (ValueError, TypeError, IndexError):
        return None


def _polygon(rings: Any) -> Polygon:
    parsed = [_to_ring(r) for r in rings or []]
    if not parsed or len(parsed[0]) < 4:
        raise ValueError("polygon shell needs at least 4 positions")
    holes = [r for r in parsed[1:] if len(r) >= 4]
    return Polygon(parsed[0], holes=holes if holes else None)


def _to_ring(ring: Any) -> Ring:
    out: Ring = []
    for p in ring or []:
        if not p or len(p) < 2:
            continue
        out.append((float(p[0]), float(p[1])))
    return _ensure_closed(out)


def _ensure_closed(ring: Ring) -> Ring:
    if not ring:
        return ring
    if ring[0] != ring[-1]:
        return [*ring, ring[0]]
    return ring


def _iter_positions(geometry: dict[str, Any]) -> Iterator[tuple[float, float]]:
    gtype = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if gtype == "Polygon":
        polys = [coords]
    elif gtype == "MultiPolygon":
        polys = coords
    else:
        return
    for poly in polys:
        for ring in poly or []:
            for p in ring or []:
                if p and len(p) >= 2:
                    yield float(p[0]), float(p[1])
