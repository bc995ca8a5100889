from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class BBox:
    """
    WGS84 bounding box in lon/lat degrees.

    Convention used throughout this repo:
    - minLon, minLat, maxLon, maxLat
    """

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    def normalized(self) -> "BBox":
        min_lon = min(self.min_lon, self.max_lon)
        max_lon = max(self.min_lon, self.max_lon)
        min_lat = min(self.min_lat, self.max_lat)
        max_lat = max(self.min_lat, self.max_lat)
        return BBox(min_lon=min_lon, min_lat=min_lat, max_lon=max_lon, max_lat=max_lat)

    def union(self, other: "BBox") -> "BBox":
        a = self.normalized()
        b = other.normalized()
        return BBox(
            min_lon=min(a.min_lon, b.min_lon),
            min_lat=min(a.min_lat, b.min_lat),
            max_lon=max(a.max_lon, b.max_lon),
            max_lat=max(a.max_lat, b.max_lat),
        )

    def as_tuple(self) -> tuple[float, float, float, float]:
        b = self.normalized()
        return (b.min_lon, b.min_lat, b.max_lon, b.max_lat)


def bbox_of_points(points: Iterable[tuple[float, float]]) -> BBox | None:
    xs: list[float] = []
    ys: list[float] = []
    for lon, lat in points:
        xs.append(float(lon))
        ys.append(float(lat))
    if not xs:
        return None
    return BBox(min_lon=min(xs), min_lat=min(ys), max_lon=max(xs), max_lat=max(ys))


def union_bboxes(boxes: Iterable[BBox | None]) -> BBox | None:
    out: BBox | None = None
    for b in boxes:
        if b is None:
            continue
        out = b.normalized() if out is None else out.union(b)
    return out
