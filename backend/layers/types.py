from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeAlias

from geo.aoi import BBox

# GeoJSON geometry object: {"type": "Polygon" | "MultiPolygon", "coordinates": [...]}
Geometry: TypeAlias = dict[str, Any]
BlockId: TypeAlias = str


@dataclass(frozen=True)
class MapFeature:
    """
    A feature as reported by the map surface (query results, click hits).

    `id` is whatever the surface exposes as its promoted feature id; it may be an int,
    a str, or missing entirely.
    """

    id: int | str | None
    properties: dict[str, Any] = field(default_factory=dict)
    geometry: Geometry | None = None


@dataclass(frozen=True)
class CandidateBlock:
    """
    One block polygon currently available from the map surface.

    Transient: rebuilt from the surface every time it's needed, never stored by the core.
    """

    id: BlockId
    geometry: Geometry


@dataclass(frozen=True)
class NeighborhoodBoundary:
    """
    A named region used to auto-select the blocks it touches.

    Immutable once loaded from the geography source.
    """

    id: str
    name: str
    geometry: Geometry
    bbox: BBox | None
    slug: str = ""
    props: dict[str, Any] = field(default_factory=dict)
