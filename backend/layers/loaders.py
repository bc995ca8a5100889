from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable

from geo.geometry import geometry_bbox
from layers.types import BlockId, CandidateBlock, MapFeature, NeighborhoodBoundary
from mapsync.ids import block_id_for_feature

LOG = logging.getLogger(__name__)

_POLYGONAL = {"Polygon", "MultiPolygon"}


def load_neighborhood_boundaries(
    data: dict[str, Any] | None,
) -> dict[str, NeighborhoodBoundary]:
    """
    NTA-style FeatureCollection -> boundaries keyed by neighborhood code.

    Accepts both the lower-case (`ntacode`/`ntaname`) and the legacy upper-case
    (`NTACode`/`NTAName`) property spellings.
    """
    out: dict[str, NeighborhoodBoundary] = {}
    for feature in (data or {}).get("features") or []:
        props = (feature or {}).get("properties") or {}
        geom = (feature or {}).get("geometry") or {}

        code = str(props.get("ntacode") or props.get("NTACode") or "").strip()
        name = str(props.get("ntaname") or props.get("NTAName") or "").strip()
        if not code or not name:
            LOG.warning("Skipping neighborhood feature without NTA code or name: %s", props)
            continue
        if geom.get("type") not in _POLYGONAL:
            LOG.warning("Skipping neighborhood %s with geometry type %r", code, geom.get("type"))
            continue

        out[code] = NeighborhoodBoundary(
            id=code,
            name=name,
            slug=slugify(name),
            geometry=geom,
            bbox=geometry_bbox(geom),
            props=props,
        )
    return out


def load_geojson_blocks(data: dict[str, Any] | None) -> list[CandidateBlock]:
    features = []
    for f in (data or {}).get("features") or []:
        f = f or {}
        features.append(
            MapFeature(
                id=f.get("id"),
                properties=f.get("properties") or {},
                geometry=f.get("geometry"),
            )
        )
    return candidate_blocks_from_features(features)


def candidate_blocks_from_features(
    features: Iterable[MapFeature],
    *,
    block_id: Callable[[MapFeature], BlockId | None] = block_id_for_feature,
) -> list[CandidateBlock]:
    """
    Map-surface features -> candidate blocks.

    Tiled sources report a block once per tile it crosses, each copy clipped to
    its tile, so every distinct piece is kept; exact repeats are dropped.
    """
    out: list[CandidateBlock] = []
    pieces: dict[BlockId, list[Any]] = {}
    missing_id = 0
    for f in features:
        bid = block_id(f)
        if bid is None:
            missing_id += 1
            continue
        if not f.geometry:
            continue
        seen = pieces.setdefault(bid, [])
        if f.geometry in seen:
            continue
        seen.append(f.geometry)
        out.append(CandidateBlock(id=bid, geometry=f.geometry))
    if missing_id:
        LOG.warning("Ignored %d block feature(s) without a stable id", missing_id)
    return out


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-")


def sorted_boundaries(
    boundaries: dict[str, NeighborhoodBoundary],
) -> list[NeighborhoodBoundary]:
    return sorted(boundaries.values(), key=lambda b: b.name.lower())


def group_by_letter(
    boundaries: Iterable[NeighborhoodBoundary],
) -> dict[str, list[NeighborhoodBoundary]]:
    groups: dict[str, list[NeighborhoodBoundary]] = {}
    for b in boundaries:
        letter = b.name[:1].upper()
        groups.setdefault(letter, []).append(b)
    return groups
