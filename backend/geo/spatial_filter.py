from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from shapely.errors import GEOSException
from shapely.strtree import STRtree

from geo.aoi import BBox, union_bboxes
from geo.geometry import to_polygonal
from layers.types import BlockId, CandidateBlock, NeighborhoodBoundary

LOG = logging.getLogger(__name__)


def compute_intersecting(
    selected_boundaries: Iterable[NeighborhoodBoundary],
    candidate_blocks: Iterable[CandidateBlock],
) -> set[BlockId]:
    """
    Ids of candidate blocks touching at least one of the selected boundaries.

    Pure: feeding the result into a SelectionStore is the caller's job.
    """
    ids, _status = compute_intersecting_with_status(selected_boundaries, candidate_blocks)
    return ids


def compute_intersecting_with_status(
    selected_boundaries: Iterable[NeighborhoodBoundary],
    candidate_blocks: Iterable[CandidateBlock],
) -> tuple[set[BlockId], dict[str, Any]]:
    """
    Same as `compute_intersecting`, plus a status dict counting what was skipped.

    Invalid or degenerate geometries (on either side) never raise; they simply don't
    match. The status lets callers log/count those data-quality conditions.
    """
    status: dict[str, Any] = {
        "boundaries": 0,
        "candidates": 0,
        "matched": 0,
        "invalidBoundaryIds": [],
        "invalidBlockIds": [],
    }

    shapes = []
    for b in selected_boundaries:
        status["boundaries"] += 1
        shape = to_polygonal(b.geometry)
        if shape is None:
            status["invalidBoundaryIds"].append(b.id)
            continue
        shapes.append(shape)

    blocks = list(candidate_blocks)
    status["candidates"] = len(blocks)
    if not shapes or not blocks:
        return set(), status

    # Boundaries are few, blocks are many: index the boundaries once and probe per block.
    tree = STRtree(shapes)
    out: set[BlockId] = set()
    for block in blocks:
        if block.id in out:
            continue
        shape = to_polygonal(block.geometry)
        if shape is None:
            status["invalidBlockIds"].append(block.id)
            continue
        try:
            hits = tree.query(shape, predicate="intersects")
        except GEOSException:
            status["invalidBlockIds"].append(block.id)
            continue
        if len(hits) > 0:
            out.add(block.id)

    status["matched"] = len(out)
    # A block split across tiles may contribute several bad pieces.
    status["invalidBlockIds"] = list(dict.fromkeys(status["invalidBlockIds"]))
    if status["invalidBlockIds"] or status["invalidBoundaryIds"]:
        LOG.debug(
            "Skipped %d block(s) and %d boundary(ies) with unusable geometry",
            len(status["invalidBlockIds"]),
            len(status["invalidBoundaryIds"]),
        )
    return out, status


def compute_combined_bbox(
    boundary_ids: Iterable[str],
    boundary_lookup: Mapping[str, NeighborhoodBoundary],
) -> BBox | None:
    """
    Union bbox of the named boundaries; None when none of the ids resolve.
    """
    boxes = []
    for bid in boundary_ids:
        boundary = boundary_lookup.get(bid)
        if boundary is not None:
            boxes.append(boundary.bbox)
    return union_bboxes(boxes)
