from __future__ import annotations

import math
from typing import Any

from layers.types import BlockId, MapFeature

BLOCK_ID_PROPERTY = "block_id"
GEO_ID_PROPERTY = "GEOID"

SurfaceId = int | str


def block_id_for_feature(
    feature: MapFeature,
    *,
    block_id_property: str = BLOCK_ID_PROPERTY,
    geo_id_property: str = GEO_ID_PROPERTY,
) -> BlockId | None:
    """
    Stable BlockId for a map polygon, or None when it carries no usable identity.

    Lookup order: promoted feature id, then the block id property, then the
    geographic id property. Always a str, so 42, 42.0 and "42" all map to "42".
    """
    ident = feature_identity(
        feature, block_id_property=block_id_property, geo_id_property=geo_id_property
    )
    return ident[0] if ident is not None else None


def feature_identity(
    feature: MapFeature,
    *,
    block_id_property: str = BLOCK_ID_PROPERTY,
    geo_id_property: str = GEO_ID_PROPERTY,
) -> tuple[BlockId, SurfaceId] | None:
    """
    (BlockId, id as the surface reported it) for a feature, or None.

    The second element is what feature-state calls should receive back: "007"
    stays "007", 42.0 becomes 42.
    """
    props = feature.properties or {}
    for raw in (feature.id, props.get(block_id_property), props.get(geo_id_property)):
        bid = _canonical(raw)
        if bid is not None:
            return bid, _surface_form(raw)
    return None


def surface_feature_id(block_id: BlockId) -> SurfaceId:
    """
    Best guess at the surface id for a BlockId never seen on the surface.

    Only plain ASCII integers without leading zeros become numbers; anything
    else would not round-trip and goes through as a string.
    """
    if block_id.isascii() and block_id.isdigit() and str(int(block_id)) == block_id:
        return int(block_id)
    return block_id


def _surface_form(raw: Any) -> SurfaceId:
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, int):
        return raw
    return str(raw)


def _canonical(raw: Any) -> BlockId | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        if math.isnan(raw):
            return None
        if raw.is_integer():
            return str(int(raw))
    s = str(raw).strip()
    return s or None
