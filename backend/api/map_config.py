from __future__ import annotations

import os

from pydantic import BaseModel

from mapsync.adapter import BlockLayerConfig


class MapConfig(BaseModel):
    token: str = ""
    tilesUrl: str = ""
    sourceLayer: str = ""


def load_map_config() -> MapConfig:
    # Read on every call so a changed .env is picked up without a restart.
    return MapConfig(
        token=os.getenv("MAPBOX_TOKEN") or "",
        tilesUrl=os.getenv("MAPBOX_TILES_URL") or "",
        sourceLayer=os.getenv("MAPBOX_SOURCE_LAYER") or "",
    )


def block_layer_config(cfg: MapConfig | None = None) -> BlockLayerConfig:
    cfg = cfg or load_map_config()
    return BlockLayerConfig(source_layer=cfg.sourceLayer or None)
