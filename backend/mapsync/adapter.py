from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from layers.loaders import candidate_blocks_from_features
from layers.types import BlockId, CandidateBlock, MapFeature
from mapsync.ids import (
    BLOCK_ID_PROPERTY,
    GEO_ID_PROPERTY,
    SurfaceId,
    feature_identity,
    surface_feature_id,
)
from mapsync.surface import MapSurface, Point
from selection.store import SelectionStore

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockLayerConfig:
    """
    Where blocks live on the map surface.

    `source_layer` is only needed for vector tile sources.
    """

    source: str = "blocks"
    source_layer: str | None = None
    fill_layer_id: str = "blocks-fill"
    block_id_property: str = BLOCK_ID_PROPERTY
    geo_id_property: str = GEO_ID_PROPERTY


class MapSyncAdapter:
    """
    Keeps map highlight state in step with a SelectionStore.

    The only component that talks to the map surface. Store notifications are
    rendered as a diff (only ids whose membership changed are pushed); a source
    data reload replays the full selection because the surface forgets feature
    state when tiles reload.

    Until `attach()` is called every operation is a no-op.
    """

    def __init__(
        self, store: SelectionStore, config: BlockLayerConfig | None = None
    ) -> None:
        self.store = store
        self.config = config or BlockLayerConfig()
        self._surface: MapSurface | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._rendered: set[BlockId] = set()
        # Ids exactly as the surface reported them, for feature-state calls.
        self._surface_ids: dict[BlockId, SurfaceId] = {}

    @property
    def attached(self) -> bool:
        return self._surface is not None

    def attach(self, surface: MapSurface) -> None:
        if self._surface is surface:
            return
        if self._surface is not None:
            self.detach()

        self._surface = surface
        layer = self.config.fill_layer_id
        surface.on_click(layer, self.handle_click)
        surface.on_source_data(self.handle_source_data)
        surface.on_hover_enter(layer, self._on_hover_enter)
        surface.on_hover_leave(layer, self._on_hover_leave)
        self._unsubscribe = self.store.subscribe(self._on_store_change)
        self.replay()

    def detach(self) -> None:
        surface = self._surface
        if surface is None:
            return
        for handler in (
            self.handle_click,
            self.handle_source_data,
            self._on_hover_enter,
            self._on_hover_leave,
        ):
            surface.off(handler)
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._surface = None
        self._rendered = set()

    # -- surface events

    def handle_click(self, point: Point) -> None:
        """
        Toggle the topmost block under `point`.

        One feature per click: overlapping hits beyond the first are ignored.
        """
        if self._surface is None:
            return
        hits = self._query(
            lambda s: s.query_rendered_features(point, layers=[self.config.fill_layer_id])
        )
        if not hits:
            return
        block_id = self._block_id(hits[0])
        if block_id is None:
            LOG.warning(
                "Clicked block has no usable id (feature id / %s / %s): %s",
                self.config.block_id_property,
                self.config.geo_id_property,
                hits[0].properties,
            )
            return
        self.store.toggle(block_id)

    def handle_source_data(self, source: str) -> None:
        if source != self.config.source:
            return
        self.replay()

    def replay(self) -> None:
        """Re-push highlight=True for every selected block. Safe to repeat."""
        if self._surface is None:
            return
        selected = self.store.get_selected()
        self._rendered = {bid for bid in sorted(selected) if self._push(bid, True)}

    # -- bulk operations over what the surface currently has loaded

    def visible_features(self) -> list[MapFeature]:
        return self._source_features() or []

    def candidate_blocks(self) -> list[CandidateBlock]:
        return candidate_blocks_from_features(
            self.visible_features(), block_id=self._block_id
        )

    def visible_block_ids(self) -> list[BlockId]:
        return self._ids_of(self.visible_features())

    def select_all_visible(self) -> None:
        features = self._source_features()
        if features is None:
            return
        self.store.select_all(self._ids_of(features))

    def clear_all(self) -> None:
        if self._surface is None:
            return
        self.store.clear_all()

    def invert_visible(self) -> None:
        features = self._source_features()
        if features is None:
            return
        self.store.invert(self._ids_of(features))

    # -- internals

    def _on_store_change(self) -> None:
        if self._surface is None:
            return
        selected = self.store.get_selected()
        for bid in sorted(self._rendered - selected):
            if self._push(bid, False):
                self._rendered.discard(bid)
        for bid in sorted(selected - self._rendered):
            if self._push(bid, True):
                self._rendered.add(bid)

    def _push(self, block_id: BlockId, selected: bool) -> bool:
        surface = self._surface
        if surface is None:
            return False
        try:
            surface.set_feature_state(
                self.config.source,
                self.config.source_layer,
                self._surface_id(block_id),
                {"selected": selected},
            )
        except Exception as exc:  # noqa: BLE001
            LOG.warning("Highlight update failed for block %s: %s", block_id, exc)
            return False
        return True

    def _source_features(self) -> list[MapFeature] | None:
        return self._query(
            lambda s: s.query_source_features(
                self.config.source, source_layer=self.config.source_layer
            )
        )

    def _query(
        self, fn: Callable[[MapSurface], list[MapFeature]]
    ) -> list[MapFeature] | None:
        """Run a surface query; None when detached or when the query failed."""
        surface = self._surface
        if surface is None:
            return None
        try:
            return list(fn(surface) or [])
        except Exception as exc:  # noqa: BLE001
            LOG.warning("Map surface query failed: %s", exc)
            return None

    def _ids_of(self, features: list[MapFeature]) -> list[BlockId]:
        out: list[BlockId] = []
        seen: set[BlockId] = set()
        for f in features:
            bid = self._block_id(f)
            if bid is None or bid in seen:
                continue
            seen.add(bid)
            out.append(bid)
        return out

    def _block_id(self, feature: MapFeature) -> BlockId | None:
        ident = feature_identity(
            feature,
            block_id_property=self.config.block_id_property,
            geo_id_property=self.config.geo_id_property,
        )
        if ident is None:
            return None
        block_id, surface_id = ident
        self._surface_ids[block_id] = surface_id
        return block_id

    def _surface_id(self, block_id: BlockId) -> SurfaceId:
        surface_id = self._surface_ids.get(block_id)
        return surface_id if surface_id is not None else surface_feature_id(block_id)

    def _on_hover_enter(self) -> None:
        if self._surface is not None:
            self._surface.set_cursor("pointer")

    def _on_hover_leave(self) -> None:
        if self._surface is not None:
            self._surface.set_cursor("")
