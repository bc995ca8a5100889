from __future__ import annotations

import logging
from typing import Iterable, Sequence

from api.map_config import block_layer_config
from api.preferences import (
    DEFAULT_BUDGET_MAX,
    DEFAULT_BUDGET_MIN,
    SearchPreferences,
    clamp_budget_range,
)
from geo.aoi import BBox
from geo.spatial_filter import compute_combined_bbox, compute_intersecting_with_status
from layers.types import BlockId, NeighborhoodBoundary
from mapsync.adapter import BlockLayerConfig, MapSyncAdapter
from mapsync.surface import MapSurface
from neighborhoods.boundaries import BoundaryCache
from selection.storage import KeyValueStorage, open_storage
from selection.store import SelectionStore
from wizard.steps import DEFAULT_STEPS, StepController, WizardStep

LOG = logging.getLogger(__name__)


class SearchSession:
    """
    One user's pass through the search wizard.

    Owns the single SelectionStore of the session and wires it to the map only
    while the wizard sits on the map step. Neighborhood picks made earlier are
    turned into block selections (additively) as soon as the map has blocks loaded.
    """

    def __init__(
        self,
        *,
        storage: KeyValueStorage | None = None,
        boundaries: BoundaryCache | None = None,
        layer_config: BlockLayerConfig | None = None,
        steps: Sequence[str] = DEFAULT_STEPS,
        initial_step: str | None = None,
        map_step: str = WizardStep.map.value,
    ) -> None:
        self.store = SelectionStore(storage if storage is not None else open_storage())
        self.adapter = MapSyncAdapter(
            self.store, layer_config if layer_config is not None else block_layer_config()
        )
        self.boundaries = boundaries if boundaries is not None else BoundaryCache()
        self.steps = StepController(
            steps, initial_step=initial_step, on_change=self._on_step_change
        )
        self.map_step = map_step

        self.budget: tuple[int, int] = (DEFAULT_BUDGET_MIN, DEFAULT_BUDGET_MAX)
        self.borough_ids: list[str] = []
        self.neighborhood_ids: list[str] = []
        # Requested map viewport for the chosen neighborhoods (None = leave as is).
        self.viewport: BBox | None = None

        self._surface: MapSurface | None = None
        self._auto_select_pending = False

    # -- map lifecycle

    def mount_map(self, surface: MapSurface) -> None:
        if self._surface is surface:
            return
        if self._surface is not None:
            self.unmount_map()
        self._surface = surface
        surface.on_source_data(self._on_source_data)
        self._sync_adapter()

    def unmount_map(self) -> None:
        surface = self._surface
        if surface is None:
            return
        self.adapter.detach()
        surface.off(self._on_source_data)
        self._surface = None

    # -- wizard inputs

    def set_budget(self, low: int, high: int) -> None:
        self.budget = clamp_budget_range(int(low), int(high))

    def set_boroughs(self, borough_ids: Iterable[str]) -> None:
        self.borough_ids = _dedupe(borough_ids)

    def set_neighborhoods(self, neighborhood_ids: Iterable[str]) -> set[BlockId]:
        """
        Record the chosen neighborhoods and auto-select the blocks they touch.

        Returns the ids added right away; empty when the map isn't showing yet, in
        which case selection happens once it is.
        """
        self.neighborhood_ids = _dedupe(neighborhood_ids)
        lookup = self._boundary_lookup()
        self.viewport = compute_combined_bbox(self.neighborhood_ids, lookup)
        self._auto_select_pending = bool(self.neighborhood_ids)
        return self.auto_select()

    def auto_select(self) -> set[BlockId]:
        if not self._auto_select_pending or not self.adapter.attached:
            return set()

        lookup = self._boundary_lookup()
        chosen: list[NeighborhoodBoundary] = []
        for nid in self.neighborhood_ids:
            boundary = lookup.get(nid)
            if boundary is not None and boundary not in chosen:
                chosen.append(boundary)
        if not chosen:
            self._auto_select_pending = False
            return set()

        candidates = self.adapter.candidate_blocks()
        if not candidates:
            # Tiles not loaded yet; retried on the next source data event.
            return set()

        ids, status = compute_intersecting_with_status(chosen, candidates)
        if status["invalidBlockIds"] or status["invalidBoundaryIds"]:
            LOG.warning(
                "Auto-selection skipped %d block(s) and %d boundary(ies) with invalid geometry",
                len(status["invalidBlockIds"]),
                len(status["invalidBoundaryIds"]),
            )
        self._auto_select_pending = False
        self.store.add_many(ids)
        return ids

    def preferences(self) -> SearchPreferences:
        low, high = self.budget
        return SearchPreferences(
            budgetMin=low,
            budgetMax=high,
            boroughs=list(self.borough_ids),
            neighborhoods=list(self.neighborhood_ids),
            blockCount=self.store.count,
        )

    def restart(self) -> None:
        """Start the flow over. The selection mode is a durable preference and stays."""
        self.store.clear_all()
        self.budget = (DEFAULT_BUDGET_MIN, DEFAULT_BUDGET_MAX)
        self.borough_ids = []
        self.neighborhood_ids = []
        self.viewport = None
        self._auto_select_pending = False
        self.steps.reset()

    # -- internals

    def _boundary_lookup(self) -> dict[str, NeighborhoodBoundary]:
        # Accept both geography codes and slugs (the catalog uses slugs).
        boundaries = self.boundaries.get()
        lookup: dict[str, NeighborhoodBoundary] = {}
        for b in boundaries.values():
            if b.slug:
                lookup.setdefault(b.slug, b)
        lookup.update(boundaries)
        return lookup

    def _on_step_change(self, _step: str) -> None:
        self._sync_adapter()

    def _on_source_data(self, source: str) -> None:
        if source == self.adapter.config.source:
            self.auto_select()

    def _sync_adapter(self) -> None:
        if self._surface is not None and self.steps.current_step == self.map_step:
            self.adapter.attach(self._surface)
            self.auto_select()
        else:
            self.adapter.detach()


def _dedupe(ids: Iterable[str]) -> list[str]:
    out: list[str] = []
    for raw in ids or []:
        s = str(raw).strip()
        if s and s not in out:
            out.append(s)
    return out
