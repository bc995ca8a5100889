from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from layers.types import BlockId
from selection.storage import KeyValueStorage, MemoryStorage

MODE_STORAGE_KEY = "blocks-selection-mode"

Listener = Callable[[], None]


class SelectionMode(str, Enum):
    include = "include"
    exclude = "exclude"


def parse_mode(raw: str | None) -> SelectionMode:
    """Unknown or missing values read as `include`."""
    try:
        return SelectionMode((raw or "").strip().lower())
    except ValueError:
        return SelectionMode.include


@dataclass(frozen=True)
class SelectionSnapshot:
    ids: frozenset[BlockId]
    mode: SelectionMode

    @property
    def count(self) -> int:
        return len(self.ids)


class SelectionStore:
    """
    Single source of truth for which blocks are selected, and in which mode.

    Membership only changes through the methods below. Every call that actually
    changes state notifies subscribers exactly once, synchronously, in
    registration order; calls that change nothing stay silent.
    """

    def __init__(self, storage: KeyValueStorage | None = None) -> None:
        self._storage: KeyValueStorage = storage if storage is not None else MemoryStorage()
        self._selected: set[BlockId] = set()
        self._mode = parse_mode(self._storage.get(MODE_STORAGE_KEY))
        self._listeners: list[Listener] = []

    # -- queries

    def is_selected(self, block_id: BlockId) -> bool:
        return block_id in self._selected

    def get_selected(self) -> set[BlockId]:
        return set(self._selected)

    def selected_list(self) -> list[BlockId]:
        return sorted(self._selected)

    @property
    def count(self) -> int:
        return len(self._selected)

    def snapshot(self) -> SelectionSnapshot:
        return SelectionSnapshot(ids=frozenset(self._selected), mode=self._mode)

    def get_mode(self) -> SelectionMode:
        return self._mode

    # -- mutations

    def set_selected(self, block_id: BlockId, selected: bool) -> None:
        if not block_id or self.is_selected(block_id) == bool(selected):
            return
        if selected:
            self._selected.add(block_id)
        else:
            self._selected.discard(block_id)
        self._notify()

    def toggle(self, block_id: BlockId) -> None:
        self.set_selected(block_id, not self.is_selected(block_id))

    def add(self, block_id: BlockId) -> None:
        self.add_many([block_id])

    def add_many(self, block_ids: Iterable[BlockId]) -> None:
        new = _clean(block_ids) - self._selected
        if not new:
            return
        self._selected |= new
        self._notify()

    select_many = add_many

    def clear_all(self) -> None:
        if not self._selected:
            return
        self._selected = set()
        self._notify()

    def select_all(self, candidate_ids: Iterable[BlockId]) -> None:
        """Replace the selection with exactly `candidate_ids`."""
        self._replace(_clean(candidate_ids))

    def invert(self, universe_ids: Iterable[BlockId]) -> None:
        """
        Invert within the given universe.

        Selected ids outside `universe_ids` are dropped, not kept.
        """
        self._replace(_clean(universe_ids) - self._selected)

    def set_mode(self, mode: SelectionMode | str) -> None:
        mode = SelectionMode(mode)
        self._storage.set(MODE_STORAGE_KEY, mode.value)
        if mode == self._mode:
            return
        self._mode = mode
        self._notify()

    # -- observers

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        active = True

        def unsubscribe() -> None:
            nonlocal active
            if not active:
                return
            active = False
            self._listeners.remove(listener)

        return unsubscribe

    def _replace(self, new: set[BlockId]) -> None:
        if new == self._selected:
            return
        self._selected = new
        self._notify()

    def _notify(self) -> None:
        # Iterate over a copy: listeners may unsubscribe while being notified.
        for listener in tuple(self._listeners):
            listener()


def _clean(block_ids: Iterable[BlockId]) -> set[BlockId]:
    return {str(b) for b in block_ids if b}
