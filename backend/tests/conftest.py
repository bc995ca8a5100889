import sys
from pathlib import Path
from typing import Any, Callable

import pytest


# Ensure `backend/` is on sys.path so tests can import local modules
# like `selection.*`, `geo.*`, and `main`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

from layers.types import MapFeature  # noqa: E402


def square(x0: float, y0: float, size: float = 1.0) -> dict[str, Any]:
    """GeoJSON Polygon for an axis-aligned square with lower-left corner (x0, y0)."""
    return {
        "type": "Polygon",
        "coordinates": [
            [
                [x0, y0],
                [x0 + size, y0],
                [x0 + size, y0 + size],
                [x0, y0 + size],
                [x0, y0],
            ]
        ],
    }


class FakeMapSurface:
    """
    In-memory map surface recording every feature-state push.

    `features` is what the source currently has loaded; `hits` is what a click
    at any point reports (topmost first).
    """

    def __init__(self) -> None:
        self.features: list[MapFeature] = []
        self.hits: list[MapFeature] = []
        self.state_calls: list[tuple[str, str | None, int | str, dict[str, Any]]] = []
        self.cursor = ""
        self.fail_queries = False
        self.click_handlers: list[Callable] = []
        self.source_data_handlers: list[Callable] = []
        self.hover_handlers: list[Callable] = []

    # capability surface

    def query_source_features(self, source, *, source_layer=None):
        if self.fail_queries:
            raise RuntimeError("style not loaded")
        return list(self.features)

    def query_rendered_features(self, point, *, layers):
        if self.fail_queries:
            raise RuntimeError("style not loaded")
        return list(self.hits)

    def set_feature_state(self, source, source_layer, feature_id, state):
        self.state_calls.append((source, source_layer, feature_id, dict(state)))

    def set_cursor(self, cursor):
        self.cursor = cursor

    def on_click(self, layer_id, handler):
        self.click_handlers.append(handler)

    def on_source_data(self, handler):
        self.source_data_handlers.append(handler)

    def on_hover_enter(self, layer_id, handler):
        self.hover_handlers.append(handler)

    def on_hover_leave(self, layer_id, handler):
        self.hover_handlers.append(handler)

    def off(self, handler):
        for handlers in (self.click_handlers, self.source_data_handlers, self.hover_handlers):
            while handler in handlers:
                handlers.remove(handler)

    # test helpers

    def click(self, point=(10.0, 10.0)) -> None:
        for h in list(self.click_handlers):
            h(point)

    def reload(self, source: str = "blocks") -> None:
        for h in list(self.source_data_handlers):
            h(source)

    def highlighted(self) -> dict[int | str, bool]:
        """Final highlight flag per feature id, replaying all pushes in order."""
        out: dict[int | str, bool] = {}
        for _source, _layer, fid, state in self.state_calls:
            out[fid] = bool(state.get("selected"))
        return out


def block_feature(fid, x0: float = 0.0, y0: float = 0.0, **props) -> MapFeature:
    return MapFeature(id=fid, properties=dict(props), geometry=square(x0, y0))


@pytest.fixture
def surface() -> FakeMapSurface:
    return FakeMapSurface()


@pytest.fixture(autouse=True)
def _session_storage_in_memory(monkeypatch):
    # Sessions built without explicit storage must not write into the repo's data/ dir.
    monkeypatch.setenv("BLOCKS_STORAGE", "0")
