from __future__ import annotations

from typing import Any, Callable, Protocol

from layers.types import MapFeature

Point = tuple[float, float]  # screen pixels (x, y)

ClickHandler = Callable[[Point], None]
SourceDataHandler = Callable[[str], None]
HoverHandler = Callable[[], None]


class MapSurface(Protocol):
    """
    The narrow capability set the core needs from an interactive map.

    Any mapping library can satisfy it with a thin shim. Handlers receive plain
    values (click point, source name) so shims don't leak library event objects.
    """

    def query_source_features(
        self, source: str, *, source_layer: str | None = None
    ) -> list[MapFeature]: ...

    def query_rendered_features(
        self, point: Point, *, layers: list[str]
    ) -> list[MapFeature]: ...

    def set_feature_state(
        self,
        source: str,
        source_layer: str | None,
        feature_id: int | str,
        state: dict[str, Any],
    ) -> None: ...

    def set_cursor(self, cursor: str) -> None: ...

    def on_click(self, layer_id: str, handler: ClickHandler) -> None: ...

    def on_source_data(self, handler: SourceDataHandler) -> None: ...

    def on_hover_enter(self, layer_id: str, handler: HoverHandler) -> None: ...

    def on_hover_leave(self, layer_id: str, handler: HoverHandler) -> None: ...

    def off(self, handler: Callable[..., None]) -> None: ...
