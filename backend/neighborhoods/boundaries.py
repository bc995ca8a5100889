from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any

import requests

from layers.loaders import load_neighborhood_boundaries
from layers.types import NeighborhoodBoundary

LOG = logging.getLogger(__name__)

# NYC DCP Neighborhood Tabulation Areas, Manhattan only.
DEFAULT_NEIGHBORHOODS_URL = "https://data.cityofnewyork.us/resource/4hft-v355.geojson"
DEFAULT_NEIGHBORHOODS_PARAMS = {"boro_code": "1", "$limit": "500"}

EMPTY_COLLECTION: dict[str, Any] = {"type": "FeatureCollection", "features": []}


def neighborhoods_url() -> str:
    return os.getenv("NEIGHBORHOODS_URL") or DEFAULT_NEIGHBORHOODS_URL


def neighborhoods_timeout_s() -> float:
    try:
        return float(os.getenv("NEIGHBORHOODS_TIMEOUT_S") or 10.0)
    except ValueError:
        return 10.0


def fetch_neighborhood_geojson() -> dict[str, Any]:
    """
    Best-effort fetch of the raw boundary FeatureCollection.

    Any failure (network, HTTP status, bad JSON) yields an empty collection; the
    wizard then simply runs without spatial auto-selection.
    """
    url = neighborhoods_url()
    # A custom URL is expected to carry its own query string.
    params = DEFAULT_NEIGHBORHOODS_PARAMS if url == DEFAULT_NEIGHBORHOODS_URL else None
    try:
        resp = requests.get(url, params=params, timeout=neighborhoods_timeout_s())
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        LOG.warning("Fetching neighborhood boundaries failed: %s", exc)
        return dict(EMPTY_COLLECTION)

    if not isinstance(data, dict) or not isinstance(data.get("features"), list):
        LOG.warning("Neighborhood boundaries response is not a FeatureCollection")
        return dict(EMPTY_COLLECTION)
    return data


def fetch_neighborhood_boundaries() -> dict[str, NeighborhoodBoundary]:
    boundaries = load_neighborhood_boundaries(fetch_neighborhood_geojson())
    if not boundaries:
        LOG.warning("No neighborhood boundaries available; spatial auto-selection disabled")
    return boundaries


@dataclass
class BoundaryCache:
    """
    One fetch per session, then served from memory.

    An empty result is cached too: it's a valid answer, not an error to retry.
    """

    _boundaries: dict[str, NeighborhoodBoundary] | None = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def preloaded(cls, boundaries: dict[str, NeighborhoodBoundary]) -> "BoundaryCache":
        cache = cls()
        cache._boundaries = dict(boundaries)
        return cache

    def get(self) -> dict[str, NeighborhoodBoundary]:
        with self._lock:
            if self._boundaries is None:
                self._boundaries = fetch_neighborhood_boundaries()
            return self._boundaries

    @property
    def loaded(self) -> bool:
        return self._boundaries is not None

    def clear(self) -> None:
        with self._lock:
            self._boundaries = None
