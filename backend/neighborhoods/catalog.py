from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field


class Neighborhood(BaseModel):
    id: str
    name: str


class Borough(BaseModel):
    id: str
    name: str
    neighborhoods: list[Neighborhood] = Field(default_factory=list)


class BoroughCatalog(BaseModel):
    boroughs: list[Borough]

    def borough(self, borough_id: str | None) -> Borough | None:
        bid = (borough_id or "").strip()
        for b in self.boroughs:
            if b.id == bid:
                return b
        return None

    def neighborhood(self, neighborhood_id: str | None) -> tuple[Borough, Neighborhood] | None:
        nid = (neighborhood_id or "").strip()
        for b in self.boroughs:
            for n in b.neighborhoods:
                if n.id == nid:
                    return b, n
        return None

    def neighborhoods_of(self, borough_id: str | None) -> list[Neighborhood]:
        b = self.borough(borough_id)
        return list(b.neighborhoods) if b is not None else []


def _repo_root() -> Path:
    # .../backend/neighborhoods/catalog.py -> repo root is 2 levels up
    return Path(__file__).resolve().parents[2]


def catalog_path() -> Path:
    return Path(os.getenv("BOROUGHS_PATH") or (_repo_root() / "data" / "boroughs.yaml"))


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid borough catalog yaml root: {path}")
    return data


@lru_cache(maxsize=1)
def get_catalog() -> BoroughCatalog:
    path = catalog_path()
    catalog = BoroughCatalog.model_validate(_load_yaml(path))
    ids = [b.id for b in catalog.boroughs]
    if len(ids) != len(set(ids)):
        raise ValueError(f"Duplicate borough ids in {path}")
    return catalog


def clear_catalog_cache() -> None:
    """
    Drop the cached catalog so the next `get_catalog()` re-reads YAML.

    Useful in tests that point `BOROUGHS_PATH` at a fixture.
    """
    get_catalog.cache_clear()
