from __future__ import annotations

import pytest

from neighborhoods.catalog import clear_catalog_cache, get_catalog


@pytest.fixture(autouse=True)
def _fresh_catalog():
    clear_catalog_cache()
    yield
    clear_catalog_cache()


def test_default_catalog_lists_five_boroughs(monkeypatch):
    monkeypatch.delenv("BOROUGHS_PATH", raising=False)
    catalog = get_catalog()

    assert [b.id for b in catalog.boroughs] == [
        "manhattan",
        "brooklyn",
        "queens",
        "bronx",
        "staten-island",
    ]
    assert [n.id for n in catalog.neighborhoods_of("bronx")] == [
        "riverdale",
        "fordham",
        "hunts-point",
        "mott-haven",
    ]


def test_lookups(monkeypatch):
    monkeypatch.delenv("BOROUGHS_PATH", raising=False)
    catalog = get_catalog()

    borough, hood = catalog.neighborhood("dumbo")
    assert borough.id == "brooklyn"
    assert hood.name == "DUMBO"
    assert catalog.neighborhood("atlantis") is None
    assert catalog.borough("jersey") is None
    assert catalog.neighborhoods_of("jersey") == []


def test_catalog_path_override(tmp_path, monkeypatch):
    path = tmp_path / "boroughs.yaml"
    path.write_text(
        "boroughs:\n  - id: a\n    name: A\n    neighborhoods:\n      - id: a1\n        name: A One\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("BOROUGHS_PATH", str(path))

    catalog = get_catalog()

    assert [b.id for b in catalog.boroughs] == ["a"]
    assert catalog.neighborhoods_of("a")[0].name == "A One"


def test_duplicate_borough_ids_are_rejected(tmp_path, monkeypatch):
    path = tmp_path / "boroughs.yaml"
    path.write_text(
        "boroughs:\n  - id: a\n    name: A\n  - id: a\n    name: Again\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("BOROUGHS_PATH", str(path))

    with pytest.raises(ValueError):
        get_catalog()
