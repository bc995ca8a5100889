from __future__ import annotations

import os
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from api.map_config import MapConfig, load_map_config
from api.preferences import SearchPreferences
from geo.spatial_filter import compute_combined_bbox, compute_intersecting_with_status
from layers.loaders import (
    group_by_letter,
    load_geojson_blocks,
    load_neighborhood_boundaries,
    sorted_boundaries,
)
from neighborhoods.boundaries import BoundaryCache
from neighborhoods.catalog import Borough, Neighborhood, get_catalog

app = FastAPI(title="Blocks Search API", version="0.1.0")

default_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
cors_origins = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", ",".join(default_origins)).split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Boundaries are fetched once per process and treated as immutable afterwards.
boundary_cache = BoundaryCache()


class ApiNeighborhoodBoundary(BaseModel):
    id: str
    name: str
    slug: str
    bbox: list[float] | None = None


class ApiNeighborhoodList(BaseModel):
    neighborhoods: list[ApiNeighborhoodBoundary]
    # First letter -> neighborhood ids, in name order.
    groups: dict[str, list[str]]


class ApiIntersectingRequest(BaseModel):
    neighborhoods: dict[str, Any]
    blocks: dict[str, Any]
    # Restrict to these neighborhood codes/slugs; all neighborhoods when omitted.
    neighborhoodIds: list[str] | None = None


class ApiIntersectingResponse(BaseModel):
    blockIds: list[str]
    bbox: list[float] | None = None
    status: dict[str, Any] = Field(default_factory=dict)


@app.get("/")
def root() -> dict[str, str]:
    return {"service": "blocks-search", "status": "ok"}


@app.get("/api/mapbox-config", response_model=MapConfig)
def mapbox_config() -> MapConfig:
    return load_map_config()


@app.get("/api/boroughs", response_model=list[Borough])
def boroughs() -> list[Borough]:
    return get_catalog().boroughs


@app.get("/api/boroughs/{borough_id}/neighborhoods", response_model=list[Neighborhood])
def borough_neighborhoods(borough_id: str) -> list[Neighborhood]:
    catalog = get_catalog()
    if catalog.borough(borough_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown borough: {borough_id}")
    return catalog.neighborhoods_of(borough_id)


@app.get("/api/neighborhoods", response_model=ApiNeighborhoodList)
def list_neighborhoods() -> ApiNeighborhoodList:
    ordered = sorted_boundaries(boundary_cache.get())
    return ApiNeighborhoodList(
        neighborhoods=[
            ApiNeighborhoodBoundary(
                id=b.id,
                name=b.name,
                slug=b.slug,
                bbox=list(b.bbox.as_tuple()) if b.bbox is not None else None,
            )
            for b in ordered
        ],
        groups={
            letter: [b.id for b in group]
            for letter, group in group_by_letter(ordered).items()
        },
    )


@app.get("/api/search-preferences", response_model=SearchPreferences)
def search_preferences(request: Request) -> SearchPreferences:
    return SearchPreferences.from_query_params(request.query_params)


@app.post("/api/blocks/intersecting", response_model=ApiIntersectingResponse)
def blocks_intersecting(body: ApiIntersectingRequest) -> ApiIntersectingResponse:
    boundaries = load_neighborhood_boundaries(body.neighborhoods)
    lookup = {b.slug: b for b in boundaries.values() if b.slug}
    lookup.update(boundaries)

    if body.neighborhoodIds is None:
        wanted = list(boundaries.keys())
    else:
        wanted = [nid for nid in body.neighborhoodIds if nid in lookup]

    chosen = []
    for nid in wanted:
        if lookup[nid] not in chosen:
            chosen.append(lookup[nid])

    ids, status = compute_intersecting_with_status(chosen, load_geojson_blocks(body.blocks))
    bbox = compute_combined_bbox(wanted, lookup)
    return ApiIntersectingResponse(
        blockIds=sorted(ids),
        bbox=list(bbox.as_tuple()) if bbox is not None else None,
        status=status,
    )
