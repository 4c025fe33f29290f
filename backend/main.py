from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from shapely import wkt
from shapely.errors import ShapelyError

from api.rows import describe_schema, stream_rows
from config import catalog_uri, cors_origins
from layers.types import LayerId
from observability.logging import get_logger
from relation import (
    FilterPredicate,
    LayerRelation,
    RelationError,
    UnknownColumn,
    create_relation,
    list_layers,
)
from store import LayerNotFoundError

logger = get_logger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ApiFilter(BaseModel):
    column: str
    relation: str = "intersects"
    # Geometry as WKT, e.g. "POINT (0.5 0.5)".
    geometry: str


class ApiScan(BaseModel):
    catalog: str | None = None
    columns: list[str] | None = None
    filters: list[ApiFilter] = Field(default_factory=list)


def _predicate(f: ApiFilter) -> FilterPredicate:
    try:
        geom = wkt.loads(f.geometry)
    except ShapelyError as e:
        raise HTTPException(status_code=400, detail=f"Invalid WKT geometry: {f.geometry!r}") from e
    return FilterPredicate(column_name=f.column, relation_name=f.relation, geometry=geom)


def _relation(catalog: str | None, layer: str, zoom: int) -> LayerRelation:
    try:
        return create_relation(catalog or catalog_uri(), layer=layer, zoom=zoom)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, LayerNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, UnknownColumn):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=422, detail=str(e))


@app.get("/layers")
def layers(catalog: str | None = None):
    try:
        ids = list_layers(catalog or catalog_uri())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return [{"name": lid.name, "zoom": lid.zoom} for lid in ids]


@app.get("/layers/{name}/{zoom}/schema")
def layer_schema(name: str, zoom: int, catalog: str | None = None):
    rel = _relation(catalog, name, zoom)
    try:
        schema = rel.schema
    except (LayerNotFoundError, RelationError) as e:
        raise _http_error(e) from e
    return {
        "layer": str(LayerId(name, zoom)),
        "keyVariant": rel.key_variant.value,
        "valueVariant": rel.value_variant.value,
        "columns": describe_schema(schema),
    }


@app.post("/layers/{name}/{zoom}/scan")
def layer_scan(name: str, zoom: int, body: ApiScan):
    rel = _relation(body.catalog, name, zoom)
    for f in body.filters:
        rel = rel.with_filter(_predicate(f))
    try:
        columns = body.columns if body.columns else list(rel.schema.names)
        rows = rel.build_scan(columns)
    except (LayerNotFoundError, RelationError) as e:
        raise _http_error(e) from e

    ignored = rel.unhandled_filters
    if ignored:
        logger.info(
            "scan_filters_ignored",
            layer=str(rel.layer_id),
            filters=[f"{p.column_name} {p.relation_name}" for p in ignored],
        )
    return StreamingResponse(
        stream_rows(columns, rows),
        media_type="text/event-stream",
        headers={"X-Ignored-Filters": str(len(ignored))},
    )
