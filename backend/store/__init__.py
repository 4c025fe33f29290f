"""
Layer catalogs: read-only attribute stores and layer readers.

A catalog is addressed by URI:
- memory://<name>                process-local catalog (fixtures, tests)
- duckdb:///<path>, file:///<path> or a bare path to a DuckDB file
"""
from __future__ import annotations

from pathlib import Path
from typing import TypeAlias, Union
from urllib.parse import urlparse

from store.duckdb_catalog import DuckDBCatalog, close_duckdb_catalogs, duckdb_catalog
from store.memory import MemoryCatalog, drop_memory_catalog, memory_catalog
from store.query import Contains, Intersects, LayerQuery, NoKeys, QueryConstraint
from store.types import (
    AttributeStore,
    CatalogNotFoundError,
    LayerNotFoundError,
    LayerReader,
    LayerWriter,
)

Catalog: TypeAlias = Union[MemoryCatalog, DuckDBCatalog]


def open_catalog(uri: str | Path) -> Catalog:
    """
    Resolve a catalog URI. Query strings (e.g. `?layer=...&zoom=...`) are ignored here.
    """
    if isinstance(uri, Path):
        return duckdb_catalog(uri)
    raw = (uri or "").strip()
    if not raw:
        raise ValueError("Catalog URI must not be empty")
    parsed = urlparse(raw)
    scheme = parsed.scheme.lower()
    if scheme == "memory":
        return memory_catalog(parsed.netloc or parsed.path.lstrip("/"))
    if scheme in {"duckdb", "file"}:
        path = (parsed.netloc + parsed.path) if parsed.netloc else parsed.path
        if not path:
            raise ValueError(f"Catalog URI has no path: {raw}")
        return duckdb_catalog(path)
    if scheme == "":
        return duckdb_catalog(parsed.path)
    raise ValueError(f"Unsupported catalog URI scheme {scheme!r}: {raw}")


def attribute_store(uri: str | Path) -> AttributeStore:
    return open_catalog(uri)


def layer_reader(uri: str | Path) -> LayerReader:
    return open_catalog(uri)


__all__ = (
    "AttributeStore",
    "CatalogNotFoundError",
    "Catalog",
    "Contains",
    "DuckDBCatalog",
    "Intersects",
    "LayerNotFoundError",
    "LayerQuery",
    "LayerReader",
    "LayerWriter",
    "MemoryCatalog",
    "NoKeys",
    "QueryConstraint",
    "attribute_store",
    "close_duckdb_catalogs",
    "drop_memory_catalog",
    "duckdb_catalog",
    "layer_reader",
    "memory_catalog",
    "open_catalog",
)
