from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator

import duckdb

from config import duckdb_threads
from layers.keys import LayerKey, SpaceTimeKey, SpatialKey
from layers.tile import Tile
from layers.types import LayerHeader, LayerId, LayerMetadata
from layers.variants import KeyVariant, ValueVariant
from observability.logging import get_logger
from store.query import LayerQuery
from store.sql import (
    COUNT_CATALOG_TABLES_SQL,
    CREATE_ATTRIBUTES_TABLE_SQL,
    CREATE_TILES_TABLE_SQL,
    DELETE_ATTRIBUTES_SQL,
    DELETE_TILES_SQL,
    INSERT_TILE_SQL,
    SELECT_ATTRIBUTE_SQL,
    SELECT_LAYER_IDS_SQL,
    SELECT_TILES_SQL_TEMPLATE,
    UPSERT_ATTRIBUTE_SQL,
)
from store.types import CatalogNotFoundError, LayerNotFoundError

logger = get_logger(__name__)

_FETCH_BATCH = 256


def _connect(path: str, *, threads: int, read_only: bool) -> duckdb.DuckDBPyConnection:
    p = Path(path)
    if not read_only and p.parent and str(p.parent) not in {".", ""}:
        p.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(database=str(p), read_only=read_only, config={"threads": int(threads)})


@dataclass
class DuckDBCatalog:
    """
    DuckDB-backed catalog with two tables: `layer_attributes` (JSON documents per layer)
    and `layer_tiles` (one row per key).

    Reads open the file read-only and never create it; the first write reopens it for
    writing (creating file and tables). Key bounds of a query are pushed down as a SQL
    WHERE on key_col/key_row.
    """

    path: str
    threads: int = field(default_factory=duckdb_threads)
    _conn: duckdb.DuckDBPyConnection | None = field(default=None, repr=False)
    _writable: bool = field(default=False, repr=False)
    _init_lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def _connection(self, *, write: bool = False) -> duckdb.DuckDBPyConnection:
        if self._conn is not None and (self._writable or not write):
            return self._conn
        with self._init_lock:
            if self._conn is not None and (self._writable or not write):
                return self._conn
            if self._conn is not None:
                # DuckDB allows one configuration per file and process: upgrade in place.
                self._conn.close()
                self._conn = None

            if write:
                conn = _connect(self.path, threads=self.threads, read_only=False)
                conn.execute(CREATE_ATTRIBUTES_TABLE_SQL)
                conn.execute(CREATE_TILES_TABLE_SQL)
            else:
                if not Path(self.path).is_file():
                    raise CatalogNotFoundError(self.path)
                conn = _connect(self.path, threads=self.threads, read_only=True)
                (n,) = conn.execute(COUNT_CATALOG_TABLES_SQL).fetchone()
                if int(n) < 2:
                    conn.close()
                    raise CatalogNotFoundError(self.path, reason="not a tile catalog")
            self._conn = conn
            self._writable = write
            return self._conn

    def _cursor(self, *, write: bool = False) -> duckdb.DuckDBPyConnection:
        # One cursor per call; cursors are safe to use from different threads.
        return self._connection(write=write).cursor()

    def close(self) -> None:
        with self._init_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                self._writable = False

    def _read_attribute(self, layer_id: LayerId, attribute: str) -> dict[str, Any]:
        try:
            cur = self._cursor()
        except CatalogNotFoundError as e:
            raise LayerNotFoundError(layer_id, what=attribute) from e
        try:
            row = cur.execute(
                SELECT_ATTRIBUTE_SQL, [layer_id.name, int(layer_id.zoom), attribute]
            ).fetchone()
        finally:
            cur.close()
        if row is None:
            raise LayerNotFoundError(layer_id, what=attribute)
        return json.loads(row[0])

    def read_header(self, layer_id: LayerId) -> LayerHeader:
        return LayerHeader.model_validate(self._read_attribute(layer_id, "header"))

    def read_metadata(self, layer_id: LayerId, key_variant: KeyVariant) -> LayerMetadata:
        return key_variant.metadata_type.model_validate(self._read_attribute(layer_id, "metadata"))

    def read_metadata_json(self, layer_id: LayerId) -> dict[str, Any]:
        return self._read_attribute(layer_id, "metadata")

    def layer_exists(self, layer_id: LayerId) -> bool:
        try:
            self._read_attribute(layer_id, "header")
        except LayerNotFoundError:
            return False
        return True

    def layer_ids(self) -> list[LayerId]:
        cur = self._cursor()
        try:
            rows = cur.execute(SELECT_LAYER_IDS_SQL).fetchall()
        finally:
            cur.close()
        return [LayerId(name=str(r[0]), zoom=int(r[1])) for r in rows]

    def write_attribute(self, layer_id: LayerId, attribute: str, doc: dict[str, Any]) -> None:
        cur = self._cursor(write=True)
        try:
            cur.execute(
                UPSERT_ATTRIBUTE_SQL,
                [layer_id.name, int(layer_id.zoom), attribute, json.dumps(doc, ensure_ascii=False)],
            )
        finally:
            cur.close()

    def write_layer(
        self,
        layer_id: LayerId,
        header: LayerHeader,
        metadata: LayerMetadata,
        records: Iterable[tuple[LayerKey, Tile]],
    ) -> None:
        rows: list[tuple] = []
        for key, tile in records:
            instant = key.instant if isinstance(key, SpaceTimeKey) else None
            rows.append(
                (
                    layer_id.name,
                    int(layer_id.zoom),
                    int(key.col),
                    int(key.row),
                    instant,
                    tile.cell_type,
                    tile.cols,
                    tile.rows,
                    tile.to_bytes(),
                )
            )

        cur = self._cursor(write=True)
        try:
            cur.execute("BEGIN TRANSACTION")
            cur.execute(DELETE_TILES_SQL, [layer_id.name, int(layer_id.zoom)])
            cur.execute(DELETE_ATTRIBUTES_SQL, [layer_id.name, int(layer_id.zoom)])
            cur.execute(
                UPSERT_ATTRIBUTE_SQL,
                [
                    layer_id.name,
                    int(layer_id.zoom),
                    "header",
                    json.dumps(header.model_dump(mode="json", by_alias=True)),
                ],
            )
            cur.execute(
                UPSERT_ATTRIBUTE_SQL,
                [layer_id.name, int(layer_id.zoom), "metadata", json.dumps(metadata.to_json_dict())],
            )
            if rows:
                cur.executemany(INSERT_TILE_SQL, rows)
            cur.execute("COMMIT")
        except Exception:
            cur.execute("ROLLBACK")
            raise
        finally:
            cur.close()
        logger.debug("duckdb_layer_written", path=self.path, layer=str(layer_id), n=len(rows))

    def query(
        self, layer_id: LayerId, key_variant: KeyVariant, value_variant: ValueVariant
    ) -> LayerQuery:
        return LayerQuery(
            layer_id=layer_id,
            key_variant=key_variant,
            value_variant=value_variant,
            runner=self,
        )

    def run(self, query: LayerQuery) -> Iterator[tuple[LayerKey, Tile]]:
        metadata = self.read_metadata(query.layer_id, query.key_variant)
        bounds = query.key_bounds(metadata)
        if bounds is None:
            return
        space_time = query.key_variant is KeyVariant.SPACE_TIME
        sql = SELECT_TILES_SQL_TEMPLATE.format(
            instant_sql="key_instant IS NOT NULL" if space_time else "key_instant IS NULL"
        )
        params = [
            query.layer_id.name,
            int(query.layer_id.zoom),
            bounds.col_min,
            bounds.col_max,
            bounds.row_min,
            bounds.row_max,
        ]
        logger.debug("duckdb_tile_query", path=self.path, layer=str(query.layer_id), bounds=bounds)

        cur = self._cursor()
        try:
            cur.execute(sql, params)
            while True:
                batch = cur.fetchmany(_FETCH_BATCH)
                if not batch:
                    break
                for col, row, instant, cell_type, cols, rows, cells in batch:
                    if space_time:
                        key: LayerKey = SpaceTimeKey(col=int(col), row=int(row), instant=int(instant))
                    else:
                        key = SpatialKey(col=int(col), row=int(row))
                    yield key, Tile.from_bytes(cells, cell_type=cell_type, cols=cols, rows=rows)
        finally:
            cur.close()


_CATALOGS: dict[str, DuckDBCatalog] = {}
_CATALOGS_LOCK = threading.RLock()


def duckdb_catalog(path: str | Path) -> DuckDBCatalog:
    """
    One catalog (and connection) per database file; DuckDB refuses to open the same
    file twice with different configurations in one process.
    """
    resolved = str(Path(path).expanduser().resolve())
    with _CATALOGS_LOCK:
        cat = _CATALOGS.get(resolved)
        if cat is None:
            cat = DuckDBCatalog(path=resolved)
            _CATALOGS[resolved] = cat
        return cat


def close_duckdb_catalogs() -> None:
    with _CATALOGS_LOCK:
        for cat in _CATALOGS.values():
            cat.close()
        _CATALOGS.clear()
