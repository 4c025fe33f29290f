from __future__ import annotations

from typing import Any, Iterable, Sequence

import pyarrow as pa

from geo.extent import Extent
from layers.keys import SpatialKey, TemporalKey
from layers.tile import Tile
from relation.schema import TILE_STORAGE_TYPE, TileType


def _to_storage(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (SpatialKey, TemporalKey, Extent)):
        return value.to_dict()
    if isinstance(value, Tile):
        return {
            "cell_type": value.cell_type,
            "cols": value.cols,
            "rows": value.rows,
            "cells": value.to_bytes(),
        }
    return value


def rows_to_arrow(schema: pa.Schema, columns: Sequence[str], rows: Iterable[tuple]) -> pa.Table:
    """
    Materialise scan rows into a table typed by the matching `schema` fields.
    """
    fields = [schema.field(name) for name in columns]
    values: list[list[Any]] = [[] for _ in fields]
    for row in rows:
        for i, v in enumerate(row):
            values[i].append(_to_storage(v))

    arrays: list[pa.Array] = []
    for f, col in zip(fields, values):
        if isinstance(f.type, TileType):
            storage = pa.array(col, type=TILE_STORAGE_TYPE)
            arrays.append(pa.ExtensionArray.from_storage(f.type, storage))
        else:
            arrays.append(pa.array(col, type=f.type))
    return pa.Table.from_arrays(arrays, schema=pa.schema(fields))
