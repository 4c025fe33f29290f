from __future__ import annotations

import json
from enum import Enum
from typing import Any, Iterable, Iterator, Sequence

import pyarrow as pa

from geo.extent import Extent
from layers.keys import SpatialKey, TemporalKey
from layers.tile import Tile


class EventType(str, Enum):
    row = "row"
    end = "end"


def format_event(type: EventType, data: str):
    return f"event: {type.value}\ndata: {data}\n\n"


def _jsonable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (SpatialKey, Extent)):
        return value.to_dict()
    if isinstance(value, TemporalKey):
        return {"instant": value.instant, "time": value.time.isoformat()}
    if isinstance(value, Tile):
        # Cells stay in the store; clients get the tile's shape and a cheap summary.
        return {
            "cellType": value.cell_type,
            "cols": value.cols,
            "rows": value.rows,
            "min": float(value.cells.min()) if value.cells.size else None,
            "max": float(value.cells.max()) if value.cells.size else None,
        }
    return value


def row_to_dict(columns: Sequence[str], row: tuple) -> dict[str, Any]:
    return {name: _jsonable(v) for name, v in zip(columns, row)}


def stream_rows(columns: Sequence[str], rows: Iterable[tuple]) -> Iterator[str]:
    """
    Server-sent events: one `row` event per scanned row, then `end` with the row count.
    """
    n = 0
    for row in rows:
        n += 1
        yield format_event(EventType.row, json.dumps(row_to_dict(columns, row)))
    yield format_event(EventType.end, json.dumps({"rows": n}))


def describe_schema(schema: pa.Schema) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for f in schema:
        md = {k.decode("utf-8"): v.decode("utf-8") for k, v in (f.metadata or {}).items()}
        out.append({"name": f.name, "type": str(f.type), "nullable": f.nullable, "metadata": md})
    return out
