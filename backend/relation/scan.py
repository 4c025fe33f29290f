from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, Sequence

import pyarrow as pa

from layers.keys import LayerKey, SpaceTimeKey, SpatialKey
from layers.tile import Tile
from layers.types import LayerId, LayerMetadata
from layers.variants import KeyVariant, ValueVariant
from relation.errors import UnknownColumn
from relation.filters import FilterPredicate, apply_filter
from relation.schema import EXTENT_COLUMN, SPATIAL_KEY_COLUMN, TEMPORAL_KEY_COLUMN, TILE_COLUMN
from store.types import LayerReader

Row = tuple[Any, ...]
Extractor = Callable[[LayerKey, Tile], Any]


def column_indexes(schema: pa.Schema, required_columns: Sequence[str]) -> list[int]:
    """
    Positions of the requested columns in `schema`, in requested order.
    """
    names = list(schema.names)
    out: list[int] = []
    for name in required_columns:
        if name not in names:
            raise UnknownColumn(name, names)
        out.append(names.index(name))
    return out


def _extractors(key_variant: KeyVariant, metadata: LayerMetadata) -> dict[str, Extractor]:
    transform = metadata.map_transform

    def extent(key: LayerKey, _tile: Tile) -> Any:
        return transform.key_to_extent(key.col, key.row)

    def tile(_key: LayerKey, t: Tile) -> Any:
        return t

    if key_variant is KeyVariant.SPACE_TIME:

        def spatial_key(key: SpaceTimeKey, _tile: Tile) -> Any:
            return key.spatial_key

        def temporal_key(key: SpaceTimeKey, _tile: Tile) -> Any:
            return key.temporal_key

        return {
            SPATIAL_KEY_COLUMN: spatial_key,
            TEMPORAL_KEY_COLUMN: temporal_key,
            EXTENT_COLUMN: extent,
            TILE_COLUMN: tile,
        }

    def spatial_key(key: SpatialKey, _tile: Tile) -> Any:
        return key

    return {
        SPATIAL_KEY_COLUMN: spatial_key,
        EXTENT_COLUMN: extent,
        TILE_COLUMN: tile,
    }


def _project(
    records: Iterable[tuple[LayerKey, Tile]], extractors: list[Extractor]
) -> Iterator[Row]:
    for key, t in records:
        yield tuple(fn(key, t) for fn in extractors)


def build_scan(
    reader: LayerReader,
    *,
    layer_id: LayerId,
    key_variant: KeyVariant,
    value_variant: ValueVariant,
    metadata: LayerMetadata,
    schema: pa.Schema,
    filters: Sequence[FilterPredicate],
    required_columns: Sequence[str],
) -> Iterator[Row]:
    """
    Scan a layer, returning rows holding only `required_columns`, in that order.

    Unknown columns fail here; the reader is not read until the result is iterated.
    Derived values (extent) are only computed for requested columns.
    """
    indexes = column_indexes(schema, required_columns)
    by_name = _extractors(key_variant, metadata)
    extractors = [by_name[schema.names[i]] for i in indexes]

    query = reader.query(layer_id, key_variant, value_variant)
    for predicate in filters:
        query = apply_filter(query, predicate)

    return _project(query.result(), extractors)
