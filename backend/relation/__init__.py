"""
Tile layer relation: exposes a keyed tile layer as a column-pruned, filterable table.

Entry points:
- `LayerRelation` / `create_relation` / `relation_from_uri`
- `FilterPredicate` (`extent intersects <geometry>` is pushed down to the layer reader)
"""
from __future__ import annotations

from relation.errors import RelationError, UnknownColumn, UnsupportedKeyType, UnsupportedValueType
from relation.filters import FilterPredicate, apply_filter, extent_intersects, is_supported
from relation.relation import LayerRelation
from relation.resolver import resolve_variants
from relation.schema import (
    EXTENT_COLUMN,
    SPATIAL_KEY_COLUMN,
    TEMPORAL_KEY_COLUMN,
    TILE_COLUMN,
    TileType,
    build_schema,
)
from relation.source import create_relation, list_layers, relation_from_uri

__all__ = (
    "EXTENT_COLUMN",
    "FilterPredicate",
    "LayerRelation",
    "RelationError",
    "SPATIAL_KEY_COLUMN",
    "TEMPORAL_KEY_COLUMN",
    "TILE_COLUMN",
    "TileType",
    "UnknownColumn",
    "UnsupportedKeyType",
    "UnsupportedValueType",
    "apply_filter",
    "build_schema",
    "create_relation",
    "extent_intersects",
    "is_supported",
    "list_layers",
    "relation_from_uri",
    "resolve_variants",
)
