from __future__ import annotations

import json
from typing import Any

import pyarrow as pa

from layers.variants import KeyVariant, ValueVariant


SPATIAL_KEY_COLUMN = "spatial_key"
TEMPORAL_KEY_COLUMN = "temporal_key"
EXTENT_COLUMN = "extent"
TILE_COLUMN = "tile"

# Field metadata keys consumers use to recognize key columns.
ROLE_METADATA_KEY = "role"
CONTEXT_METADATA_KEY = "context"

SPATIAL_KEY_TYPE = pa.struct(
    [pa.field("col", pa.int32(), nullable=False), pa.field("row", pa.int32(), nullable=False)]
)
TEMPORAL_KEY_TYPE = pa.struct([pa.field("instant", pa.int64(), nullable=False)])
EXTENT_TYPE = pa.struct(
    [
        pa.field("xmin", pa.float64(), nullable=False),
        pa.field("ymin", pa.float64(), nullable=False),
        pa.field("xmax", pa.float64(), nullable=False),
        pa.field("ymax", pa.float64(), nullable=False),
    ]
)
TILE_STORAGE_TYPE = pa.struct(
    [
        pa.field("cell_type", pa.string()),
        pa.field("cols", pa.int32()),
        pa.field("rows", pa.int32()),
        pa.field("cells", pa.binary()),
    ]
)


class TileType(pa.ExtensionType):
    """
    Opaque raster tile column type (struct storage: cell type, dimensions, raw cells).
    """

    extension_name = "tilerel.tile"

    def __init__(self) -> None:
        super().__init__(TILE_STORAGE_TYPE, self.extension_name)

    def __arrow_ext_serialize__(self) -> bytes:
        return b""

    @classmethod
    def __arrow_ext_deserialize__(cls, storage_type: pa.DataType, serialized: bytes) -> "TileType":
        return cls()


TILE_TYPE = TileType()

try:
    pa.register_extension_type(TILE_TYPE)
except pa.ArrowKeyError:
    # Already registered (module re-import).
    pass


def spatial_key_metadata(context: dict[str, Any] | None = None) -> dict[str, str]:
    md = {ROLE_METADATA_KEY: SPATIAL_KEY_COLUMN}
    if context is not None:
        md[CONTEXT_METADATA_KEY] = json.dumps(context, sort_keys=True, separators=(",", ":"))
    return md


def temporal_key_metadata() -> dict[str, str]:
    return {ROLE_METADATA_KEY: TEMPORAL_KEY_COLUMN}


def build_schema(
    key_variant: KeyVariant,
    value_variant: ValueVariant,
    *,
    context: dict[str, Any] | None = None,
) -> pa.Schema:
    """
    Output schema for a layer.

    - spatial:    [spatial_key, extent, tile]
    - space-time: [spatial_key, temporal_key, extent, tile]

    `context` is the layer's layout metadata document; it is attached to the spatial
    key column so consumers can recover the layout from the schema alone.
    """
    key_fields = [
        pa.field(
            SPATIAL_KEY_COLUMN,
            SPATIAL_KEY_TYPE,
            nullable=False,
            metadata=spatial_key_metadata(context),
        )
    ]
    if key_variant is KeyVariant.SPACE_TIME:
        key_fields.append(
            pa.field(
                TEMPORAL_KEY_COLUMN,
                TEMPORAL_KEY_TYPE,
                nullable=False,
                metadata=temporal_key_metadata(),
            )
        )

    if value_variant is ValueVariant.TILE:
        tile_fields = [pa.field(TILE_COLUMN, TILE_TYPE, nullable=True)]
    else:
        raise ValueError(f"No schema for value variant {value_variant!r}")

    extent_field = pa.field(EXTENT_COLUMN, EXTENT_TYPE, nullable=False)
    return pa.schema([*key_fields, extent_field, *tile_fields])


def column_role(field: pa.Field) -> str | None:
    md = field.metadata or {}
    raw = md.get(ROLE_METADATA_KEY.encode("utf-8"))
    return raw.decode("utf-8") if raw is not None else None


def column_context(field: pa.Field) -> dict[str, Any] | None:
    md = field.metadata or {}
    raw = md.get(CONTEXT_METADATA_KEY.encode("utf-8"))
    return json.loads(raw) if raw is not None else None
