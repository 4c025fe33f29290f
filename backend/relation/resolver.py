from __future__ import annotations

from layers.types import LayerHeader
from layers.variants import KeyVariant, ValueVariant
from relation.errors import UnsupportedKeyType, UnsupportedValueType


# Matched on the last dotted segment, so `geotrellis.spark.SpatialKey`,
# `geotrellis.layer.SpatialKey` and `SpatialKey` all resolve the same way.
_KEY_CLASSES: dict[str, KeyVariant] = {
    "SpaceTimeKey": KeyVariant.SPACE_TIME,
    "SpatialKey": KeyVariant.SPATIAL,
}

_VALUE_CLASSES: dict[str, ValueVariant] = {
    "Tile": ValueVariant.TILE,
}


def _simple_name(class_name: str) -> str:
    return (class_name or "").strip().rsplit(".", 1)[-1]


def resolve_key_variant(class_name: str) -> KeyVariant:
    kv = _KEY_CLASSES.get(_simple_name(class_name))
    if kv is None:
        raise UnsupportedKeyType(class_name)
    return kv


def resolve_value_variant(class_name: str) -> ValueVariant:
    vv = _VALUE_CLASSES.get(_simple_name(class_name))
    if vv is None:
        raise UnsupportedValueType(class_name)
    return vv


def resolve_variants(header: LayerHeader) -> tuple[KeyVariant, ValueVariant]:
    """
    Resolve a layer header into its (key, value) variants.

    The key is checked first; either failure is fatal for the layer.
    """
    kv = resolve_key_variant(header.key_class_name)
    vv = resolve_value_variant(header.value_class_name)
    return kv, vv
