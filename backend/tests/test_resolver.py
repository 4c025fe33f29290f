from __future__ import annotations

import pytest

from layers.types import LayerHeader
from layers.variants import KeyVariant, ValueVariant
from relation.errors import UnsupportedKeyType, UnsupportedValueType
from relation.resolver import resolve_variants


@pytest.mark.parametrize(
    "key_class, expected",
    [
        ("SpatialKey", KeyVariant.SPATIAL),
        ("geotrellis.spark.SpatialKey", KeyVariant.SPATIAL),
        ("geotrellis.layer.SpatialKey", KeyVariant.SPATIAL),
        ("SpaceTimeKey", KeyVariant.SPACE_TIME),
        ("geotrellis.spark.SpaceTimeKey", KeyVariant.SPACE_TIME),
    ],
)
def test_resolves_known_key_classes(key_class, expected):
    header = LayerHeader(key_class_name=key_class, value_class_name="geotrellis.raster.Tile")
    assert resolve_variants(header) == (expected, ValueVariant.TILE)


def test_header_parses_stored_document():
    header = LayerHeader.model_validate(
        {"format": "file", "keyClass": "geotrellis.spark.SpaceTimeKey", "valueClass": "Tile"}
    )
    assert header.key_class_name == "geotrellis.spark.SpaceTimeKey"
    assert resolve_variants(header)[0] is KeyVariant.SPACE_TIME


def test_unknown_key_class_fails():
    header = LayerHeader(key_class_name="geotrellis.spark.GridKey", value_class_name="Tile")
    with pytest.raises(UnsupportedKeyType) as exc:
        resolve_variants(header)
    assert exc.value.class_name == "geotrellis.spark.GridKey"


def test_unknown_value_class_fails():
    header = LayerHeader(key_class_name="SpatialKey", value_class_name="MultibandTile")
    with pytest.raises(UnsupportedValueType):
        resolve_variants(header)


def test_key_is_checked_before_value():
    header = LayerHeader(key_class_name="Nope", value_class_name="AlsoNope")
    with pytest.raises(UnsupportedKeyType):
        resolve_variants(header)
