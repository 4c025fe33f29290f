from __future__ import annotations

from enum import Enum

from layers.keys import SpaceTimeKey, SpatialKey
from layers.types import SpaceTimeLayerMetadata, SpatialLayerMetadata


class KeyVariant(str, Enum):
    SPATIAL = "spatial"
    SPACE_TIME = "space_time"

    @property
    def key_type(self) -> type:
        return SpaceTimeKey if self is KeyVariant.SPACE_TIME else SpatialKey

    @property
    def metadata_type(self) -> type:
        return SpaceTimeLayerMetadata if self is KeyVariant.SPACE_TIME else SpatialLayerMetadata


class ValueVariant(str, Enum):
    TILE = "tile"
