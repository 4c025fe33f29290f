from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeAlias, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pyproj import CRS
from pyproj.exceptions import CRSError

from geo.extent import Extent
from geo.grid import GridBounds, LayoutDefinition, MapKeyTransform, TileLayout
from layers.keys import LayerKey, SpaceTimeKey, SpatialKey


@dataclass(frozen=True)
class LayerId:
    """
    A named, leveled layer inside a catalog.
    """

    name: str
    zoom: int

    def __str__(self) -> str:
        return f"{self.name}:{self.zoom}"


class _Document(BaseModel):
    # Stored documents use camelCase keys; Python code uses snake_case names.
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class LayerHeader(_Document):
    """
    Header document written next to every layer.

    `keyClass` / `valueClass` name the key and value representations, either bare
    (`SpatialKey`) or fully qualified (`geotrellis.spark.SpatialKey`).
    """

    key_class_name: str = Field(alias="keyClass")
    value_class_name: str = Field(alias="valueClass")
    format: str | None = None


class TileLayoutDoc(_Document):
    layout_cols: int = Field(alias="layoutCols", gt=0)
    layout_rows: int = Field(alias="layoutRows", gt=0)
    tile_cols: int = Field(alias="tileCols", gt=0)
    tile_rows: int = Field(alias="tileRows", gt=0)


class LayoutDefinitionDoc(_Document):
    extent: Extent
    tile_layout: TileLayoutDoc = Field(alias="tileLayout")

    def to_layout(self) -> LayoutDefinition:
        tl = self.tile_layout
        return LayoutDefinition(
            extent=self.extent,
            tile_layout=TileLayout(
                layout_cols=tl.layout_cols,
                layout_rows=tl.layout_rows,
                tile_cols=tl.tile_cols,
                tile_rows=tl.tile_rows,
            ),
        )


class SpatialBounds(_Document):
    min_key: SpatialKey = Field(alias="minKey")
    max_key: SpatialKey = Field(alias="maxKey")


class SpaceTimeBounds(_Document):
    min_key: SpaceTimeKey = Field(alias="minKey")
    max_key: SpaceTimeKey = Field(alias="maxKey")


class _TileLayerMetadata(_Document):
    cell_type: str = Field(alias="cellType")
    layout_definition: LayoutDefinitionDoc = Field(alias="layoutDefinition")
    extent: Extent
    crs: str

    @field_validator("crs")
    @classmethod
    def _valid_crs(cls, v: str) -> str:
        try:
            return CRS.from_user_input(v).to_string()
        except CRSError as e:
            raise ValueError(f"Invalid CRS: {v!r}") from e

    @property
    def layout(self) -> LayoutDefinition:
        return self.layout_definition.to_layout()

    @property
    def map_transform(self) -> MapKeyTransform:
        return self.layout.map_transform

    def key_to_extent(self, key: LayerKey) -> Extent:
        return self.map_transform.key_to_extent(key.col, key.row)

    def key_grid_bounds(self) -> GridBounds:
        """
        Grid bounds of keys present in the layer (the full layout when bounds are unknown).
        """
        bounds = getattr(self, "bounds", None)
        if bounds is None:
            return self.layout.grid_bounds()
        return GridBounds(
            col_min=bounds.min_key.col,
            row_min=bounds.min_key.row,
            col_max=bounds.max_key.col,
            row_max=bounds.max_key.row,
        )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SpatialLayerMetadata(_TileLayerMetadata):
    bounds: SpatialBounds | None = None


class SpaceTimeLayerMetadata(_TileLayerMetadata):
    bounds: SpaceTimeBounds | None = None


LayerMetadata: TypeAlias = Union[SpatialLayerMetadata, SpaceTimeLayerMetadata]
