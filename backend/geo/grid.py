from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

from geo.extent import Extent


@dataclass(frozen=True)
class GridBounds:
    """
    Inclusive col/row rectangle of tile keys.
    """

    col_min: int
    row_min: int
    col_max: int
    row_max: int

    @property
    def size(self) -> int:
        return max(0, self.col_max - self.col_min + 1) * max(0, self.row_max - self.row_min + 1)

    def contains(self, col: int, row: int) -> bool:
        return self.col_min <= col <= self.col_max and self.row_min <= row <= self.row_max

    def intersection(self, other: "GridBounds") -> "GridBounds | None":
        col_min = max(self.col_min, other.col_min)
        row_min = max(self.row_min, other.row_min)
        col_max = min(self.col_max, other.col_max)
        row_max = min(self.row_max, other.row_max)
        if col_min > col_max or row_min > row_max:
            return None
        return GridBounds(col_min=col_min, row_min=row_min, col_max=col_max, row_max=row_max)

    def coords(self) -> Iterator[tuple[int, int]]:
        for col in range(self.col_min, self.col_max + 1):
            for row in range(self.row_min, self.row_max + 1):
                yield col, row


@dataclass(frozen=True)
class TileLayout:
    layout_cols: int
    layout_rows: int
    tile_cols: int
    tile_rows: int


@dataclass(frozen=True)
class MapKeyTransform:
    """
    Maps grid keys to extents over a layout extent and back.

    Columns grow from `xmin` to the east; rows grow from `ymax` to the south.
    """

    extent: Extent
    layout_cols: int
    layout_rows: int

    @property
    def tile_width(self) -> float:
        return self.extent.width / self.layout_cols

    @property
    def tile_height(self) -> float:
        return self.extent.height / self.layout_rows

    def key_to_extent(self, col: int, row: int) -> Extent:
        tw = self.tile_width
        th = self.tile_height
        return Extent(
            xmin=self.extent.xmin + col * tw,
            ymin=self.extent.ymax - (row + 1) * th,
            xmax=self.extent.xmin + (col + 1) * tw,
            ymax=self.extent.ymax - row * th,
        )

    def _clamp_x(self, x: float) -> float:
        # Anything beyond one tile outside the layout lands on the same out-of-range key;
        # keeps infinite coordinates out of the integer conversion.
        tw = self.tile_width
        return min(max(float(x), self.extent.xmin - tw), self.extent.xmax + tw)

    def _clamp_y(self, y: float) -> float:
        th = self.tile_height
        return min(max(float(y), self.extent.ymin - th), self.extent.ymax + th)

    def point_to_key(self, x: float, y: float) -> tuple[int, int]:
        col = int(math.floor((self._clamp_x(x) - self.extent.xmin) / self.tile_width))
        row = int(math.floor((self.extent.ymax - self._clamp_y(y)) / self.tile_height))
        return col, row

    def extent_to_bounds(self, other: Extent) -> GridBounds:
        """
        Grid bounds of every key whose extent intersects `other`.

        A max edge lying exactly on a tile boundary does not pull in the next tile.
        """
        b = other.normalized()
        col_min, row_min = self.point_to_key(b.xmin, b.ymax)

        d_col = (self._clamp_x(b.xmax) - self.extent.xmin) / self.tile_width
        col_max = int(math.floor(d_col))
        if d_col == math.floor(d_col) and col_max != col_min:
            col_max -= 1

        d_row = (self.extent.ymax - self._clamp_y(b.ymin)) / self.tile_height
        row_max = int(math.floor(d_row))
        if d_row == math.floor(d_row) and row_max != row_min:
            row_max -= 1

        return GridBounds(col_min=col_min, row_min=row_min, col_max=col_max, row_max=row_max)


@dataclass(frozen=True)
class LayoutDefinition:
    extent: Extent
    tile_layout: TileLayout

    @property
    def map_transform(self) -> MapKeyTransform:
        return MapKeyTransform(
            extent=self.extent,
            layout_cols=self.tile_layout.layout_cols,
            layout_rows=self.tile_layout.layout_rows,
        )

    def grid_bounds(self) -> GridBounds:
        return GridBounds(
            col_min=0,
            row_min=0,
            col_max=self.tile_layout.layout_cols - 1,
            row_max=self.tile_layout.layout_rows - 1,
        )
