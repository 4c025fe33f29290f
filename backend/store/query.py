from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Iterator, TypeAlias, Union

from shapely.geometry import Point

from geo.extent import Extent
from geo.grid import GridBounds, MapKeyTransform
from layers.keys import LayerKey
from layers.tile import Tile
from layers.types import LayerId, LayerMetadata
from layers.variants import KeyVariant, ValueVariant

if TYPE_CHECKING:
    from store.types import QueryRunner


@dataclass(frozen=True)
class Contains:
    """
    Keys whose extent contains the point.
    """

    point: Point

    def grid_bounds(self, transform: MapKeyTransform) -> GridBounds:
        col, row = transform.point_to_key(self.point.x, self.point.y)
        return GridBounds(col_min=col, row_min=row, col_max=col, row_max=row)


@dataclass(frozen=True)
class Intersects:
    """
    Keys whose extent intersects the extent.
    """

    extent: Extent

    def grid_bounds(self, transform: MapKeyTransform) -> GridBounds:
        return transform.extent_to_bounds(self.extent)


@dataclass(frozen=True)
class NoKeys:
    """
    Matches no key (e.g. intersection with an empty geometry).
    """

    def grid_bounds(self, transform: MapKeyTransform) -> GridBounds:
        return GridBounds(col_min=0, row_min=0, col_max=-1, row_max=-1)


QueryConstraint: TypeAlias = Union[Contains, Intersects, NoKeys]


@dataclass(frozen=True)
class LayerQuery:
    """
    An immutable key-range query. `where` returns a narrower copy; nothing is read until
    `result()` is iterated.
    """

    layer_id: LayerId
    key_variant: KeyVariant
    value_variant: ValueVariant
    constraints: tuple[QueryConstraint, ...] = ()
    runner: "QueryRunner | None" = field(default=None, repr=False, compare=False)

    def where(self, constraint: QueryConstraint) -> "LayerQuery":
        return replace(self, constraints=(*self.constraints, constraint))

    def key_bounds(self, metadata: LayerMetadata) -> GridBounds | None:
        """
        Layer key bounds intersected with every constraint. `None` means no key can match.
        """
        transform = metadata.map_transform
        bounds: GridBounds | None = metadata.key_grid_bounds()
        for c in self.constraints:
            if bounds is None:
                return None
            bounds = bounds.intersection(c.grid_bounds(transform))
        return bounds

    def result(self) -> Iterator[tuple[LayerKey, Tile]]:
        if self.runner is None:
            raise RuntimeError(f"Query for layer {self.layer_id} is not bound to a reader")
        yield from self.runner.run(self)
