from __future__ import annotations

import math
from dataclasses import dataclass

from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry

from geo.extent import Extent
from observability.logging import get_logger
from relation.schema import EXTENT_COLUMN
from store.query import Contains, Intersects, LayerQuery, NoKeys

logger = get_logger(__name__)

INTERSECTS = "intersects"


@dataclass(frozen=True)
class FilterPredicate:
    """
    A geometric constraint requested by the consumer, e.g. `extent intersects <geometry>`.
    """

    column_name: str
    relation_name: str
    geometry: BaseGeometry


def extent_intersects(geometry: BaseGeometry) -> FilterPredicate:
    return FilterPredicate(column_name=EXTENT_COLUMN, relation_name=INTERSECTS, geometry=geometry)


def is_supported(predicate: FilterPredicate) -> bool:
    """
    Whether `apply_filter` narrows the query for this predicate.
    """
    return (
        predicate.column_name == EXTENT_COLUMN
        and predicate.relation_name == INTERSECTS
        and isinstance(predicate.geometry, BaseGeometry)
    )


def apply_filter(query: LayerQuery, predicate: FilterPredicate) -> LayerQuery:
    """
    Narrow `query` by a filter predicate.

    - extent intersects <point>: the key whose extent contains the point. A point on a
      shared tile edge belongs to the tile east/south of it, so a point on the layout's
      east or south edge matches no key.
    - extent intersects <any other geometry>: keys whose extent intersects the geometry's envelope
    - extent intersects <empty geometry, or NaN coordinates>: no keys
    - anything else: returned unchanged. Unrecognized predicates are a pass-through with no
      effect on the result and no error; use `is_supported` to detect them.
    """
    if not is_supported(predicate):
        logger.debug(
            "filter_passthrough",
            layer=str(query.layer_id),
            column=predicate.column_name,
            relation=predicate.relation_name,
        )
        return query
    geom = predicate.geometry
    if geom.is_empty or any(math.isnan(v) for v in geom.bounds):
        return query.where(NoKeys())
    if isinstance(geom, Point):
        return query.where(Contains(geom))
    return query.where(Intersects(Extent.from_geometry(geom)))
