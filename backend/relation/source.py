from __future__ import annotations

from typing import Iterable
from urllib.parse import parse_qs, urlparse, urlunparse

from layers.types import LayerId
from relation.filters import FilterPredicate
from relation.relation import LayerRelation
from store import open_catalog

LAYER_PARAM = "layer"
ZOOM_PARAM = "zoom"


def create_relation(
    uri: str,
    *,
    layer: str | None,
    zoom: int | str | None,
    filters: Iterable[FilterPredicate] = (),
) -> LayerRelation:
    """
    Build a relation for `layer` at `zoom` in the catalog at `uri`.

    Both options are required; the layer itself is only read on first use.
    """
    name = (layer or "").strip()
    if not name:
        raise ValueError(f"'{LAYER_PARAM}' option is required")
    if zoom is None or str(zoom).strip() == "":
        raise ValueError(f"'{ZOOM_PARAM}' option is required")
    try:
        z = int(str(zoom).strip())
    except ValueError as e:
        raise ValueError(f"'{ZOOM_PARAM}' option must be an integer, got {zoom!r}") from e
    return LayerRelation(uri=uri, layer_id=LayerId(name=name, zoom=z), filters=tuple(filters))


def relation_from_uri(uri: str) -> LayerRelation:
    """
    Parse `<catalog-uri>?layer=<name>&zoom=<n>` into a relation.
    """
    parsed = urlparse(uri)
    params = parse_qs(parsed.query)
    layer = (params.get(LAYER_PARAM) or [None])[0]
    zoom = (params.get(ZOOM_PARAM) or [None])[0]
    base = urlunparse(parsed._replace(query=""))
    return create_relation(base, layer=layer, zoom=zoom)


def list_layers(uri: str) -> list[LayerId]:
    return open_catalog(uri).layer_ids()
