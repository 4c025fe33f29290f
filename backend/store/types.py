from __future__ import annotations

from typing import Any, Iterable, Iterator, Protocol

from layers.keys import LayerKey
from layers.tile import Tile
from layers.types import LayerHeader, LayerId, LayerMetadata
from layers.variants import KeyVariant, ValueVariant
from store.query import LayerQuery


class LayerNotFoundError(LookupError):
    def __init__(self, layer_id: LayerId, what: str = "layer"):
        super().__init__(f"No {what} found for layer {layer_id}")
        self.layer_id = layer_id


class CatalogNotFoundError(ValueError):
    def __init__(self, path: str, reason: str = "no such file"):
        super().__init__(f"No tile catalog at {path}: {reason}")
        self.path = path


class AttributeStore(Protocol):
    """
    Read-only access to per-layer documents (header, layout metadata).

    Every read raises `LayerNotFoundError` when the layer is absent.
    """

    def read_header(self, layer_id: LayerId) -> LayerHeader: ...

    def read_metadata(self, layer_id: LayerId, key_variant: KeyVariant) -> LayerMetadata: ...

    def read_metadata_json(self, layer_id: LayerId) -> dict[str, Any]: ...

    def layer_exists(self, layer_id: LayerId) -> bool: ...

    def layer_ids(self) -> list[LayerId]: ...


class LayerReader(Protocol):
    """
    Opens key-range queries against stored layers.

    `query(...).result()` is a lazy iterator of (key, tile) records.
    """

    def query(
        self, layer_id: LayerId, key_variant: KeyVariant, value_variant: ValueVariant
    ) -> LayerQuery: ...


class LayerWriter(Protocol):
    def write_layer(
        self,
        layer_id: LayerId,
        header: LayerHeader,
        metadata: LayerMetadata,
        records: Iterable[tuple[LayerKey, Tile]],
    ) -> None: ...


class QueryRunner(Protocol):
    def run(self, query: LayerQuery) -> Iterator[tuple[LayerKey, Tile]]: ...
