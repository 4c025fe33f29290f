from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from layers.keys import LayerKey
from layers.tile import Tile
from layers.types import LayerHeader, LayerId, LayerMetadata
from layers.variants import KeyVariant, ValueVariant
from observability.logging import get_logger
from store.query import LayerQuery
from store.types import LayerNotFoundError

logger = get_logger(__name__)

HEADER_ATTRIBUTE = "header"
METADATA_ATTRIBUTE = "metadata"


@dataclass
class MemoryCatalog:
    """
    Process-local catalog: attribute store, layer reader and layer writer in one.

    Addressed as `memory://<name>` through the module-level registry.
    """

    name: str
    _attributes: dict[LayerId, dict[str, dict[str, Any]]] = field(default_factory=dict, repr=False)
    _tiles: dict[LayerId, dict[LayerKey, Tile]] = field(default_factory=dict, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def _read_attribute(self, layer_id: LayerId, attribute: str) -> dict[str, Any]:
        with self._lock:
            doc = self._attributes.get(layer_id, {}).get(attribute)
        if doc is None:
            raise LayerNotFoundError(layer_id, what=attribute)
        return copy.deepcopy(doc)

    def read_header(self, layer_id: LayerId) -> LayerHeader:
        return LayerHeader.model_validate(self._read_attribute(layer_id, HEADER_ATTRIBUTE))

    def read_metadata(self, layer_id: LayerId, key_variant: KeyVariant) -> LayerMetadata:
        doc = self._read_attribute(layer_id, METADATA_ATTRIBUTE)
        return key_variant.metadata_type.model_validate(doc)

    def read_metadata_json(self, layer_id: LayerId) -> dict[str, Any]:
        return self._read_attribute(layer_id, METADATA_ATTRIBUTE)

    def layer_exists(self, layer_id: LayerId) -> bool:
        with self._lock:
            return HEADER_ATTRIBUTE in self._attributes.get(layer_id, {})

    def layer_ids(self) -> list[LayerId]:
        with self._lock:
            ids = [lid for lid, attrs in self._attributes.items() if HEADER_ATTRIBUTE in attrs]
        return sorted(ids, key=lambda lid: (lid.name, lid.zoom))

    def write_attribute(self, layer_id: LayerId, attribute: str, doc: dict[str, Any]) -> None:
        with self._lock:
            self._attributes.setdefault(layer_id, {})[attribute] = copy.deepcopy(doc)

    def write_layer(
        self,
        layer_id: LayerId,
        header: LayerHeader,
        metadata: LayerMetadata,
        records: Iterable[tuple[LayerKey, Tile]],
    ) -> None:
        tiles = {key: tile for key, tile in records}
        with self._lock:
            self.write_attribute(layer_id, HEADER_ATTRIBUTE, header.model_dump(mode="json", by_alias=True))
            self.write_attribute(layer_id, METADATA_ATTRIBUTE, metadata.to_json_dict())
            self._tiles[layer_id] = tiles
        logger.debug("memory_layer_written", catalog=self.name, layer=str(layer_id), n=len(tiles))

    def query(
        self, layer_id: LayerId, key_variant: KeyVariant, value_variant: ValueVariant
    ) -> LayerQuery:
        return LayerQuery(
            layer_id=layer_id,
            key_variant=key_variant,
            value_variant=value_variant,
            runner=self,
        )

    def run(self, query: LayerQuery) -> Iterator[tuple[LayerKey, Tile]]:
        metadata = self.read_metadata(query.layer_id, query.key_variant)
        bounds = query.key_bounds(metadata)
        if bounds is None:
            return
        with self._lock:
            items = list(self._tiles.get(query.layer_id, {}).items())
        key_type = query.key_variant.key_type
        for key, tile in sorted(items, key=lambda kv: kv[0]):
            if isinstance(key, key_type) and bounds.contains(key.col, key.row):
                yield key, tile


_CATALOGS: dict[str, MemoryCatalog] = {}
_CATALOGS_LOCK = threading.RLock()


def memory_catalog(name: str) -> MemoryCatalog:
    """
    Get (or create) the named in-memory catalog.
    """
    key = (name or "").strip() or "default"
    with _CATALOGS_LOCK:
        cat = _CATALOGS.get(key)
        if cat is None:
            cat = MemoryCatalog(name=key)
            _CATALOGS[key] = cat
        return cat


def drop_memory_catalog(name: str) -> None:
    with _CATALOGS_LOCK:
        _CATALOGS.pop((name or "").strip() or "default", None)
