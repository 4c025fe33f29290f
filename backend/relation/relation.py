from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Any, Iterator, Sequence

import pyarrow as pa

from config import default_size_in_bytes
from layers.types import LayerId, LayerMetadata
from layers.variants import KeyVariant, ValueVariant
from observability.logging import get_logger
from relation.arrow import rows_to_arrow
from relation.filters import FilterPredicate, is_supported
from relation.resolver import resolve_variants
from relation.scan import Row, build_scan
from relation.schema import build_schema
from store import attribute_store, layer_reader
from store.types import AttributeStore, LayerReader

logger = get_logger(__name__)


@dataclass
class _LazyState:
    """
    Per-relation memoized reads. Filled at most once each, under `lock`; failures are not
    cached and surface again on the next access.
    """

    lock: threading.RLock = field(default_factory=threading.RLock)
    variants: tuple[KeyVariant, ValueVariant] | None = None
    metadata: LayerMetadata | None = None
    schema: pa.Schema | None = None


@dataclass(frozen=True)
class LayerRelation:
    """
    A tile layer exposed as a column-pruned, filterable relation.

    Immutable: `with_filter` returns a new relation. Variants, layout metadata and schema are
    read lazily on first access and cached per instance.

    Filters the relation does not recognize (see `unhandled_filters`) are ignored, not
    rejected: they do not narrow the scan.
    """

    uri: str
    layer_id: LayerId
    filters: tuple[FilterPredicate, ...] = ()
    # Explicit collaborators; resolved from `uri` when omitted.
    attributes: AttributeStore | None = field(default=None, repr=False, compare=False)
    reader: LayerReader | None = field(default=None, repr=False, compare=False)
    _state: _LazyState = field(default_factory=_LazyState, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "filters", tuple(self.filters))

    def with_filter(self, predicate: FilterPredicate) -> "LayerRelation":
        """Convenience to create a new relation with the given filter added."""
        return replace(self, filters=(*self.filters, predicate))

    def _attribute_store(self) -> AttributeStore:
        return self.attributes if self.attributes is not None else attribute_store(self.uri)

    def _layer_reader(self) -> LayerReader:
        return self.reader if self.reader is not None else layer_reader(self.uri)

    def _variants(self) -> tuple[KeyVariant, ValueVariant]:
        st = self._state
        if st.variants is not None:
            return st.variants
        with st.lock:
            if st.variants is None:
                header = self._attribute_store().read_header(self.layer_id)
                st.variants = resolve_variants(header)
                logger.debug(
                    "layer_variants_resolved",
                    layer=str(self.layer_id),
                    key_variant=st.variants[0].value,
                    value_variant=st.variants[1].value,
                )
            return st.variants

    @property
    def key_variant(self) -> KeyVariant:
        return self._variants()[0]

    @property
    def value_variant(self) -> ValueVariant:
        return self._variants()[1]

    @property
    def tile_layer_metadata(self) -> LayerMetadata:
        st = self._state
        if st.metadata is not None:
            return st.metadata
        key_variant = self.key_variant
        with st.lock:
            if st.metadata is None:
                st.metadata = self._attribute_store().read_metadata(self.layer_id, key_variant)
            return st.metadata

    @property
    def schema(self) -> pa.Schema:
        st = self._state
        if st.schema is not None:
            return st.schema
        key_variant, value_variant = self._variants()
        with st.lock:
            if st.schema is None:
                context = self._attribute_store().read_metadata_json(self.layer_id)
                st.schema = build_schema(key_variant, value_variant, context=context)
            return st.schema

    @property
    def unhandled_filters(self) -> tuple[FilterPredicate, ...]:
        return tuple(f for f in self.filters if not is_supported(f))

    @property
    def size_in_bytes(self) -> int:
        # No size speculation from metadata; report the configured default.
        return default_size_in_bytes()

    def build_scan(self, required_columns: Sequence[str]) -> Iterator[Row]:
        """
        Lazy rows holding `required_columns`, in that order.

        Header, metadata and column errors raise here; storage errors raise while iterating.
        """
        columns = list(required_columns)
        logger.debug("reading_layer", layer=str(self.layer_id), uri=self.uri)
        logger.debug("required_columns", columns=columns)
        logger.debug("filters", filters=[_describe(f) for f in self.filters])

        key_variant, value_variant = self._variants()
        schema = self.schema
        metadata = self.tile_layer_metadata
        return build_scan(
            self._layer_reader(),
            layer_id=self.layer_id,
            key_variant=key_variant,
            value_variant=value_variant,
            metadata=metadata,
            schema=schema,
            filters=self.filters,
            required_columns=columns,
        )

    scan = build_scan

    def to_arrow(self, required_columns: Sequence[str] | None = None) -> pa.Table:
        columns = list(required_columns) if required_columns is not None else list(self.schema.names)
        return rows_to_arrow(self.schema, columns, self.build_scan(columns))


def _describe(predicate: FilterPredicate) -> dict[str, Any]:
    return {
        "column": predicate.column_name,
        "relation": predicate.relation_name,
        "geometry": predicate.geometry.wkt,
        "handled": is_supported(predicate),
    }
