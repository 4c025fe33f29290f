from __future__ import annotations

import duckdb
import numpy as np
import pytest
from shapely.geometry import Point, box

from layers.keys import SpaceTimeKey, SpatialKey, TemporalKey
from layers.tile import Tile
from layers.types import LayerHeader, LayerId, SpaceTimeLayerMetadata, SpatialLayerMetadata
from layers.variants import KeyVariant, ValueVariant
from relation import LayerRelation, extent_intersects, list_layers, relation_from_uri
from store import (
    CatalogNotFoundError,
    Intersects,
    LayerNotFoundError,
    close_duckdb_catalogs,
    duckdb_catalog,
    open_catalog,
)
from geo.extent import Extent

from conftest import T0, T1, metadata_doc


def _write_grid_layer(path) -> LayerId:
    """4x4 grid of 1x1 tiles over (0, 0, 4, 4); tile value = col * 10 + row."""
    cat = duckdb_catalog(path)
    lid = LayerId("grid", 2)
    md = SpatialLayerMetadata.model_validate(
        metadata_doc(extent=(0.0, 0.0, 4.0, 4.0), layout_cols=4, layout_rows=4, tile_size=2)
    )
    records = [
        (SpatialKey(c, r), Tile.filled(float(c * 10 + r), cols=2, rows=2, cell_type="int16"))
        for c in range(4)
        for r in range(4)
    ]
    cat.write_layer(
        lid, LayerHeader(key_class_name="geotrellis.spark.SpatialKey", value_class_name="Tile"), md, records
    )
    return lid


def test_round_trips_header_metadata_and_tiles(duckdb_path):
    lid = _write_grid_layer(duckdb_path)
    cat = duckdb_catalog(duckdb_path)

    assert cat.layer_exists(lid)
    assert not cat.layer_exists(LayerId("grid", 3))
    assert cat.read_header(lid).key_class_name == "geotrellis.spark.SpatialKey"
    md = cat.read_metadata(lid, KeyVariant.SPATIAL)
    assert md.crs == "EPSG:3857"
    assert md.layout.tile_layout.layout_cols == 4

    records = list(cat.query(lid, KeyVariant.SPATIAL, ValueVariant.TILE).result())
    assert len(records) == 16
    key, tile = records[0]
    assert key == SpatialKey(0, 0)
    assert tile.cell_type == "int16"
    assert np.array_equal(tile.cells, np.zeros((2, 2), dtype=np.int16))


def test_key_bounds_are_pushed_down(duckdb_path):
    lid = _write_grid_layer(duckdb_path)
    cat = duckdb_catalog(duckdb_path)
    q = cat.query(lid, KeyVariant.SPATIAL, ValueVariant.TILE).where(
        Intersects(Extent(0.5, 2.5, 1.5, 3.5))
    )
    keys = sorted(k for k, _ in q.result())
    assert keys == [SpatialKey(0, 0), SpatialKey(0, 1), SpatialKey(1, 0), SpatialKey(1, 1)]


def test_relation_over_duckdb_file(duckdb_path):
    _write_grid_layer(duckdb_path)
    rel = relation_from_uri(f"duckdb://{duckdb_path}?layer=grid&zoom=2")
    assert rel.layer_id == LayerId("grid", 2)
    assert rel.schema.names == ["spatial_key", "extent", "tile"]

    rows = list(rel.with_filter(extent_intersects(Point(3.5, 0.5))).build_scan(["spatial_key", "tile"]))
    assert len(rows) == 1
    sk, tile = rows[0]
    assert sk == SpatialKey(3, 3)
    assert int(tile.cells[0, 0]) == 33

    everything = rel.with_filter(extent_intersects(box(-1, -1, 10, 10)))
    assert len(list(everything.build_scan(["extent"]))) == 16


def test_space_time_layer_in_duckdb(duckdb_path):
    cat = duckdb_catalog(duckdb_path)
    lid = LayerId("st", 0)
    md = SpaceTimeLayerMetadata.model_validate(
        metadata_doc(extent=(0.0, 0.0, 1.0, 1.0), layout_cols=1, layout_rows=1)
    )
    cat.write_layer(
        lid,
        LayerHeader(key_class_name="SpaceTimeKey", value_class_name="Tile"),
        md,
        [
            (SpaceTimeKey(0, 0, T0), Tile.filled(1.0, cols=2, rows=2)),
            (SpaceTimeKey(0, 0, T1), Tile.filled(2.0, cols=2, rows=2)),
        ],
    )
    rel = LayerRelation(uri=str(duckdb_path), layer_id=lid)
    assert sorted(rel.build_scan(["temporal_key"])) == [(TemporalKey(T0),), (TemporalKey(T1),)]


def test_rewriting_a_layer_replaces_its_tiles(duckdb_path):
    lid = _write_grid_layer(duckdb_path)
    cat = duckdb_catalog(duckdb_path)
    md = cat.read_metadata(lid, KeyVariant.SPATIAL)
    header = cat.read_header(lid)
    cat.write_layer(lid, header, md, [(SpatialKey(2, 2), Tile.filled(7.0, cols=2, rows=2))])
    keys = [k for k, _ in cat.query(lid, KeyVariant.SPATIAL, ValueVariant.TILE).result()]
    assert keys == [SpatialKey(2, 2)]


def test_missing_layer_raises_not_found(duckdb_path):
    cat = duckdb_catalog(duckdb_path)
    with pytest.raises(LayerNotFoundError):
        cat.read_header(LayerId("nope", 0))


def test_list_layers_and_uri_schemes(duckdb_path):
    _write_grid_layer(duckdb_path)
    assert list_layers(f"file://{duckdb_path}") == [LayerId("grid", 2)]
    assert open_catalog(duckdb_path) is open_catalog(f"duckdb://{duckdb_path}")
    with pytest.raises(ValueError):
        open_catalog("s3://bucket/catalog")


def test_reads_never_create_the_database_file(duckdb_path):
    cat = duckdb_catalog(duckdb_path)
    with pytest.raises(LayerNotFoundError):
        cat.read_header(LayerId("grid", 2))
    assert not cat.layer_exists(LayerId("grid", 2))
    with pytest.raises(CatalogNotFoundError):
        cat.layer_ids()
    with pytest.raises(CatalogNotFoundError):
        list_layers(str(duckdb_path.parent / "nested" / "typo.duckdb"))
    assert not duckdb_path.exists()
    assert not (duckdb_path.parent / "nested").exists()


def test_file_without_catalog_tables_is_rejected(duckdb_path):
    conn = duckdb.connect(str(duckdb_path))
    conn.execute("CREATE TABLE unrelated (x INTEGER)")
    conn.close()
    with pytest.raises(CatalogNotFoundError):
        duckdb_catalog(duckdb_path).layer_ids()


def test_read_then_write_reopens_for_writing(duckdb_path):
    _write_grid_layer(duckdb_path)
    close_duckdb_catalogs()

    cat = duckdb_catalog(duckdb_path)
    lid = LayerId("grid", 2)
    header = cat.read_header(lid)
    md = cat.read_metadata(lid, KeyVariant.SPATIAL)
    cat.write_layer(LayerId("copy", 0), header, md, [(SpatialKey(1, 1), Tile.filled(5.0, cols=2, rows=2))])
    assert cat.layer_ids() == [LayerId("copy", 0), LayerId("grid", 2)]
