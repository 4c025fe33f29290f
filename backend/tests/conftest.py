import sys
import uuid
from pathlib import Path

import pytest


# Ensure `backend/` is on sys.path so tests can import local modules
# like `relation.*`, `store.*`, and `geo.*`.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

from layers.keys import SpaceTimeKey, SpatialKey  # noqa: E402
from layers.tile import Tile  # noqa: E402
from layers.types import (  # noqa: E402
    LayerHeader,
    LayerId,
    SpaceTimeLayerMetadata,
    SpatialLayerMetadata,
)
from store import close_duckdb_catalogs, drop_memory_catalog, memory_catalog  # noqa: E402


T0 = 1_500_000_000_000
T1 = 1_500_086_400_000


def metadata_doc(
    *,
    extent: tuple[float, float, float, float],
    layout_cols: int,
    layout_rows: int,
    tile_size: int = 4,
    bounds: dict | None = None,
    crs: str = "EPSG:3857",
) -> dict:
    xmin, ymin, xmax, ymax = extent
    ext = {"xmin": xmin, "ymin": ymin, "xmax": xmax, "ymax": ymax}
    doc = {
        "cellType": "float64",
        "layoutDefinition": {
            "extent": ext,
            "tileLayout": {
                "layoutCols": layout_cols,
                "layoutRows": layout_rows,
                "tileCols": tile_size,
                "tileRows": tile_size,
            },
        },
        "extent": ext,
        "crs": crs,
    }
    if bounds is not None:
        doc["bounds"] = bounds
    return doc


@pytest.fixture
def catalog_uri():
    name = f"test-{uuid.uuid4().hex}"
    yield f"memory://{name}"
    drop_memory_catalog(name)


@pytest.fixture
def l1_uri(catalog_uri):
    """
    Layer L1:0 over extent (0, 0, 2, 1) split into 2x1 tiles:
    key (0, 0) -> [0, 0, 1, 1], key (1, 0) -> [1, 0, 2, 1].
    """
    cat = memory_catalog(catalog_uri.removeprefix("memory://"))
    md = SpatialLayerMetadata.model_validate(
        metadata_doc(
            extent=(0.0, 0.0, 2.0, 1.0),
            layout_cols=2,
            layout_rows=1,
            bounds={"minKey": {"col": 0, "row": 0}, "maxKey": {"col": 1, "row": 0}},
        )
    )
    cat.write_layer(
        LayerId("L1", 0),
        LayerHeader(key_class_name="SpatialKey", value_class_name="Tile"),
        md,
        [
            (SpatialKey(0, 0), Tile.filled(1.0, cols=4, rows=4)),
            (SpatialKey(1, 0), Tile.filled(2.0, cols=4, rows=4)),
        ],
    )
    return catalog_uri


@pytest.fixture
def st_uri(catalog_uri):
    """
    Layer ST:3 over extent (0, 0, 2, 2) split into 2x2 tiles, two instants for (0, 0)
    and one for (1, 1).
    """
    cat = memory_catalog(catalog_uri.removeprefix("memory://"))
    md = SpaceTimeLayerMetadata.model_validate(
        metadata_doc(
            extent=(0.0, 0.0, 2.0, 2.0),
            layout_cols=2,
            layout_rows=2,
            bounds={
                "minKey": {"col": 0, "row": 0, "instant": T0},
                "maxKey": {"col": 1, "row": 1, "instant": T1},
            },
        )
    )
    cat.write_layer(
        LayerId("ST", 3),
        LayerHeader(
            key_class_name="geotrellis.spark.SpaceTimeKey",
            value_class_name="geotrellis.raster.Tile",
        ),
        md,
        [
            (SpaceTimeKey(0, 0, T0), Tile.filled(1.0, cols=4, rows=4)),
            (SpaceTimeKey(0, 0, T1), Tile.filled(2.0, cols=4, rows=4)),
            (SpaceTimeKey(1, 1, T1), Tile.filled(3.0, cols=4, rows=4)),
        ],
    )
    return catalog_uri


@pytest.fixture
def duckdb_path(tmp_path):
    yield tmp_path / "catalog.duckdb"
    close_duckdb_catalogs()
