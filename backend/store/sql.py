from __future__ import annotations

CREATE_ATTRIBUTES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS layer_attributes (
  layer_name TEXT,
  zoom INTEGER,
  attribute TEXT,
  value_json TEXT,
  PRIMARY KEY(layer_name, zoom, attribute)
);
"""

CREATE_TILES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS layer_tiles (
  layer_name TEXT,
  zoom INTEGER,
  key_col INTEGER,
  key_row INTEGER,
  key_instant BIGINT,
  cell_type TEXT,
  tile_cols INTEGER,
  tile_rows INTEGER,
  cells BLOB
);
"""

UPSERT_ATTRIBUTE_SQL = """
INSERT OR REPLACE INTO layer_attributes (layer_name, zoom, attribute, value_json)
VALUES (?, ?, ?, ?)
"""

SELECT_ATTRIBUTE_SQL = """
SELECT value_json
  FROM layer_attributes
 WHERE layer_name = ? AND zoom = ? AND attribute = ?
"""

SELECT_LAYER_IDS_SQL = """
SELECT layer_name, zoom
  FROM layer_attributes
 WHERE attribute = 'header'
 ORDER BY layer_name, zoom
"""

DELETE_TILES_SQL = "DELETE FROM layer_tiles WHERE layer_name = ? AND zoom = ?"

DELETE_ATTRIBUTES_SQL = "DELETE FROM layer_attributes WHERE layer_name = ? AND zoom = ?"

INSERT_TILE_SQL = """
INSERT INTO layer_tiles
  (layer_name, zoom, key_col, key_row, key_instant, cell_type, tile_cols, tile_rows, cells)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

# {instant_sql} is "key_instant IS NULL" for spatial layers, "key_instant IS NOT NULL" otherwise.
SELECT_TILES_SQL_TEMPLATE = """
SELECT key_col, key_row, key_instant, cell_type, tile_cols, tile_rows, cells
  FROM layer_tiles
 WHERE layer_name = ? AND zoom = ?
   AND key_col BETWEEN ? AND ?
   AND key_row BETWEEN ? AND ?
   AND {instant_sql}
 ORDER BY key_col, key_row, key_instant
"""

COUNT_CATALOG_TABLES_SQL = """
SELECT count(*)
  FROM information_schema.tables
 WHERE table_name IN ('layer_attributes', 'layer_tiles')
"""
