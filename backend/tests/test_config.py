from __future__ import annotations

import sys

from config import catalog_uri, default_size_in_bytes, duckdb_threads, log_format, log_level


def test_size_default_and_override(monkeypatch):
    monkeypatch.delenv("TILEREL_DEFAULT_SIZE_BYTES", raising=False)
    assert default_size_in_bytes() == sys.maxsize
    monkeypatch.setenv("TILEREL_DEFAULT_SIZE_BYTES", "not-a-number")
    assert default_size_in_bytes() == sys.maxsize
    monkeypatch.setenv("TILEREL_DEFAULT_SIZE_BYTES", "-5")
    assert default_size_in_bytes() == 0


def test_duckdb_threads(monkeypatch):
    monkeypatch.setenv("TILEREL_DUCKDB_THREADS", "3")
    assert duckdb_threads() == 3
    monkeypatch.setenv("TILEREL_DUCKDB_THREADS", "0")
    assert duckdb_threads() == 1


def test_logging_settings(monkeypatch):
    monkeypatch.setenv("TILEREL_LOG_LEVEL", "debug")
    monkeypatch.setenv("TILEREL_LOG_FORMAT", "JSON")
    assert log_level() == "DEBUG"
    assert log_format() == "json"
    monkeypatch.setenv("TILEREL_LOG_LEVEL", "chatty")
    monkeypatch.setenv("TILEREL_LOG_FORMAT", "xml")
    assert log_level() == "INFO"
    assert log_format() == "console"


def test_catalog_uri(monkeypatch):
    monkeypatch.delenv("TILEREL_CATALOG_URI", raising=False)
    assert catalog_uri() == "memory://default"
    monkeypatch.setenv("TILEREL_CATALOG_URI", "duckdb:///tmp/tiles.duckdb")
    assert catalog_uri() == "duckdb:///tmp/tiles.duckdb"
