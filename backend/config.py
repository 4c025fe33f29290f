from __future__ import annotations

import os
import sys


def default_size_in_bytes() -> int:
    """
    Size reported for a relation. Never computed from metadata; consumers treat it as
    "unknown / large" unless overridden.
    """
    raw = (os.getenv("TILEREL_DEFAULT_SIZE_BYTES") or "").strip()
    if raw:
        try:
            return max(0, int(raw))
        except ValueError:
            pass
    return sys.maxsize


def duckdb_threads() -> int:
    raw = (os.getenv("TILEREL_DUCKDB_THREADS") or "").strip()
    if raw:
        try:
            return max(1, int(raw))
        except ValueError:
            pass
    return max(1, int(os.cpu_count() or 1))


def log_level() -> str:
    raw = (os.getenv("TILEREL_LOG_LEVEL") or "INFO").strip().upper()
    return raw if raw in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO"


def log_format() -> str:
    v = (os.getenv("TILEREL_LOG_FORMAT") or "console").strip().lower()
    return "json" if v == "json" else "console"


def catalog_uri() -> str:
    """
    Catalog served by the HTTP API when a request names none.
    """
    return (os.getenv("TILEREL_CATALOG_URI") or "").strip() or "memory://default"


def cors_origins() -> list[str]:
    raw = os.getenv("TILEREL_CORS_ORIGINS") or "http://localhost:3000"
    return [o.strip() for o in raw.split(",") if o.strip()]
