import os

import duckdb

from registry_api.settings import S


def duckdb_connect() -> duckdb.DuckDBPyConnection:
    """Open the local DuckDB file that backs the materialized response cache."""
    parent = os.path.dirname(S.duckdb_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    con = duckdb.connect(S.duckdb_path)
    con.execute(f"PRAGMA threads={int(S.duckdb_threads)}")
    return con
