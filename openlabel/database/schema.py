from typing import Any

import psycopg

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS analysis_reports (
    id TEXT PRIMARY KEY,
    saved_at TIMESTAMPTZ NOT NULL,
    user_id TEXT,
    payload JSONB NOT NULL
);

CREATE INDEX IF NOT EXISTS analysis_reports_saved_at_idx
    ON analysis_reports (saved_at DESC);

CREATE TABLE IF NOT EXISTS api_usage (
    category TEXT PRIMARY KEY,
    usage_date DATE NOT NULL,
    call_count INTEGER NOT NULL DEFAULT 0
);
"""


def apply_schema(conn: psycopg.Connection[Any]) -> None:
    """Create the report and usage tables if they do not exist yet."""
    conn.execute(SCHEMA_SQL)
    conn.commit()
