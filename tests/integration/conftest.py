import os
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from openlabel.config.settings import Settings
from openlabel.database.connection import close_pool, get_connection, init_pool
from openlabel.database.schema import apply_schema


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "openlabel_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            apply_schema(conn)
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run these tests")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def report_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    cleanup: list[str] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for report_id in cleanup:
                cur.execute("DELETE FROM analysis_reports WHERE id = %s", (report_id,))
        conn.commit()


@pytest.fixture
def usage_category(integration_pool: None) -> Generator[str, None, None]:
    category = f"test_{os.getpid()}"
    yield category
    with get_connection() as conn:
        conn.execute("DELETE FROM api_usage WHERE category = %s", (category,))
        conn.commit()
