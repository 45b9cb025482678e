from datetime import date

from psycopg.rows import dict_row

from openlabel.database.connection import get_connection
from openlabel.external.usage import BaseUsageStore, UsageCounter


class PostgresUsageRepository(BaseUsageStore):
    """Daily usage counters in the api_usage table.

    One row per category. The day rollover and the increment both happen in
    a single upsert so concurrent workers never lose a count. try_acquire
    puts the limit in the upsert's WHERE clause; an empty RETURNING means the
    limit was reached.
    """

    def current(self, category: str, today: date) -> UsageCounter:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT usage_date, call_count
                    FROM api_usage
                    WHERE category = %s
                    """,
                    (category,),
                )
                row = cur.fetchone()

        if row is None or row["usage_date"] != today:
            return UsageCounter(category=category, day=today, count=0)
        return UsageCounter(category=category, day=today, count=row["call_count"])

    def increment(self, category: str, today: date) -> UsageCounter:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    INSERT INTO api_usage (category, usage_date, call_count)
                    VALUES (%s, %s, 1)
                    ON CONFLICT (category) DO UPDATE
                    SET call_count = CASE
                            WHEN api_usage.usage_date = EXCLUDED.usage_date
                            THEN api_usage.call_count + 1
                            ELSE 1
                        END,
                        usage_date = EXCLUDED.usage_date
                    RETURNING usage_date, call_count
                    """,
                    (category, today),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError(f"Usage upsert for '{category}' returned no row")
        return UsageCounter(category=category, day=row["usage_date"], count=row["call_count"])

    def try_acquire(self, category: str, today: date, limit: int) -> UsageCounter | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    INSERT INTO api_usage (category, usage_date, call_count)
                    VALUES (%s, %s, 1)
                    ON CONFLICT (category) DO UPDATE
                    SET call_count = CASE
                            WHEN api_usage.usage_date = EXCLUDED.usage_date
                            THEN api_usage.call_count + 1
                            ELSE 1
                        END,
                        usage_date = EXCLUDED.usage_date
                    WHERE api_usage.usage_date <> EXCLUDED.usage_date
                       OR api_usage.call_count < %s
                    RETURNING usage_date, call_count
                    """,
                    (category, today, limit),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            return None
        return UsageCounter(category=category, day=row["usage_date"], count=row["call_count"])

    def release(self, category: str, day: date) -> None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE api_usage
                    SET call_count = call_count - 1
                    WHERE category = %s AND usage_date = %s AND call_count > 0
                    """,
                    (category, day),
                )
            conn.commit()
