from collections.abc import Mapping
from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from openlabel.database.connection import get_connection
from openlabel.logging.logger import Log
from openlabel.reports.base import (
    BaseReportStore,
    build_decision,
    build_report,
    newest_first,
    validate_decision,
)
from openlabel.reports.exceptions import CorruptReportError, ReportNotFoundError
from openlabel.reports.models import Report, new_report_id


class PostgresReportRepository(BaseReportStore):
    """Report storage in the analysis_reports table."""

    MAX_ID_ATTEMPTS = 5

    def save(self, analysis: Mapping[str, Any], metadata: Mapping[str, Any]) -> Report:
        for _ in range(self.MAX_ID_ATTEMPTS):
            report = build_report(new_report_id(), analysis, metadata)
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO analysis_reports (id, saved_at, user_id, payload)
                        VALUES (%s, %s, %s, %s)
                        ON CONFLICT (id) DO NOTHING
                        """,
                        (report.id, report.saved_at, report.user_id, Jsonb(report.to_dict())),
                    )
                    inserted = cur.rowcount == 1
                conn.commit()
            if inserted:
                Log.info(f"Report {report.id} saved")
                return report
        raise RuntimeError("Could not allocate an unused report id")

    def list(self) -> list[Report]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, payload
                    FROM analysis_reports
                    ORDER BY saved_at DESC, id DESC
                    """
                )
                rows = cur.fetchall()

        reports: list[Report] = []
        for row in rows:
            try:
                reports.append(self._decode(row["id"], row["payload"]))
            except CorruptReportError as exc:
                Log.warning(f"Skipping unreadable report {row['id']}: {exc}")
        return newest_first(reports)

    def get(self, report_id: str) -> Report:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT id, payload FROM analysis_reports WHERE id = %s",
                    (report_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise ReportNotFoundError(f"Report {report_id} not found")
        return self._decode(row["id"], row["payload"])

    def attach_decision(self, report_id: str, decision: str, notes: str = "") -> Report:
        """Update the decision inside one transaction holding the row lock."""
        validate_decision(decision)
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, payload
                    FROM analysis_reports
                    WHERE id = %s
                    FOR UPDATE
                    """,
                    (report_id,),
                )
                row = cur.fetchone()
                if row is None:
                    conn.rollback()
                    raise ReportNotFoundError(f"Report {report_id} not found")

                report = self._decode(row["id"], row["payload"])
                updated = report.with_decision(build_decision(report, decision, notes))
                cur.execute(
                    "UPDATE analysis_reports SET payload = %s WHERE id = %s",
                    (Jsonb(updated.to_dict()), report_id),
                )
            conn.commit()

        Log.info(f"Purchase decision '{decision}' saved for report {report_id}")
        return updated

    @staticmethod
    def _decode(report_id: str, payload: Any) -> Report:
        if not isinstance(payload, dict):
            raise CorruptReportError(f"Report {report_id} payload is not an object")
        try:
            return Report.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptReportError(f"Cannot read report {report_id}: {exc}") from exc
