from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from openlabel.database.repositories.report_repository import PostgresReportRepository
from openlabel.reports.base import build_report
from openlabel.reports.exceptions import ReportNotFoundError, ReportValidationError

SAVED_AT = datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)


def _mock_connection(mock_get_conn: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Wire up a mock connection + cursor and return (mock_conn, mock_cursor)."""
    mock_cursor = MagicMock()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
    mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
    return mock_conn, mock_cursor


def _row(report_id: str, analysis: dict[str, Any]) -> dict[str, Any]:
    report = build_report(report_id, analysis, {"userId": "u-1"}, SAVED_AT)
    return {"id": report_id, "payload": report.to_dict()}


class TestSave:
    @patch("openlabel.database.repositories.report_repository.get_connection")
    def test_inserts_and_commits(
        self, mock_get_conn: MagicMock, sample_analysis: dict[str, Any]
    ) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        report = PostgresReportRepository().save(sample_analysis, {"userId": "u-1"})

        sql, params = mock_cursor.execute.call_args.args
        assert "INSERT INTO analysis_reports" in sql
        assert params[0] == report.id
        assert params[2] == "u-1"
        assert params[3].obj == report.to_dict()
        mock_conn.commit.assert_called_once()

    @patch("openlabel.database.repositories.report_repository.get_connection")
    def test_retries_with_new_id_on_collision(
        self, mock_get_conn: MagicMock, sample_analysis: dict[str, Any]
    ) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        rowcounts = iter([0, 1])
        type(mock_cursor).rowcount = property(lambda _self: next(rowcounts))

        report = PostgresReportRepository().save(sample_analysis, {})

        assert mock_cursor.execute.call_count == 2
        assert mock_cursor.execute.call_args.args[1][0] == report.id

    @patch("openlabel.database.repositories.report_repository.get_connection")
    def test_empty_analysis_never_touches_database(self, mock_get_conn: MagicMock) -> None:
        with pytest.raises(ReportValidationError):
            PostgresReportRepository().save({}, {})
        mock_get_conn.assert_not_called()


class TestList:
    @patch("openlabel.database.repositories.report_repository.get_connection")
    def test_skips_corrupt_payloads(
        self, mock_get_conn: MagicMock, sample_analysis: dict[str, Any]
    ) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [
            _row("report_2_bbbbbb", sample_analysis),
            {"id": "report_1_broken", "payload": {"id": "report_1_broken"}},
            {"id": "report_0_text", "payload": "not an object"},
        ]

        reports = PostgresReportRepository().list()

        assert [r.id for r in reports] == ["report_2_bbbbbb"]


class TestGet:
    @patch("openlabel.database.repositories.report_repository.get_connection")
    def test_returns_report(self, mock_get_conn: MagicMock, sample_analysis: dict[str, Any]) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _row("report_1_abcdef", sample_analysis)

        report = PostgresReportRepository().get("report_1_abcdef")

        assert report.id == "report_1_abcdef"
        assert report.analysis == sample_analysis
        assert report.saved_at == SAVED_AT

    @patch("openlabel.database.repositories.report_repository.get_connection")
    def test_raises_when_missing(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        with pytest.raises(ReportNotFoundError, match="Report report_9_zzz not found"):
            PostgresReportRepository().get("report_9_zzz")


class TestAttachDecision:
    @patch("openlabel.database.repositories.report_repository.get_connection")
    def test_locks_row_updates_payload_and_commits(
        self, mock_get_conn: MagicMock, sample_analysis: dict[str, Any]
    ) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _row("report_1_abcdef", sample_analysis)

        updated = PostgresReportRepository().attach_decision("report_1_abcdef", "bought", "ok")

        select_sql = mock_cursor.execute.call_args_list[0].args[0]
        update_sql, update_params = mock_cursor.execute.call_args_list[1].args
        assert "FOR UPDATE" in select_sql
        assert "UPDATE analysis_reports" in update_sql
        assert update_params[0].obj["purchaseDecision"]["decision"] == "bought"
        assert update_params[0].obj["analysis"] == sample_analysis
        assert updated.purchase_decision is not None
        assert updated.purchase_decision.recommendation == "avoid"
        mock_conn.commit.assert_called_once()

    @patch("openlabel.database.repositories.report_repository.get_connection")
    def test_missing_report_rolls_back(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        with pytest.raises(ReportNotFoundError):
            PostgresReportRepository().attach_decision("report_1_abcdef", "not_bought")

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()

    @patch("openlabel.database.repositories.report_repository.get_connection")
    def test_invalid_decision_never_touches_database(self, mock_get_conn: MagicMock) -> None:
        with pytest.raises(ReportValidationError):
            PostgresReportRepository().attach_decision("report_1_abcdef", "returned")
        mock_get_conn.assert_not_called()
