from pathlib import Path

from openlabel.config.settings import Settings
from openlabel.database.repositories.report_repository import PostgresReportRepository
from openlabel.reports.base import BaseReportStore
from openlabel.reports.file_store import FileReportStore


class ReportStoreFactory:
    """Creates the configured report storage backend."""

    BACKENDS = ("file", "postgres")

    @classmethod
    def create(cls, settings: Settings) -> BaseReportStore:
        backend = settings.report_store_backend.lower()
        if backend == "file":
            return FileReportStore(Path(settings.reports_dir))
        if backend == "postgres":
            return PostgresReportRepository()
        raise ValueError(
            f"Unknown report store backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
