"""
CSV ingestion pipeline: uploaded analyzer export -> collection records.

Stages:
    1. Structural parse (header + row stream), see csv_parser.
    2. Per-row decode into ParsedRow / RowFailure.
    3. Persist decoded rows in fixed-size batches as they fill, plus a final
       partial batch; commit once at the end.
    4. Summarize totals and the ordered list of row failures.

A row failure is recorded and skipped. A structural failure (empty or
unreadable file, no data rows) rolls back and raises CsvStructuralError, so
nothing from that upload is persisted.

No farmer-existence check is made: collection history may arrive before the
farmer registers. No duplicate suppression is applied either: a member may
deliver several times a day.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from typing import Any, BinaryIO

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rest_api.repositories import CollectionRepository, DairyCenterRepository
from rest_api.services.ingestion.csv_parser import (
    CollectionCsvReader,
    RowFailure,
    decode_row,
    open_csv_text,
)
from shared.config.logging import ingestion_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import safe_commit
from shared.security.tenant_context import tenant_guarded
from shared.utils.exceptions import (
    CsvStructuralError,
    DatabaseError,
    TenantNotFoundError,
)
from shared.utils.schemas import CsvRowError, CsvUploadResponse


@dataclass(slots=True)
class IngestionSummary:
    """Outcome of one upload."""

    total_records: int = 0
    successful_records: int = 0
    failed_records: int = 0
    errors: list[RowFailure] = field(default_factory=list)

    def record_failure(self, failure: RowFailure) -> None:
        self.failed_records += 1
        self.errors.append(failure)

    def to_response(self) -> CsvUploadResponse:
        return CsvUploadResponse(
            total_records=self.total_records,
            successful_records=self.successful_records,
            failed_records=self.failed_records,
            errors=[CsvRowError(row_number=e.row_number, error=e.message) for e in self.errors],
        )


class CsvIngestionPipeline:
    """
    Ingests one collection CSV for one dairy center.

    Usage:
        pipeline = CsvIngestionPipeline(db)
        summary = pipeline.ingest(tenant_id, upload.file, filename=upload.filename)
    """

    def __init__(self, db: Session, batch_size: int | None = None):
        self._db = db
        self._records = CollectionRepository(db)
        self._centers = DairyCenterRepository(db)
        self._batch_size = batch_size or settings.csv_batch_size
        if self._batch_size < 1:
            raise ValueError("batch_size must be positive")

    @tenant_guarded
    def ingest(
        self,
        tenant_id: int,
        upload: BinaryIO,
        *,
        filename: str | None = None,
    ) -> IngestionSummary:
        """
        Parse, decode and persist an uploaded CSV.

        Raises:
            TenantNotFoundError: The dairy center does not exist.
            CsvStructuralError: Empty/unreadable file or no data rows.
            DatabaseError: Storage failed; nothing was committed.
        """
        if self._centers.find_by_id(tenant_id) is None:
            raise TenantNotFoundError(tenant_id)

        logger.info("CSV ingestion started", tenant_id=tenant_id, filename=filename)
        text = open_csv_text(upload)
        try:
            summary = self._run(tenant_id, text)
            safe_commit(self._db)
        except UnicodeDecodeError as e:
            self._db.rollback()
            raise CsvStructuralError(
                "CSV file is not valid UTF-8 text",
                tenant_id=tenant_id,
                filename=filename,
                error=str(e),
            )
        except csv.Error as e:
            self._db.rollback()
            raise CsvStructuralError(
                "Failed to parse CSV file",
                tenant_id=tenant_id,
                filename=filename,
                error=str(e),
            )
        except CsvStructuralError:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error("CSV ingestion storage failure", tenant_id=tenant_id, exc_info=True)
            raise DatabaseError("saving collection records", tenant_id=tenant_id, error=str(e))
        finally:
            # Leave the caller's stream open
            text.detach()

        logger.info(
            "CSV ingestion finished",
            tenant_id=tenant_id,
            filename=filename,
            total=summary.total_records,
            successful=summary.successful_records,
            failed=summary.failed_records,
        )
        return summary

    def _run(self, tenant_id: int, text) -> IngestionSummary:
        reader = CollectionCsvReader(text)
        missing = reader.columns.missing_required
        if missing:
            # Each row will fail on its first missing field
            logger.warning("CSV header is missing required columns", tenant_id=tenant_id, missing=missing)

        summary = IngestionSummary()
        batch: list[dict[str, Any]] = []

        for row_number, cells in reader.rows():
            summary.total_records += 1
            result = decode_row(row_number, cells, reader.columns)
            if isinstance(result, RowFailure):
                summary.record_failure(result)
                continue
            batch.append(result.to_values(tenant_id))
            if len(batch) >= self._batch_size:
                summary.successful_records += self._flush(batch, tenant_id)
                batch = []

        summary.successful_records += self._flush(batch, tenant_id)

        if summary.total_records == 0:
            raise CsvStructuralError("CSV file contains no valid records", tenant_id=tenant_id)

        return summary

    def _flush(self, batch: list[dict[str, Any]], tenant_id: int) -> int:
        if not batch:
            return 0
        inserted = self._records.insert_batch(batch)
        logger.debug("CSV batch flushed", tenant_id=tenant_id, rows=inserted)
        return inserted
