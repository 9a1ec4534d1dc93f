"""
Tests for the CSV ingestion pipeline: batching, summaries and rollback.
"""

from datetime import date, time

import pytest
from sqlalchemy import func, select

from rest_api.models import CollectionRecord
from rest_api.repositories import CollectionRepository
from rest_api.services.ingestion import CsvIngestionPipeline
from shared.security.tenant_context import get_current_tenant, tenant_scope
from shared.utils.exceptions import (
    CsvStructuralError,
    ForbiddenError,
    TenantContextMissingError,
    TenantNotFoundError,
)

from conftest import CSV_HEADER, csv_bytes, csv_row, upload_stream


def _count(db_session) -> int:
    return db_session.scalar(select(func.count()).select_from(CollectionRecord))


def _ingest(db_session, tenant_id, data, batch_size=None):
    pipeline = CsvIngestionPipeline(db_session, batch_size=batch_size)
    with tenant_scope(tenant_id):
        return pipeline.ingest(tenant_id, upload_stream(data), filename="analyzer.csv")


class TestIngestionSummary:
    """Totals and per-row failures."""

    def test_all_rows_persisted(self, db_session, seed_tenant):
        data = csv_bytes(csv_row(), csv_row(coll_time="18:00"), csv_row(member_code="M-2"))
        summary = _ingest(db_session, seed_tenant.id, data)

        assert summary.total_records == 3
        assert summary.successful_records == 3
        assert summary.failed_records == 0
        assert summary.errors == []
        assert _count(db_session) == 3

    def test_bad_rows_are_reported_in_order(self, db_session, seed_tenant):
        """One bad row never affects the others."""
        data = csv_bytes(
            csv_row(),
            csv_row(coll_date="2025-13-01"),
            csv_row(),
            csv_row(ne_date="2081-10-02"),
        )
        summary = _ingest(db_session, seed_tenant.id, data)

        assert summary.total_records == 4
        assert summary.successful_records == 2
        assert summary.failed_records == 2
        assert [e.row_number for e in summary.errors] == [2, 4]
        assert summary.errors[1].message == "Invalid Nepali date format: 2081-10-02"
        assert _count(db_session) == 2

    def test_every_row_failing_is_not_an_error(self, db_session, seed_tenant):
        """A fully failed file still returns a summary."""
        data = csv_bytes(csv_row(volume="lots"), csv_row(volume="more"))
        summary = _ingest(db_session, seed_tenant.id, data)

        assert summary.total_records == 2
        assert summary.successful_records == 0
        assert summary.failed_records == 2
        assert _count(db_session) == 0

    def test_row_of_blank_cells_is_a_failed_row(self, db_session, seed_tenant):
        data = csv_bytes(csv_row(), ",,,,,,,,,", csv_row())
        summary = _ingest(db_session, seed_tenant.id, data)

        assert summary.total_records == 3
        assert summary.successful_records == 2
        assert [e.row_number for e in summary.errors] == [2]
        assert summary.errors[0].message.startswith("Required field not found")

    def test_only_blank_cell_rows_still_summarized(self, db_session, seed_tenant):
        summary = _ingest(db_session, seed_tenant.id, csv_bytes(",,,,,,,,,", " , ,"))

        assert summary.total_records == 2
        assert summary.failed_records == 2
        assert _count(db_session) == 0

    def test_huge_remark_fails_only_its_row(self, db_session, seed_tenant):
        data = csv_bytes(csv_row(), csv_row(remark="x" * 200_000), csv_row())
        summary = _ingest(db_session, seed_tenant.id, data, batch_size=1)

        assert summary.total_records == 3
        assert summary.successful_records == 2
        assert [e.row_number for e in summary.errors] == [2]
        assert summary.errors[0].message.startswith("Remark exceeds 500 characters")
        assert _count(db_session) == 2

    def test_missing_header_column_fails_every_row(self, db_session, seed_tenant):
        header = CSV_HEADER.replace("Amount", "Total")
        summary = _ingest(db_session, seed_tenant.id, csv_bytes(csv_row(), header=header))

        assert summary.failed_records == 1
        assert summary.errors[0].message == "Required field not found. Tried: Amount, amount"

    def test_response_shape(self, db_session, seed_tenant):
        summary = _ingest(db_session, seed_tenant.id, csv_bytes(csv_row(), csv_row(coll_time="25:00")))
        body = summary.to_response().model_dump()

        assert body["total_records"] == 2
        assert body["errors"] == [
            {"row_number": 2, "error": "Invalid time format: 25:00 (expected HH:mm)"}
        ]

    def test_records_carry_tenant_and_aux_segments(self, db_session, seed_tenant):
        _ingest(db_session, seed_tenant.id, csv_bytes(csv_row(remark="late")))
        record = db_session.scalars(select(CollectionRecord)).one()

        assert record.tenant_id == seed_tenant.id
        assert record.aux_date == "02/10/2081"
        assert record.aux_month == "10"
        assert record.aux_year == "2081"
        assert record.remarks == "late"


class TestBatching:
    """Rows are flushed in fixed-size batches."""

    @pytest.mark.parametrize("rows,batch_size", [(7, 3), (6, 3), (2, 50), (1, 1)])
    def test_all_successes_persisted_regardless_of_batch_size(
        self, db_session, seed_tenant, rows, batch_size
    ):
        data = csv_bytes(*[csv_row(member_code=f"M-{i}") for i in range(rows)])
        summary = _ingest(db_session, seed_tenant.id, data, batch_size=batch_size)

        assert summary.successful_records == rows
        assert _count(db_session) == rows

    def test_batches_are_flushed_as_they_fill(self, db_session, seed_tenant, monkeypatch):
        from rest_api.repositories import CollectionRepository

        flushed = []
        original = CollectionRepository.insert_batch

        def spy(self, rows):
            flushed.append(len(rows))
            return original(self, rows)

        monkeypatch.setattr(CollectionRepository, "insert_batch", spy)
        data = csv_bytes(*[csv_row() for _ in range(7)], csv_row(snf="x"))
        _ingest(db_session, seed_tenant.id, data, batch_size=3)

        assert flushed == [3, 3, 1]

    def test_batch_size_must_be_positive(self, db_session):
        with pytest.raises(ValueError):
            CsvIngestionPipeline(db_session, batch_size=-1)


class TestNoDuplicateSuppression:
    """Uploading the same file twice stores every row twice."""

    def test_rerun_doubles_records(self, db_session, seed_tenant):
        data = csv_bytes(csv_row(), csv_row(coll_time="18:00"), csv_row(member_code="M-9"))
        _ingest(db_session, seed_tenant.id, data)
        _ingest(db_session, seed_tenant.id, data)

        assert _count(db_session) == 6

    def test_unregistered_member_codes_are_stored(self, db_session, seed_tenant):
        """No farmer-existence check is made."""
        summary = _ingest(db_session, seed_tenant.id, csv_bytes(csv_row(member_code="NOBODY")))
        assert summary.successful_records == 1

    def test_same_shift_primitive_sees_stored_rows(self, db_session, seed_tenant, other_tenant):
        """The same-shift check exists for callers; ingestion never consults it."""
        _ingest(db_session, seed_tenant.id, csv_bytes(csv_row()))
        repo = CollectionRepository(db_session)

        assert repo.exists_same_shift(seed_tenant.id, "M-17", date(2025, 1, 15), time(6, 30))
        assert not repo.exists_same_shift(seed_tenant.id, "M-17", date(2025, 1, 15), time(17, 30))
        assert not repo.exists_same_shift(other_tenant.id, "M-17", date(2025, 1, 15), time(6, 30))


class TestStructuralErrors:
    """Whole-file failures roll back and persist nothing."""

    def test_empty_file(self, db_session, seed_tenant):
        with pytest.raises(CsvStructuralError) as exc_info:
            _ingest(db_session, seed_tenant.id, b"")
        assert exc_info.value.detail == "CSV file is empty"

    def test_header_only(self, db_session, seed_tenant):
        with pytest.raises(CsvStructuralError) as exc_info:
            _ingest(db_session, seed_tenant.id, csv_bytes())
        assert exc_info.value.detail == "CSV file contains no valid records"

    def test_invalid_utf8(self, db_session, seed_tenant):
        data = csv_bytes(csv_row()) + b"\n2025-01-15,\xff\xfe,06:30"
        with pytest.raises(CsvStructuralError) as exc_info:
            _ingest(db_session, seed_tenant.id, data, batch_size=1)
        assert exc_info.value.detail == "CSV file is not valid UTF-8 text"
        assert _count(db_session) == 0

    def test_unterminated_quote(self, db_session, seed_tenant):
        """The open quote would otherwise swallow every following line."""
        data = csv_bytes(csv_row(), csv_row(remark='"oops'), csv_row(member_code="M-3"))
        with pytest.raises(CsvStructuralError) as exc_info:
            _ingest(db_session, seed_tenant.id, data, batch_size=1)
        assert exc_info.value.detail == "Failed to parse CSV file"
        assert _count(db_session) == 0

    def test_unknown_tenant(self, db_session):
        with pytest.raises(TenantNotFoundError):
            _ingest(db_session, 999, csv_bytes(csv_row()))


class TestTenantGuard:
    """Ingestion only runs inside the matching tenant context."""

    def test_without_context_is_forbidden(self, db_session, seed_tenant):
        pipeline = CsvIngestionPipeline(db_session)
        with pytest.raises(TenantContextMissingError):
            pipeline.ingest(seed_tenant.id, upload_stream(csv_bytes(csv_row())))
        assert _count(db_session) == 0

    def test_other_tenant_is_forbidden(self, db_session, seed_tenant, other_tenant):
        pipeline = CsvIngestionPipeline(db_session)
        with tenant_scope(other_tenant.id):
            with pytest.raises(ForbiddenError):
                pipeline.ingest(seed_tenant.id, upload_stream(csv_bytes(csv_row())))
        assert _count(db_session) == 0

    def test_context_cleared_after_ingest(self, db_session, seed_tenant):
        pipeline = CsvIngestionPipeline(db_session)
        with tenant_scope(seed_tenant.id):
            pipeline.ingest(seed_tenant.id, upload_stream(csv_bytes(csv_row())))
            assert get_current_tenant() is None
