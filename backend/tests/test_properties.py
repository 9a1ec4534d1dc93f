"""
Property-based tests with Hypothesis.

Row decoding, header resolution, pagination arithmetic and the tenant guard
hold for arbitrary inputs, not just the hand-picked cases.
"""

from datetime import date, time
from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from rest_api.routers._common import Pagination
from rest_api.services.ingestion.csv_parser import (
    FIELD_ALIASES,
    ColumnMap,
    ParsedRow,
    RowFailure,
    decode_row,
)
from shared.security.tenant_context import (
    clear_current_tenant,
    get_current_tenant,
    set_current_tenant,
    tenant_guarded,
)
from shared.utils.exceptions import ForbiddenError

from conftest import CSV_HEADER

COLUMNS = ColumnMap.from_header(CSV_HEADER.split(","))

cells = st.text(alphabet=st.characters(exclude_categories=("Cs",)), max_size=30)

member_codes = st.text(
    alphabet=st.characters(categories=("Lu", "Ll", "Nd"), include_characters="-_"),
    min_size=1,
    max_size=20,
)

amounts = st.decimals(
    min_value=Decimal("-99999"),
    max_value=Decimal("99999"),
    places=3,
    allow_nan=False,
    allow_infinity=False,
)


class TestDecodeRowProperties:
    """decode_row is total and faithful."""

    @given(row=st.lists(cells, max_size=12), row_number=st.integers(min_value=1, max_value=10_000))
    @settings(max_examples=200)
    def test_never_raises(self, row, row_number):
        """Property: any row of text decodes to a ParsedRow or a RowFailure."""
        result = decode_row(row_number, row, COLUMNS)
        assert isinstance(result, (ParsedRow, RowFailure))
        assert result.row_number == row_number

    @given(
        day=st.dates(min_value=date(1990, 1, 1), max_value=date(2099, 12, 31)),
        at=st.times().map(lambda t: time(t.hour, t.minute)),
        member_code=member_codes,
        nepali_month=st.integers(min_value=1, max_value=12),
        nepali_year=st.integers(min_value=2000, max_value=2200),
        volume=amounts,
        fat=amounts,
        us_format=st.booleans(),
    )
    @settings(max_examples=100)
    def test_well_formed_rows_decode_to_their_values(
        self, day, at, member_code, nepali_month, nepali_year, volume, fat, us_format
    ):
        """Property: every field of a well-formed row survives decoding."""
        coll_date = day.strftime("%m/%d/%Y") if us_format else day.isoformat()
        ne_date = f"15/{nepali_month:02d}/{nepali_year}"
        row = [
            coll_date,
            ne_date,
            at.strftime("%H:%M"),
            member_code,
            str(volume),
            str(fat),
            "8.5",
            "55",
            "100",
            "",
        ]

        result = decode_row(1, row, COLUMNS)

        assert isinstance(result, ParsedRow)
        assert result.collection_date == day
        assert result.collection_time == at
        assert result.member_code == member_code
        assert result.aux_month == f"{nepali_month:02d}"
        assert result.aux_year == str(nepali_year)
        assert result.volume_liters == volume
        assert result.fat_percentage == fat
        assert result.remarks is None

    @given(extra=st.lists(cells, min_size=1, max_size=3))
    def test_rows_wider_than_header_fail(self, extra):
        row = ["2025-01-15", "02/10/2081", "06:30", "M-1", "1", "1", "1", "1", "1", ""] + extra
        assert isinstance(decode_row(1, row, COLUMNS), RowFailure)


class TestHeaderProperties:
    """Header names resolve regardless of case and order."""

    @given(data=st.data())
    def test_any_casing_and_order_resolves(self, data):
        names = [aliases[0] for aliases in FIELD_ALIASES.values()]
        shuffled = data.draw(st.permutations(names))
        cased = [
            "".join(c.upper() if data.draw(st.booleans()) else c.lower() for c in name)
            for name in shuffled
        ]

        columns = ColumnMap.from_header(cased)

        assert columns.missing_required == []
        for field_name, aliases in FIELD_ALIASES.items():
            assert shuffled[columns.positions[field_name]] == aliases[0]


class TestPaginationProperties:
    """Page arithmetic."""

    @given(
        total=st.integers(min_value=0, max_value=10_000),
        size=st.integers(min_value=1, max_value=200),
        page=st.integers(min_value=0, max_value=100),
    )
    def test_page_metadata_is_consistent(self, total, size, page):
        pagination = Pagination(page=page, size=size)
        on_page = max(0, min(size, total - pagination.offset))

        result = pagination.build(list(range(on_page)), total)

        assert result.total_pages * size >= total
        assert (result.total_pages - 1) * size < total or total == 0
        assert result.first == (page == 0)
        assert result.empty == (on_page == 0)
        if on_page:
            assert result.last == (pagination.offset + on_page >= total)


class _GuardedReader:
    @tenant_guarded
    def read(self, tenant_id: int) -> int:
        return tenant_id


class TestTenantGuardProperties:
    """The guard admits exactly the context tenant."""

    @given(
        context_tenant=st.integers(min_value=1, max_value=1_000),
        requested=st.integers(min_value=1, max_value=1_000),
    )
    def test_runs_only_for_context_tenant(self, context_tenant, requested):
        set_current_tenant(context_tenant)
        try:
            if context_tenant == requested:
                assert _GuardedReader().read(requested) == requested
                assert get_current_tenant() is None
            else:
                with pytest.raises(ForbiddenError):
                    _GuardedReader().read(requested)
        finally:
            clear_current_tenant()

    @given(tenant_id=st.integers(min_value=1, max_value=1_000))
    def test_context_never_outlives_the_call(self, tenant_id):
        set_current_tenant(tenant_id)
        _GuardedReader().read(tenant_id)
        assert get_current_tenant() is None
