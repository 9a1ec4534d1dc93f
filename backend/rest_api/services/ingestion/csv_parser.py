"""
Milk-analyzer CSV parsing.

The analyzer export is produced outside our control: column names vary in
case, the collection date comes in two encodings, and a Nepali calendar date
rides alongside. This module turns the file into a header column map plus a
stream of numbered rows, and decodes each row independently into either a
ParsedRow or a RowFailure. Decoding never raises; one bad row never affects
another.

Usage:
    reader = CollectionCsvReader(open_csv_text(upload))
    for row_number, cells in reader.rows():
        result = decode_row(row_number, cells, reader.columns)
"""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal, InvalidOperation
from typing import Any, BinaryIO, Final, Sequence, TextIO, Union

from shared.config.constants import Limits
from shared.config.settings import settings
from shared.utils.exceptions import CsvStructuralError, RowDecodeError

# Logical field -> accepted header names, in the order they are tried.
# Matching is case-insensitive; the listed spellings are what analyzers emit.
FIELD_ALIASES: Final[dict[str, tuple[str, ...]]] = {
    "collection_date": ("Coll_date", "Coll_Date"),
    "aux_date": ("Ne_date", "ne_date"),
    "collection_time": ("Coll_time", "coll_time"),
    "member_code": ("Mem_code", "mem_code"),
    "volume_liters": ("Volume_lt", "volume_lt"),
    "fat_percentage": ("Fat_per", "fat_per"),
    "snf": ("Snf", "snf", "SNF"),
    "rate": ("Rate", "rate"),
    "amount": ("Amount", "amount"),
    "remarks": ("Remark", "remark", "Remarks"),
}

OPTIONAL_FIELDS: Final[frozenset[str]] = frozenset({"remarks"})

NUMERIC_FIELDS: Final[tuple[str, ...]] = (
    "volume_liters",
    "fat_percentage",
    "snf",
    "rate",
    "amount",
)

# Numeric columns are NUMERIC(14, 3)
_MAX_ABS_NUMERIC: Final[Decimal] = Decimal("1e11")

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_US_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_HH_MM = re.compile(r"^(\d{2}):(\d{2})$")

_MAX_MEMBER_CODE = Limits.MAX_MEMBER_CODE_LENGTH
_MAX_AUX_DATE = 20
_MAX_AUX_PART = 10


# =============================================================================
# Row results
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParsedRow:
    """A fully decoded data row."""

    row_number: int
    member_code: str
    collection_date: date
    collection_time: time
    aux_date: str
    aux_month: str
    aux_year: str
    volume_liters: Decimal
    fat_percentage: Decimal
    snf: Decimal
    rate: Decimal
    amount: Decimal
    remarks: str | None = None

    def to_values(self, tenant_id: int) -> dict[str, Any]:
        """Column values for inserting this row as a collection record."""
        return {
            "tenant_id": tenant_id,
            "member_code": self.member_code,
            "collection_date": self.collection_date,
            "collection_time": self.collection_time,
            "aux_date": self.aux_date,
            "aux_month": self.aux_month,
            "aux_year": self.aux_year,
            "volume_liters": self.volume_liters,
            "fat_percentage": self.fat_percentage,
            "snf": self.snf,
            "rate": self.rate,
            "amount": self.amount,
            "remarks": self.remarks,
        }


@dataclass(frozen=True, slots=True)
class RowFailure:
    """A data row that could not be decoded, with the first reason found."""

    row_number: int
    message: str


RowResult = Union[ParsedRow, RowFailure]


# =============================================================================
# Header mapping
# =============================================================================


@dataclass(frozen=True, slots=True)
class ColumnMap:
    """Resolved position of each logical field in the header (None if absent)."""

    positions: dict[str, int | None]
    width: int

    @classmethod
    def from_header(cls, header: Sequence[str]) -> "ColumnMap":
        normalized = [name.strip().lower() for name in header]
        positions: dict[str, int | None] = {}
        for field_name, aliases in FIELD_ALIASES.items():
            positions[field_name] = None
            for alias in aliases:
                key = alias.lower()
                if key in normalized:
                    positions[field_name] = normalized.index(key)
                    break
        return cls(positions=positions, width=len(header))

    @property
    def missing_required(self) -> list[str]:
        return [
            name
            for name, position in self.positions.items()
            if position is None and name not in OPTIONAL_FIELDS
        ]

    def value(self, cells: Sequence[str], field_name: str) -> str | None:
        """Trimmed cell value for a field; absent and blank both give None."""
        position = self.positions[field_name]
        if position is None or position >= len(cells):
            return None
        value = cells[position].strip()
        return value or None


# =============================================================================
# Field decoders (raise RowDecodeError)
# =============================================================================


def _required(columns: ColumnMap, cells: Sequence[str], field_name: str) -> str:
    value = columns.value(cells, field_name)
    if value is None:
        tried = ", ".join(FIELD_ALIASES[field_name])
        raise RowDecodeError(f"Required field not found. Tried: {tried}")
    return value


def _bounded(label: str, value: str, limit: int) -> str:
    if len(value) > limit:
        raise RowDecodeError(f"{label} exceeds {limit} characters: {value[:limit]}...")
    return value


def parse_collection_date(value: str) -> date:
    """
    Parse a collection date, trying yyyy-MM-dd first and then MM/dd/yyyy.

    Impossible dates such as 2025-02-30 are rejected.
    """
    iso = _ISO_DATE.match(value)
    us = None if iso else _US_DATE.match(value)
    try:
        if iso:
            year, month, day = (int(g) for g in iso.groups())
            return date(year, month, day)
        if us:
            month, day, year = (int(g) for g in us.groups())
            return date(year, month, day)
    except ValueError:
        pass
    raise RowDecodeError(f"Invalid date format: {value} (expected yyyy-MM-dd or MM/dd/yyyy)")


def parse_collection_time(value: str) -> time:
    """Parse a 24-hour HH:mm collection time."""
    match = _HH_MM.match(value)
    if match:
        hour, minute = (int(g) for g in match.groups())
        if hour < 24 and minute < 60:
            return time(hour, minute)
    raise RowDecodeError(f"Invalid time format: {value} (expected HH:mm)")


def split_aux_date(value: str) -> tuple[str, str]:
    """
    Decompose a dd/MM/yyyy Nepali date into its (month, year) segments.

    Only the shape is checked. The Nepali calendar's own day and month
    ranges are not validated and nothing is converted to Gregorian.
    """
    parts = [part.strip() for part in value.split("/")]
    if len(parts) != 3 or not all(parts):
        raise RowDecodeError(f"Invalid Nepali date format: {value}")
    _, month, year = parts
    if len(month) > _MAX_AUX_PART or len(year) > _MAX_AUX_PART:
        raise RowDecodeError(f"Invalid Nepali date format: {value}")
    return month, year


def parse_decimal(field_name: str, value: str) -> Decimal:
    """Parse a finite decimal number that fits the numeric columns."""
    try:
        number = Decimal(value)
    except InvalidOperation:
        raise RowDecodeError(f"Invalid numeric value for {field_name}: {value}")
    if not number.is_finite():
        raise RowDecodeError(f"Invalid numeric value for {field_name}: {value}")
    if abs(number) >= _MAX_ABS_NUMERIC:
        raise RowDecodeError(f"Numeric value out of range for {field_name}: {value}")
    return number


def decode_row(row_number: int, cells: Sequence[str], columns: ColumnMap) -> RowResult:
    """
    Decode one data row.

    Pure: returns a ParsedRow, or a RowFailure naming the first field that
    failed. Never raises for bad data.
    """
    try:
        if len(cells) > columns.width:
            raise RowDecodeError(
                f"Row has {len(cells)} columns but the header has {columns.width}"
            )

        collection_date = parse_collection_date(_required(columns, cells, "collection_date"))
        aux_date = _bounded("Nepali date", _required(columns, cells, "aux_date"), _MAX_AUX_DATE)
        aux_month, aux_year = split_aux_date(aux_date)
        collection_time = parse_collection_time(_required(columns, cells, "collection_time"))
        member_code = _bounded(
            "Member code", _required(columns, cells, "member_code"), _MAX_MEMBER_CODE
        )
        numbers = {
            name: parse_decimal(name, _required(columns, cells, name))
            for name in NUMERIC_FIELDS
        }
        remarks = columns.value(cells, "remarks")
        if remarks is not None:
            remarks = _bounded("Remark", remarks, Limits.MAX_REMARKS_LENGTH)
    except RowDecodeError as e:
        return RowFailure(row_number=row_number, message=str(e))

    return ParsedRow(
        row_number=row_number,
        member_code=member_code,
        collection_date=collection_date,
        collection_time=collection_time,
        aux_date=aux_date,
        aux_month=aux_month,
        aux_year=aux_year,
        remarks=remarks,
        **numbers,
    )


# =============================================================================
# Structural reading
# =============================================================================


def open_csv_text(binary: BinaryIO) -> io.TextIOWrapper:
    """
    Wrap an uploaded binary stream as text for the csv module.

    UTF-8 with an optional BOM (spreadsheet exports often carry one).
    Decoding errors surface as UnicodeDecodeError while reading.
    """
    return io.TextIOWrapper(binary, encoding="utf-8-sig", newline="")


def _field_size_limit() -> int:
    # A single cell can never be longer than the largest accepted upload
    return max(csv.field_size_limit(), settings.csv_max_upload_mb * 1024 * 1024)


class CollectionCsvReader:
    """
    Streams a collection CSV: the first non-empty line is the header, the
    rest are data rows numbered from 1 in file order. Empty lines are
    skipped and not numbered. A line of blank cells such as ",,," is a data
    row; it fails decoding like any row with missing values.

    Quoting is strict: an unterminated quoted field is a csv.Error rather
    than a cell that silently absorbs the following lines.

    Raises:
        CsvStructuralError: The file has no header (empty or only empty lines).
        UnicodeDecodeError, csv.Error: The bytes are not readable CSV; these
            may also surface later while iterating rows().
    """

    def __init__(self, text: TextIO):
        csv.field_size_limit(_field_size_limit())
        self._records = csv.reader(text, strict=True)
        header = next((r for r in self._records if r), None)
        if header is None:
            raise CsvStructuralError("CSV file is empty")
        self.header: list[str] = header
        self.columns = ColumnMap.from_header(header)

    def rows(self) -> Iterator[tuple[int, list[str]]]:
        row_number = 0
        for record in self._records:
            if not record:
                continue
            row_number += 1
            yield row_number, record
