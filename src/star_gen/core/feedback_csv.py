"""Feedback CSV reading into read-only records."""

from __future__ import annotations

import csv
import io
from types import MappingProxyType
from typing import Final

from star_gen.domain.errors import CsvFormatError
from star_gen.domain.models import FeedbackRecord

IMPACT_COLUMN: Final[str] = "Star Impact (1-5)"
FEEDBACK_COLUMNS: Final[tuple[str, ...]] = (
    "Date",
    "Source",
    "Project / Context",
    "Feedback Type",
    "Tags",
    IMPACT_COLUMN,
    "Actual Feedback",
)


def parse_feedback_csv(text: str) -> list[FeedbackRecord]:
    """Parse CSV text into records keyed by the header line's column names."""
    normalized = text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    if not normalized.strip():
        return []
    reader = csv.reader(io.StringIO(normalized), skipinitialspace=True)
    try:
        header = next(reader)
    except csv.Error as exc:
        raise CsvFormatError(f"CSV header could not be read: {exc}") from exc
    columns = [column.strip() for column in header]
    if not any(columns):
        raise CsvFormatError("CSV header row is empty.")

    records: list[FeedbackRecord] = []
    try:
        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            record = {
                column: value.strip()
                for column, value in zip(columns, row)
                if column
            }
            records.append(MappingProxyType(record))
    except csv.Error as exc:
        raise CsvFormatError(f"CSV row {reader.line_num} could not be read: {exc}") from exc
    return records


def impact_rating(record: FeedbackRecord) -> int:
    """Return the 1-5 impact rating, or 0 when missing or not numeric."""
    raw = record.get(IMPACT_COLUMN, "").strip()
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        return 0
