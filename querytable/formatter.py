"""
Result formatter for displaying query results.

Turns a raw, possibly malformed result set into display-safe cells, and
renders it as a table. Every public operation here is total: malformed
input degrades to empty rows, pass-through values or sentinel strings,
and is logged rather than raised.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, List, Optional, Union

from tabulate import tabulate

from .columns import derive_column_labels
from .config import DEFAULT_SETTINGS, Settings
from .utils.validators import (
    is_finite_number,
    is_sequence,
    looks_like_iso_datetime,
    match_currency_amount,
    match_legacy_datetime,
    match_legacy_decimal,
    parse_iso_datetime,
)

log = logging.getLogger(__name__)

Cell = Union[None, bool, int, float, str]
Row = List[Cell]

INVALID_NUMBER = "Invalid Number"
ERROR_CELL = "Error"
ELLIPSIS = "..."


@dataclass
class FormattedTable:
    """Display-ready result: labels plus sanitized rows."""
    columns: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        """Number of display columns needed for labels and the widest row."""
        widest = max((len(row) for row in self.rows), default=0)
        return max(widest, len(self.columns))

    def padded_columns(self) -> List[str]:
        """Labels padded with blanks so every data column has a header."""
        return self.columns + [""] * (self.width - len(self.columns))

    def padded_rows(self) -> List[Row]:
        """Rows padded with blanks up to the table width."""
        width = self.width
        return [row + [""] * (width - len(row)) for row in self.rows]


class ResultFormatter:
    """
    Sanitizes query result cells for display.

    Settings control truncation length, currency rendering and the
    timestamp format; module-level helpers use a default instance.
    """

    def __init__(self, settings: Settings = None):
        self.settings = settings or DEFAULT_SETTINGS

    # ----- Value rendering -----

    def format_datetime(self, value: datetime) -> str:
        return value.strftime(self.settings.datetime_format)

    def format_currency(self, value: float) -> str:
        return f"{self.settings.currency_symbol}{value:.2f}"

    def truncate(self, text: str) -> str:
        """Cut text to max_cell_length, marking the cut with '...'."""
        limit = self.settings.max_cell_length
        if len(text) > limit:
            return text[:limit] + ELLIPSIS
        return text

    # ----- Cell classification -----

    def sanitize_string(self, cell: str) -> str:
        """
        Classify and render a string cell.

        Order matters: ISO timestamps, bare amounts, legacy datetime
        reprs, legacy Decimal reprs, then plain text.
        """
        settings = self.settings

        if looks_like_iso_datetime(cell):
            try:
                return self.format_datetime(parse_iso_datetime(cell))
            except ValueError:
                return self.truncate(cell)

        amount = match_currency_amount(
            cell,
            currency_min=settings.currency_min,
            currency_max=settings.currency_max,
            integer_currency=settings.integer_currency
        )
        if amount is not None:
            return self.format_currency(amount)

        parts = match_legacy_datetime(cell)
        if parts is not None:
            try:
                return self.format_datetime(datetime(*parts))
            except ValueError as e:
                log.warning("Unparseable datetime repr %r: %s", cell[:80], e)
                return self.truncate(cell)

        inner = match_legacy_decimal(cell)
        if inner is not None:
            try:
                value = float(inner)
            except ValueError:
                return self.truncate(cell)
            if not math.isfinite(value):
                return self.truncate(cell)
            return self.format_currency(value)

        return self.truncate(cell)

    def sanitize_cell(self, cell: Any) -> Cell:
        """
        Convert one raw value into a display-safe cell.

        Args:
            cell: Raw value from the backend

        Returns:
            None, a finite number, or a string

        Raises:
            Exception: Whatever the value's own conversion raises;
                sanitize() catches it per cell
        """
        if cell is None:
            return None

        if isinstance(cell, str):
            return self.sanitize_string(cell)

        # bool before numbers: bool is an int subclass
        if isinstance(cell, bool):
            return "true" if cell else "false"

        if isinstance(cell, (int, float)):
            return cell if is_finite_number(cell) else INVALID_NUMBER

        if isinstance(cell, datetime):
            return self.format_datetime(cell)

        if isinstance(cell, date):
            return self.format_datetime(datetime.combine(cell, time()))

        if isinstance(cell, Decimal):
            if not cell.is_finite():
                return INVALID_NUMBER
            return self.format_currency(float(cell))

        return self.truncate(str(cell))

    # ----- Result sets -----

    def sanitize_row(self, row: Any, row_index: int) -> Row:
        if not is_sequence(row):
            log.warning("Invalid row format at index %d: expected a sequence", row_index)
            return []

        sanitized = []
        for cell_index, cell in enumerate(row):
            try:
                sanitized.append(self.sanitize_cell(cell))
            except Exception as e:
                log.error("Error processing cell [%d][%d]: %s", row_index, cell_index, e)
                sanitized.append(ERROR_CELL)
        return sanitized

    def sanitize(self, result_set: Any) -> List[Row]:
        """
        Sanitize a whole result set.

        Args:
            result_set: Value claimed to be a list of rows

        Returns:
            List of rows whose cells are None, numbers or strings.
            A non-sequence input yields []; a non-sequence row yields [].
        """
        if not is_sequence(result_set):
            log.warning("Invalid result format: expected a sequence, got %s",
                        type(result_set).__name__)
            return []

        return [self.sanitize_row(row, i) for i, row in enumerate(result_set)]

    def build_table(self, sql_text: str, result_set: Any) -> FormattedTable:
        return FormattedTable(
            columns=derive_column_labels(sql_text),
            rows=self.sanitize(result_set)
        )


_default_formatter = ResultFormatter()


def sanitize(result_set: Any, settings: Optional[Settings] = None) -> List[Row]:
    """Sanitize a result set with the given (or default) settings."""
    formatter = ResultFormatter(settings) if settings else _default_formatter
    return formatter.sanitize(result_set)


def sanitize_cell(cell: Any, settings: Optional[Settings] = None) -> Cell:
    """Sanitize a single cell. Unlike sanitize(), this may raise."""
    formatter = ResultFormatter(settings) if settings else _default_formatter
    return formatter.sanitize_cell(cell)


def build_table(sql_text: str, result_set: Any,
                settings: Optional[Settings] = None) -> FormattedTable:
    """
    Combine column labels and sanitized rows for display.

    Args:
        sql_text: SQL that produced the result
        result_set: Raw rows from the backend

    Returns:
        FormattedTable; label count may differ from row width
    """
    formatter = ResultFormatter(settings) if settings else _default_formatter
    return formatter.build_table(sql_text, result_set)


def format_result_table(table: FormattedTable) -> str:
    """
    Format a FormattedTable as an ASCII grid.

    Args:
        table: Table from build_table()

    Returns:
        Formatted string with table and row count
    """
    if not table.rows:
        return "(0 rows)"

    # Use tabulate for pretty printing; None cells print as NULL
    grid = tabulate(
        table.padded_rows(),
        headers=table.padded_columns(),
        tablefmt='grid',
        missingval='NULL',
        disable_numparse=True
    )
    row_count = f"\n({table.row_count} row{'s' if table.row_count != 1 else ''})"

    return grid + row_count
