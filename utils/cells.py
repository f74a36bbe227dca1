"""
Typed view of spreadsheet cells.

pandas hands back whatever Python object the workbook reader produced.
``Cell.from_raw`` classifies that object once into a closed set of kinds,
and each coercion function below handles every kind explicitly.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Sequence

import pandas as pd

from utils.result import Result


class CellKind(Enum):
    BLANK = "blank"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OTHER = "other"


@dataclass(frozen=True)
class Cell:
    kind: CellKind
    value: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> "Cell":
        """
        Classify a value read from a worksheet.

        Args:
            raw: Value produced by the spreadsheet reader

        Returns:
            Cell tagged with its kind
        """
        if raw is None:
            return BLANK_CELL
        # bool is a number to pandas, so it is checked first
        if pd.api.types.is_bool(raw):
            return cls(CellKind.BOOLEAN, bool(raw))
        if pd.api.types.is_number(raw):
            if pd.isna(raw):
                return BLANK_CELL
            return cls(CellKind.NUMBER, raw)
        if isinstance(raw, str):
            if raw == "":
                return BLANK_CELL
            return cls(CellKind.TEXT, raw)
        if pd.api.types.is_scalar(raw) and pd.isna(raw):
            return BLANK_CELL
        return cls(CellKind.OTHER, raw)

    @property
    def is_blank(self) -> bool:
        return self.kind is CellKind.BLANK


BLANK_CELL = Cell(CellKind.BLANK)


def cell_at(cells: Sequence[Cell], position: int) -> Cell:
    """Return the cell at a column position, or a blank cell past the row end."""
    if 0 <= position < len(cells):
        return cells[position]
    return BLANK_CELL


def is_blank_row(cells: Sequence[Cell]) -> bool:
    return all(cell.is_blank for cell in cells)


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_text(cell: Cell) -> Optional[str]:
    """
    Stringify a cell.

    Numbers and booleans are converted to their text form. Blank and
    unrecognized cells yield None.
    """
    if cell.kind is CellKind.TEXT:
        return cell.value
    if cell.kind is CellKind.NUMBER:
        return _format_number(cell.value)
    if cell.kind is CellKind.BOOLEAN:
        return "true" if cell.value else "false"
    return None


def to_integer(cell: Cell) -> Result[Optional[int]]:
    """
    Coerce a numeric or numeric-text cell to an int.

    Numeric cells are truncated toward zero. Text must be a whole number.
    Blank, boolean and unrecognized cells yield None.
    """
    if cell.kind is CellKind.NUMBER:
        try:
            return Result.ok(int(cell.value))
        except (OverflowError, ValueError):
            return Result.processing_error("Invalid integer value in cell")
    if cell.kind is CellKind.TEXT:
        try:
            return Result.ok(int(cell.value.strip()))
        except ValueError:
            return Result.processing_error("Invalid integer value in cell")
    return Result.ok(None)


def to_decimal(cell: Cell) -> Result[Optional[Decimal]]:
    """
    Coerce a numeric or numeric-text cell to a Decimal.

    Blank, boolean and unrecognized cells yield None.
    """
    if cell.kind is CellKind.NUMBER:
        text = _format_number(cell.value)
    elif cell.kind is CellKind.TEXT:
        text = cell.value.strip()
    else:
        return Result.ok(None)

    try:
        value = Decimal(text)
    except InvalidOperation:
        return Result.processing_error("Invalid decimal value in cell")
    if not value.is_finite():
        return Result.processing_error("Invalid decimal value in cell")
    return Result.ok(value)


def to_boolean(cell: Cell) -> Result[bool]:
    """
    Coerce a cell to a bool.

    Boolean cells are taken as-is, text must read ``true`` or ``false``
    (any case), and a numeric cell is True only when it equals 1.
    """
    if cell.kind is CellKind.BOOLEAN:
        return Result.ok(cell.value)
    if cell.kind is CellKind.NUMBER:
        return Result.ok(cell.value == 1)
    if cell.kind is CellKind.TEXT:
        word = cell.value.strip().lower()
        if word == "true":
            return Result.ok(True)
        if word == "false":
            return Result.ok(False)
        return Result.processing_error("Invalid boolean value in cell")
    if cell.kind is CellKind.BLANK:
        return Result.processing_error("Is active cannot be null")
    return Result.processing_error("Invalid boolean value in cell")
