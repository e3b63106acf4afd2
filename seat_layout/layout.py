from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from .errors import FormatError, ValidationError


FORMAT_TAG = "seat-layout"
FORMAT_VERSION = 1


class SeatType(str, Enum):
    STANDARD = "STANDARD"
    VIP = "VIP"
    COUPLE = "COUPLE"
    DISABLED = "DISABLED"

    def next(self) -> "SeatType":
        members = list(SeatType)
        return members[(members.index(self) + 1) % len(members)]


@dataclass(frozen=True)
class CellSpec:
    seat_type: SeatType = SeatType.STANDARD
    active: bool = True


Cell = Optional[CellSpec]
Grid = tuple[tuple[Cell, ...], ...]

DEFAULT_CELL = CellSpec()


@dataclass(frozen=True)
class SeatLayout:
    """
    A room's physical seat grid, independent of any showtime.

    ``cells`` is always exactly ``rows`` x ``cols``. A ``None`` cell is a
    structural gap and behaves like an inactive cell everywhere.
    """

    rows: int
    cols: int
    cells: Grid

    def __post_init__(self) -> None:
        _check_dimensions(self.rows, self.cols)
        if len(self.cells) != self.rows or any(len(r) != self.cols for r in self.cells):
            raise ValidationError("cells dimensions do not match rows/cols")

    def cell(self, row: int, col: int) -> Cell:
        self.validate_position(row, col)
        return self.cells[row][col]

    def validate_position(self, row: int, col: int) -> None:
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            raise ValidationError(f"cell out of bounds: row={row}, col={col}")

    def replace_cell(self, row: int, col: int, cell: Cell) -> "SeatLayout":
        self.validate_position(row, col)
        new_row = self.cells[row][:col] + (cell,) + self.cells[row][col + 1 :]
        return SeatLayout(self.rows, self.cols, self.cells[:row] + (new_row,) + self.cells[row + 1 :])


@dataclass(frozen=True)
class LayoutSeat:
    row: int
    col: int
    row_name: str
    seat_number: int
    seat_type: SeatType

    @property
    def label(self) -> str:
        return f"{self.row_name}{self.seat_number}"


def _check_dimensions(rows: int, cols: int) -> None:
    if isinstance(rows, bool) or isinstance(cols, bool) or not isinstance(rows, int) or not isinstance(cols, int):
        raise ValidationError("rows and cols must be integers")
    if rows < 1 or cols < 1:
        raise ValidationError("rows and cols must be positive integers")


def is_active(cell: Cell) -> bool:
    return cell is not None and cell.active


def create_empty(rows: int, cols: int) -> SeatLayout:
    _check_dimensions(rows, cols)
    return SeatLayout(rows, cols, tuple(tuple(DEFAULT_CELL for _ in range(cols)) for _ in range(rows)))


def resize(layout: SeatLayout, new_rows: int, new_cols: int) -> SeatLayout:
    # Shrinking drops cells for good; growing again fills with defaults.
    _check_dimensions(new_rows, new_cols)
    cells = []
    for r in range(new_rows):
        old = layout.cells[r] if r < layout.rows else ()
        cells.append(tuple(old[c] if c < len(old) else DEFAULT_CELL for c in range(new_cols)))
    return SeatLayout(new_rows, new_cols, tuple(cells))


def row_label(index: int) -> str:
    """
    Row letters for a 0-based row index: A..Z, then AA, AB, ... like
    spreadsheet columns.
    """
    if index < 0:
        raise ValidationError(f"row index must be non-negative: {index}")
    letters = ""
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def seat_numbers(layout: SeatLayout) -> list[list[Optional[int]]]:
    """1-based seat numbers per cell, counted over active cells only."""
    out: list[list[Optional[int]]] = []
    for row in layout.cells:
        n = 0
        numbers: list[Optional[int]] = []
        for cell in row:
            if is_active(cell):
                n += 1
                numbers.append(n)
            else:
                numbers.append(None)
        out.append(numbers)
    return out


def cell_label(layout: SeatLayout, row: int, col: int) -> Optional[str]:
    layout.validate_position(row, col)
    number = seat_numbers(layout)[row][col]
    if number is None:
        return None
    return f"{row_label(row)}{number}"


def iter_seats(layout: SeatLayout) -> Iterator[LayoutSeat]:
    numbers = seat_numbers(layout)
    for r, row in enumerate(layout.cells):
        name = row_label(r)
        for c, cell in enumerate(row):
            if is_active(cell):
                yield LayoutSeat(row=r, col=c, row_name=name, seat_number=numbers[r][c], seat_type=cell.seat_type)


def count_active(layout: SeatLayout) -> int:
    return sum(1 for row in layout.cells for cell in row if is_active(cell))


def to_dict(layout: SeatLayout) -> dict:
    return {
        "format": FORMAT_TAG,
        "version": FORMAT_VERSION,
        "rows": layout.rows,
        "cols": layout.cols,
        "cells": [
            [None if cell is None else {"type": cell.seat_type.value, "active": cell.active} for cell in row]
            for row in layout.cells
        ],
    }


def serialize(layout: SeatLayout) -> str:
    return json.dumps(to_dict(layout), sort_keys=True, separators=(",", ":"))


def _parse_dimension(data: dict, key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise FormatError(f"{key!r} must be an integer, got {value!r}")
    if value < 1:
        raise FormatError(f"{key!r} must be positive, got {value}")
    return value


def _parse_seat_type(value: object) -> SeatType:
    try:
        return SeatType(value)
    except ValueError as e:
        raise FormatError(f"unknown seat type: {value!r}") from e


def _parse_cell(raw: object) -> Cell:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise FormatError(f"cell must be an object or null, got {type(raw).__name__}")
    active = raw.get("active")
    if not isinstance(active, bool):
        raise FormatError(f"cell 'active' must be a boolean, got {active!r}")
    return CellSpec(seat_type=_parse_seat_type(raw.get("type")), active=active)


def _parse_legacy_cell(raw: object) -> Cell:
    # Older editor payloads: {"type": "VIP", "row": .., "col": .., "label": ..}
    if not isinstance(raw, dict):
        raise FormatError(f"grid cell must be an object, got {type(raw).__name__}")
    if raw.get("type") == "NONE":
        return CellSpec(active=False)
    return CellSpec(seat_type=_parse_seat_type(raw.get("type")), active=True)


def _parse_grid(raw: object, rows: int, cols: int, parse_cell) -> Grid:
    if not isinstance(raw, list) or len(raw) != rows:
        raise FormatError(f"expected {rows} rows of cells")
    grid = []
    for r, row in enumerate(raw):
        if not isinstance(row, list) or len(row) != cols:
            raise FormatError(f"row {r} must have exactly {cols} cells")
        grid.append(tuple(parse_cell(cell) for cell in row))
    return tuple(grid)


def from_dict(data: object) -> SeatLayout:
    if not isinstance(data, dict):
        raise FormatError("layout must be a JSON object")
    rows = _parse_dimension(data, "rows")
    cols = _parse_dimension(data, "cols")

    if "format" not in data and "grid" in data:
        return SeatLayout(rows, cols, _parse_grid(data["grid"], rows, cols, _parse_legacy_cell))

    if data.get("format") != FORMAT_TAG:
        raise FormatError(f"unrecognised layout format: {data.get('format')!r}")
    if data.get("version") != FORMAT_VERSION:
        raise FormatError(f"unsupported layout version: {data.get('version')!r}")
    return SeatLayout(rows, cols, _parse_grid(data.get("cells"), rows, cols, _parse_cell))


def deserialize(text: str) -> SeatLayout:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise FormatError(f"invalid layout JSON: {e}") from e
    return from_dict(data)
