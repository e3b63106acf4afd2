from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from .errors import RoomSaveError, SeatLayoutError, ValidationError
from .layout import CellSpec, SeatLayout, SeatType, create_empty, deserialize, resize, row_label, seat_numbers, serialize


logger = logging.getLogger(__name__)


class RoomType(str, Enum):
    STANDARD_2D = "STANDARD_2D"
    STANDARD_3D = "STANDARD_3D"
    IMAX = "IMAX"
    IMAX_3D = "IMAX_3D"
    VIP_4DX = "VIP_4DX"


@dataclass(frozen=True)
class RoomFields:
    name: str
    room_type: RoomType
    rows: int
    cols: int
    serialized_layout: str


@dataclass(frozen=True)
class RoomRecord:
    room_id: int
    name: str
    room_type: RoomType
    rows: int
    cols: int
    serialized_layout: Optional[str]


class RoomStore(Protocol):
    def load_room(self, room_id: int) -> RoomRecord: ...

    def save_room(self, room_id: Optional[int], fields: RoomFields) -> int:
        """Create (room_id=None) or update a room; returns its id."""
        ...


class SeatGridEditor:
    """
    Admin seat-grid editor.

    Holds one working ``SeatLayout``. Each edit swaps in a new layout value;
    nothing is persisted until ``save()``.
    """

    def __init__(
        self,
        layout: Optional[SeatLayout] = None,
        *,
        rows: int = 10,
        cols: int = 12,
        room_id: Optional[int] = None,
        name: str = "",
        room_type: RoomType = RoomType.STANDARD_2D,
        store: Optional[RoomStore] = None,
    ):
        self.layout = layout if layout is not None else create_empty(rows, cols)
        self.room_id = room_id
        self.name = name
        self.room_type = RoomType(room_type)
        self.store = store

    @classmethod
    def open(cls, store: RoomStore, room_id: int) -> "SeatGridEditor":
        record = store.load_room(room_id)
        if record.serialized_layout:
            layout = deserialize(record.serialized_layout)
        else:
            layout = create_empty(record.rows, record.cols)
        return cls(layout, room_id=record.room_id, name=record.name, room_type=record.room_type, store=store)

    @property
    def rows(self) -> int:
        return self.layout.rows

    @property
    def cols(self) -> int:
        return self.layout.cols

    @property
    def labels(self) -> list[list[Optional[str]]]:
        numbers = seat_numbers(self.layout)
        return [
            [None if n is None else f"{row_label(r)}{n}" for n in row]
            for r, row in enumerate(numbers)
        ]

    def set_cell_type(self, row: int, col: int, seat_type: Optional[SeatType] = None) -> SeatLayout:
        """Set a cell's seat type, or cycle it when no type is given. Inactive cells are left alone."""
        cell = self.layout.cell(row, col)
        if cell is None or not cell.active:
            return self.layout
        new_type = cell.seat_type.next() if seat_type is None else SeatType(seat_type)
        self.layout = self.layout.replace_cell(row, col, CellSpec(seat_type=new_type, active=True))
        return self.layout

    def toggle_active(self, row: int, col: int) -> SeatLayout:
        cell = self.layout.cell(row, col)
        if cell is None:
            new_cell = CellSpec()
        else:
            new_cell = CellSpec(seat_type=cell.seat_type, active=not cell.active)
        self.layout = self.layout.replace_cell(row, col, new_cell)
        return self.layout

    def change_dimensions(self, new_rows: int, new_cols: int) -> SeatLayout:
        self.layout = resize(self.layout, new_rows, new_cols)
        return self.layout

    def reset(self) -> SeatLayout:
        self.layout = create_empty(self.rows, self.cols)
        return self.layout

    def serialized(self) -> str:
        return serialize(self.layout)

    def save(self) -> int:
        if self.rows < 1 or self.cols < 1:
            raise ValidationError("rows and cols must be positive integers")
        name = (self.name or "").strip()
        if not name:
            raise ValidationError("room name is required")
        if self.store is None:
            raise ValidationError("no room store configured")

        fields = RoomFields(
            name=name,
            room_type=self.room_type,
            rows=self.rows,
            cols=self.cols,
            serialized_layout=self.serialized(),
        )
        try:
            room_id = self.store.save_room(self.room_id, fields)
        except SeatLayoutError:
            raise
        except Exception as e:  # noqa: BLE001 - any store failure is reported the same way
            logger.warning("saving room %r failed: %s", name, e)
            raise RoomSaveError(f"failed to save room {name!r}: {e}") from e

        logger.info("saved room %s (%dx%d)", room_id, self.rows, self.cols)
        self.room_id = room_id
        return room_id
