from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel, UniqueConstraint

from seat_layout.editor import RoomType
from seat_layout.layout import SeatType


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


DEFAULT_PRICE_MULTIPLIERS = {
    SeatType.STANDARD: Decimal("1.00"),
    SeatType.VIP: Decimal("1.20"),
    SeatType.COUPLE: Decimal("1.50"),
    SeatType.DISABLED: Decimal("1.00"),
}


class Room(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    room_type: RoomType = RoomType.STANDARD_2D

    rows_count: int
    columns_count: int
    total_seats: int = 0

    # Serialized seat_layout.layout JSON; seats below are derived from it.
    seat_layout: Optional[str] = None
    active: bool = True

    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class Seat(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("room_id", "row_name", "seat_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    room_id: int = Field(index=True, foreign_key="room.id")
    row_name: str
    seat_number: int
    seat_type: SeatType = SeatType.STANDARD

    # Position in the layout grid the seat was generated from. Only active
    # cells become seats; aisles are authored in Room.seat_layout.
    grid_row: int
    grid_col: int


class SeatTypeRate(SQLModel, table=True):
    code: SeatType = Field(primary_key=True)
    name: str
    price_multiplier: Decimal = Field(default=Decimal("1.00"), max_digits=5, decimal_places=2)


class Showtime(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    room_id: int = Field(index=True, foreign_key="room.id")
    base_price: Decimal = Field(max_digits=12, decimal_places=2)
    starts_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=_utc_now)


class BookingSeat(SQLModel, table=True):
    showtime_id: int = Field(primary_key=True, foreign_key="showtime.id")
    seat_id: int = Field(primary_key=True, foreign_key="seat.id")

    created_at: datetime = Field(default_factory=_utc_now)
