from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from seat_layout.editor import RoomType
from seat_layout.layout import SeatType
from seat_layout.selection import SeatInstance


class RoomUpsert(BaseModel):
    name: str
    room_type: RoomType = RoomType.STANDARD_2D
    active: Optional[bool] = None
    # Serialized layout string, as produced by seat_layout.layout.serialize.
    seat_layout: str

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("room name is required")
        return v


class SeatTypeRateUpsert(BaseModel):
    name: Optional[str] = None
    price_multiplier: Decimal = Field(gt=0, max_digits=5, decimal_places=2)


class ShowtimeCreate(BaseModel):
    room_id: int
    base_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    starts_at: Optional[datetime] = None


class BookingCreate(BaseModel):
    seat_ids: list[int] = Field(min_length=1)


class SeatInstanceOut(BaseModel):
    """Wire shape consumed by the customer seat map (camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    row_name: str = Field(alias="rowName")
    seat_number: int = Field(alias="seatNumber")
    seat_label: str = Field(alias="seatLabel")
    seat_type: SeatType = Field(alias="seatType")
    price_multiplier: Decimal = Field(alias="priceMultiplier")
    active: bool
    is_booked: bool = Field(alias="isBooked")

    @classmethod
    def from_instance(cls, seat: SeatInstance) -> "SeatInstanceOut":
        return cls(
            id=seat.id,
            row_name=seat.row_name,
            seat_number=seat.seat_number,
            seat_label=seat.seat_label,
            seat_type=seat.seat_type,
            price_multiplier=seat.price_multiplier,
            active=seat.active,
            is_booked=seat.is_booked,
        )
