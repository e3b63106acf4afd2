from __future__ import annotations

import logging
from typing import Optional

from sqlmodel import Session, delete, select

from seat_layout.editor import RoomFields, RoomRecord
from seat_layout.errors import RoomNotFoundError, ValidationError
from seat_layout.layout import count_active, deserialize, iter_seats

from .models import BookingSeat, Room, Seat, _utc_now


logger = logging.getLogger(__name__)


class RoomInUseError(ValidationError):
    pass


def sync_seats_from_layout(session: Session, room: Room) -> int:
    """
    Replace the room's seats with one per active layout cell.

    Refuses when any current seat already has a booking.
    """
    layout = deserialize(room.seat_layout or "")
    seat_ids = [int(x) for x in session.exec(select(Seat.id).where(Seat.room_id == room.id)).all() if x is not None]
    if seat_ids:
        booked = session.exec(select(BookingSeat).where(BookingSeat.seat_id.in_(seat_ids))).first()
        if booked is not None:
            raise RoomInUseError(f"room {room.id} has booked seats; its layout cannot be replaced")
        session.exec(delete(Seat).where(Seat.room_id == room.id))
        session.flush()

    for seat in iter_seats(layout):
        session.add(
            Seat(
                room_id=room.id,
                row_name=seat.row_name,
                seat_number=seat.seat_number,
                seat_type=seat.seat_type,
                grid_row=seat.row,
                grid_col=seat.col,
            )
        )
    room.rows_count = layout.rows
    room.columns_count = layout.cols
    room.total_seats = count_active(layout)
    session.add(room)
    logger.info("synced %d seats for room %s", room.total_seats, room.id)
    return room.total_seats


class SqlRoomStore:
    """Room store backed by the service database; last write wins."""

    def __init__(self, session: Session):
        self.session = session

    def load_room(self, room_id: int) -> RoomRecord:
        room = self.session.get(Room, room_id)
        if not room:
            raise RoomNotFoundError(f"room not found: {room_id}")
        return RoomRecord(
            room_id=room.id,
            name=room.name,
            room_type=room.room_type,
            rows=room.rows_count,
            cols=room.columns_count,
            serialized_layout=room.seat_layout,
        )

    def save_room(self, room_id: Optional[int], fields: RoomFields, *, active: Optional[bool] = None) -> int:
        # Parse before touching the database so a bad payload changes nothing.
        layout = deserialize(fields.serialized_layout)

        if room_id is None:
            room = Room(name=fields.name, room_type=fields.room_type, rows_count=layout.rows, columns_count=layout.cols)
            self.session.add(room)
            self.session.flush()
        else:
            room = self.session.get(Room, room_id)
            if not room:
                raise RoomNotFoundError(f"room not found: {room_id}")
            room.name = fields.name
            room.room_type = fields.room_type
            room.updated_at = _utc_now()
        if active is not None:
            room.active = active
        room.seat_layout = fields.serialized_layout

        try:
            sync_seats_from_layout(self.session, room)
        except Exception:
            self.session.rollback()
            raise
        self.session.commit()
        self.session.refresh(room)
        return room.id
