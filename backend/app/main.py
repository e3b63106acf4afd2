from __future__ import annotations

import logging
import os

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session, delete, select

from seat_layout.editor import RoomFields
from seat_layout.errors import FormatError, RoomNotFoundError, ValidationError
from seat_layout.layout import SeatType, deserialize
from seat_layout.log import setup_logging
from seat_layout.selection import DEFAULT_MAX_SEATS

from .db import get_session, init_db
from .inventory import SeatAlreadyBookedError, ShowtimeNotFoundError, book_seats, rate_card, resolve_seats_for_showtime
from .models import BookingSeat, Room, Seat, SeatTypeRate, Showtime
from .rooms import RoomInUseError, SqlRoomStore
from .schemas import BookingCreate, RoomUpsert, SeatInstanceOut, SeatTypeRateUpsert, ShowtimeCreate


logger = logging.getLogger(__name__)

MAX_SEATS_PER_BOOKING = int(os.environ.get("CINEMA_SEATING_MAX_SEATS", DEFAULT_MAX_SEATS))

app = FastAPI(title="Cinema Seating API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    setup_logging()
    init_db()


def _session() -> Session:
    return get_session()


def _room_out(room: Room) -> dict:
    return {
        "id": room.id,
        "name": room.name,
        "room_type": room.room_type,
        "rows": room.rows_count,
        "cols": room.columns_count,
        "total_seats": room.total_seats,
        "active": room.active,
    }


def _save_room(session: Session, room_id: int | None, payload: RoomUpsert) -> dict:
    store = SqlRoomStore(session)
    try:
        layout = deserialize(payload.seat_layout)
        fields = RoomFields(
            name=payload.name,
            room_type=payload.room_type,
            rows=layout.rows,
            cols=layout.cols,
            serialized_layout=payload.seat_layout,
        )
        new_id = store.save_room(room_id, fields, active=payload.active)
    except RoomNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except RoomInUseError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except (FormatError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"invalid seat layout: {e}") from e
    return _room_out(session.get(Room, new_id))


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.post("/rooms")
def create_room(payload: RoomUpsert, session: Session = Depends(_session)) -> dict:
    return _save_room(session, None, payload)


@app.put("/rooms/{room_id}")
def update_room(room_id: int, payload: RoomUpsert, session: Session = Depends(_session)) -> dict:
    return _save_room(session, room_id, payload)


@app.get("/rooms")
def list_rooms(session: Session = Depends(_session)) -> list[dict]:
    rooms = session.exec(select(Room).order_by(Room.created_at.desc())).all()
    return [_room_out(r) for r in rooms]


@app.get("/rooms/{room_id}")
def load_room(room_id: int, session: Session = Depends(_session)) -> dict:
    try:
        record = SqlRoomStore(session).load_room(room_id)
    except RoomNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {
        "id": record.room_id,
        "name": record.name,
        "room_type": record.room_type,
        "rows": record.rows,
        "cols": record.cols,
        "seat_layout": record.serialized_layout,
    }


@app.delete("/rooms/{room_id}")
def delete_room(room_id: int, session: Session = Depends(_session)) -> dict:
    room = session.get(Room, room_id)
    if not room:
        raise HTTPException(status_code=404, detail="room not found")
    seat_ids = [int(x) for x in session.exec(select(Seat.id).where(Seat.room_id == room_id)).all() if x is not None]
    showtime_ids = [int(x) for x in session.exec(select(Showtime.id).where(Showtime.room_id == room_id)).all() if x is not None]
    if seat_ids:
        session.exec(delete(BookingSeat).where(BookingSeat.seat_id.in_(seat_ids)))
    if showtime_ids:
        session.exec(delete(Showtime).where(Showtime.id.in_(showtime_ids)))
    session.exec(delete(Seat).where(Seat.room_id == room_id))
    session.delete(room)
    session.commit()
    logger.info("deleted room %s with %d seats and %d showtimes", room_id, len(seat_ids), len(showtime_ids))
    return {"deleted": True}


@app.get("/rooms/{room_id}/seats")
def list_room_seats(room_id: int, session: Session = Depends(_session)) -> list[dict]:
    if not session.get(Room, room_id):
        raise HTTPException(status_code=404, detail="room not found")
    seats = session.exec(select(Seat).where(Seat.room_id == room_id).order_by(Seat.row_name, Seat.seat_number)).all()
    return [
        {
            "id": s.id,
            "row_name": s.row_name,
            "seat_number": s.seat_number,
            "seat_type": s.seat_type,
            "grid_row": s.grid_row,
            "grid_col": s.grid_col,
        }
        for s in seats
    ]


@app.get("/seat-types")
def list_seat_types(session: Session = Depends(_session)) -> list[dict]:
    names = {r.code: r.name for r in session.exec(select(SeatTypeRate)).all()}
    return [
        {"code": code.value, "name": names.get(code, code.value.title()), "price_multiplier": str(multiplier)}
        for code, multiplier in rate_card(session).items()
    ]


@app.put("/seat-types/{code}")
def upsert_seat_type(code: SeatType, payload: SeatTypeRateUpsert, session: Session = Depends(_session)) -> dict:
    rate = session.get(SeatTypeRate, code)
    if rate:
        rate.price_multiplier = payload.price_multiplier
        if payload.name:
            rate.name = payload.name
    else:
        rate = SeatTypeRate(code=code, name=payload.name or code.value.title(), price_multiplier=payload.price_multiplier)
    session.add(rate)
    session.commit()
    return {"code": code.value, "name": rate.name, "price_multiplier": str(payload.price_multiplier)}


@app.post("/showtimes")
def create_showtime(payload: ShowtimeCreate, session: Session = Depends(_session)) -> dict:
    if not session.get(Room, payload.room_id):
        raise HTTPException(status_code=404, detail="room not found")
    st = Showtime(**payload.model_dump())
    session.add(st)
    session.commit()
    session.refresh(st)
    return {"id": st.id, "room_id": st.room_id, "base_price": str(st.base_price)}


@app.get("/showtimes/{showtime_id}/seats")
def showtime_seats(showtime_id: int, session: Session = Depends(_session)) -> list[dict]:
    try:
        seats = resolve_seats_for_showtime(session, showtime_id)
    except ShowtimeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return [SeatInstanceOut.from_instance(s).model_dump(by_alias=True, mode="json") for s in seats]


@app.post("/showtimes/{showtime_id}/bookings")
def create_booking(showtime_id: int, payload: BookingCreate, session: Session = Depends(_session)) -> dict:
    try:
        amount = book_seats(session, showtime_id, payload.seat_ids, max_seats=MAX_SEATS_PER_BOOKING)
    except ShowtimeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except SeatAlreadyBookedError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"showtime_id": showtime_id, "seat_ids": payload.seat_ids, "amount": str(amount)}
