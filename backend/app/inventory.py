from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from seat_layout.errors import SeatLayoutError, ValidationError
from seat_layout.layout import SeatType
from seat_layout.selection import SeatInstance

from .models import DEFAULT_PRICE_MULTIPLIERS, BookingSeat, Seat, SeatTypeRate, Showtime


logger = logging.getLogger(__name__)


class ShowtimeNotFoundError(SeatLayoutError, KeyError):
    def __str__(self) -> str:
        return Exception.__str__(self)


class SeatAlreadyBookedError(SeatLayoutError):
    def __init__(self, seat_ids: list[int]):
        super().__init__(f"seats already booked: {seat_ids}")
        self.seat_ids = seat_ids


def rate_card(session: Session) -> dict[SeatType, Decimal]:
    rates = dict(DEFAULT_PRICE_MULTIPLIERS)
    for rate in session.exec(select(SeatTypeRate)).all():
        rates[SeatType(rate.code)] = Decimal(rate.price_multiplier)
    return rates


def _get_showtime(session: Session, showtime_id: int) -> Showtime:
    showtime = session.get(Showtime, showtime_id)
    if not showtime:
        raise ShowtimeNotFoundError(f"showtime not found: {showtime_id}")
    return showtime


def resolve_seats_for_showtime(session: Session, showtime_id: int) -> list[SeatInstance]:
    showtime = _get_showtime(session, showtime_id)
    rates = rate_card(session)
    booked = set(session.exec(select(BookingSeat.seat_id).where(BookingSeat.showtime_id == showtime_id)).all())
    seats = session.exec(
        select(Seat).where(Seat.room_id == showtime.room_id).order_by(Seat.row_name, Seat.seat_number)
    ).all()
    return [
        SeatInstance(
            id=s.id,
            row_name=s.row_name,
            seat_number=s.seat_number,
            seat_label=f"{s.row_name}{s.seat_number}",
            seat_type=s.seat_type,
            price_multiplier=rates[SeatType(s.seat_type)],
            active=True,
            is_booked=s.id in booked,
        )
        for s in seats
    ]


def book_seats(session: Session, showtime_id: int, seat_ids: list[int], *, max_seats: int) -> Decimal:
    """Record bookings for the given seats; returns the amount due."""
    showtime = _get_showtime(session, showtime_id)
    seat_ids = list(dict.fromkeys(seat_ids))
    if len(seat_ids) > max_seats:
        raise ValidationError(f"at most {max_seats} seats can be booked at once")

    by_id = {s.id: s for s in resolve_seats_for_showtime(session, showtime_id)}
    missing = [sid for sid in seat_ids if sid not in by_id]
    if missing:
        raise ValidationError(f"seats not in room {showtime.room_id}: {missing}")
    taken = [sid for sid in seat_ids if by_id[sid].is_booked]
    if taken:
        raise SeatAlreadyBookedError(taken)

    for sid in seat_ids:
        session.add(BookingSeat(showtime_id=showtime_id, seat_id=sid))
    try:
        session.commit()
    except IntegrityError as e:
        # Another request booked one of the seats between the check and the insert.
        session.rollback()
        raise SeatAlreadyBookedError(seat_ids) from e

    base_price = Decimal(showtime.base_price)
    amount = sum((base_price * by_id[sid].price_multiplier for sid in seat_ids), Decimal("0"))
    logger.info("booked %d seats for showtime %s", len(seat_ids), showtime_id)
    return amount
