from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Callable, Hashable, Iterable, Optional, Union

from .errors import ValidationError
from .layout import SeatType


logger = logging.getLogger(__name__)

DEFAULT_MAX_SEATS = 8


def to_decimal(value: object, *, name: str = "value") -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        return value
    try:
        # str() keeps 1.2 as Decimal("1.2") instead of its binary expansion.
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e


@dataclass(frozen=True)
class SeatInstance:
    id: Hashable
    row_name: str
    seat_number: int
    seat_label: str
    seat_type: SeatType = SeatType.STANDARD
    price_multiplier: Decimal = Decimal("1")
    active: bool = True
    is_booked: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "seat_type", SeatType(self.seat_type))
        multiplier = to_decimal(self.price_multiplier, name="price_multiplier")
        if multiplier <= 0:
            raise ValidationError(f"price_multiplier must be positive, got {multiplier}")
        object.__setattr__(self, "price_multiplier", multiplier)

    @property
    def selectable(self) -> bool:
        return self.active and not self.is_booked

    @classmethod
    def from_dict(cls, data: dict) -> "SeatInstance":
        if not isinstance(data, dict):
            raise ValidationError(f"invalid seat data: expected an object, got {type(data).__name__}")

        def pick(camel: str, snake: str, default=None):
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        def flag(camel: str, snake: str, default: bool) -> bool:
            value = pick(camel, snake, default)
            if not isinstance(value, bool):
                raise ValidationError(f"invalid seat data: {camel} must be true or false, got {value!r}")
            return value

        try:
            row_name = str(pick("rowName", "row_name"))
            seat_number = int(pick("seatNumber", "seat_number"))
            seat_id = data["id"]
            seat_type = SeatType(pick("seatType", "seat_type", SeatType.STANDARD.value))
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"invalid seat data: {e}") from e
        return cls(
            id=seat_id,
            row_name=row_name,
            seat_number=seat_number,
            seat_label=pick("seatLabel", "seat_label") or f"{row_name}{seat_number}",
            seat_type=seat_type,
            price_multiplier=pick("priceMultiplier", "price_multiplier", Decimal("1")),
            active=flag("active", "active", True),
            is_booked=flag("isBooked", "is_booked", False),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rowName": self.row_name,
            "seatNumber": self.seat_number,
            "seatLabel": self.seat_label,
            "seatType": self.seat_type.value,
            "priceMultiplier": str(self.price_multiplier),
            "active": self.active,
            "isBooked": self.is_booked,
        }


class SelectionOutcome(str, Enum):
    SELECTED = "selected"
    DESELECTED = "deselected"
    BLOCKED = "blocked"
    CAPACITY_EXCEEDED = "capacity_exceeded"

    @property
    def changed(self) -> bool:
        return self in (SelectionOutcome.SELECTED, SelectionOutcome.DESELECTED)


class SeatState(str, Enum):
    BOOKED = "booked"
    INACTIVE = "inactive"
    SELECTED = "selected"
    VIP = "vip"
    COUPLE = "couple"
    DISABLED = "disabled"
    STANDARD = "standard"


_TYPE_STATES = {
    SeatType.VIP: SeatState.VIP,
    SeatType.COUPLE: SeatState.COUPLE,
    SeatType.DISABLED: SeatState.DISABLED,
}


@dataclass(frozen=True)
class ToggleResult:
    outcome: SelectionOutcome
    selected: tuple[SeatInstance, ...]
    total_amount: Decimal


SelectionCallback = Callable[[list[SeatInstance]], None]


class SeatSelectionMap:
    """
    Customer seat map for one showtime.

    Seats are fixed value objects; only the ordered set of selected ids
    changes. Booked or inactive seats can never be selected.
    """

    def __init__(
        self,
        seats: Iterable[SeatInstance],
        base_price: Union[Decimal, int, float, str],
        *,
        max_seats: int = DEFAULT_MAX_SEATS,
        on_selection_change: Optional[SelectionCallback] = None,
    ):
        if max_seats < 1:
            raise ValidationError("max_seats must be at least 1")
        self.base_price = to_decimal(base_price, name="base_price")
        if self.base_price < 0:
            raise ValidationError("base_price must not be negative")
        self.max_seats = max_seats
        self.on_selection_change = on_selection_change

        self._seats: dict[Hashable, SeatInstance] = {}
        for seat in seats:
            if seat.id in self._seats:
                raise ValidationError(f"duplicate seat id: {seat.id!r}")
            self._seats[seat.id] = seat
        self._selected: list[Hashable] = []

    @property
    def seats(self) -> list[SeatInstance]:
        return list(self._seats.values())

    @property
    def rows(self) -> list[tuple[str, list[SeatInstance]]]:
        groups: dict[str, list[SeatInstance]] = {}
        for seat in self._seats.values():
            groups.setdefault(seat.row_name, []).append(seat)
        return [(name, sorted(groups[name], key=lambda s: s.seat_number)) for name in sorted(groups)]

    @property
    def selected(self) -> list[SeatInstance]:
        return [self._seats[seat_id] for seat_id in self._selected]

    @property
    def total_amount(self) -> Decimal:
        return sum((self.price_of(seat) for seat in self.selected), Decimal("0"))

    def price_of(self, seat: SeatInstance) -> Decimal:
        return self.base_price * seat.price_multiplier

    def is_selected(self, seat: Union[SeatInstance, Hashable]) -> bool:
        return self._resolve(seat).id in self._selected

    def seat_state(self, seat: Union[SeatInstance, Hashable]) -> SeatState:
        seat = self._resolve(seat)
        if seat.is_booked:
            return SeatState.BOOKED
        if not seat.active:
            return SeatState.INACTIVE
        if seat.id in self._selected:
            return SeatState.SELECTED
        return _TYPE_STATES.get(seat.seat_type, SeatState.STANDARD)

    def toggle_seat(self, seat: Union[SeatInstance, Hashable]) -> ToggleResult:
        seat = self._resolve(seat)
        if not seat.selectable:
            logger.debug("seat %s is not selectable", seat.seat_label)
            return self._result(SelectionOutcome.BLOCKED)

        if seat.id in self._selected:
            self._selected.remove(seat.id)
            outcome = SelectionOutcome.DESELECTED
        elif len(self._selected) >= self.max_seats:
            logger.info("selection cap of %d reached, %s not added", self.max_seats, seat.seat_label)
            return self._result(SelectionOutcome.CAPACITY_EXCEEDED)
        else:
            self._selected.append(seat.id)
            outcome = SelectionOutcome.SELECTED

        self._notify()
        return self._result(outcome)

    def clear(self) -> None:
        if not self._selected:
            return
        self._selected.clear()
        self._notify()

    def _resolve(self, seat: Union[SeatInstance, Hashable]) -> SeatInstance:
        seat_id = seat.id if isinstance(seat, SeatInstance) else seat
        try:
            return self._seats[seat_id]
        except KeyError:
            raise KeyError(f"unknown seat: {seat_id!r}") from None

    def _notify(self) -> None:
        if self.on_selection_change is not None:
            self.on_selection_change(self.selected)

    def _result(self, outcome: SelectionOutcome) -> ToggleResult:
        return ToggleResult(outcome=outcome, selected=tuple(self.selected), total_amount=self.total_amount)
