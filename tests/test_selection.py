import unittest
from decimal import Decimal

from seat_layout.errors import ValidationError
from seat_layout.layout import SeatType
from seat_layout.selection import SeatInstance, SeatSelectionMap, SeatState, SelectionOutcome


def seat(seat_id, row="A", number=1, *, seat_type=SeatType.STANDARD, multiplier="1", active=True, booked=False):
    return SeatInstance(
        id=seat_id,
        row_name=row,
        seat_number=number,
        seat_label=f"{row}{number}",
        seat_type=seat_type,
        price_multiplier=multiplier,
        active=active,
        is_booked=booked,
    )


class TestSelectionCap(unittest.TestCase):
    def test_cap_then_deselect(self):
        seats = [seat(i, number=i) for i in range(1, 6)]
        m = SeatSelectionMap(seats, 100000, max_seats=3)
        for s in seats[:3]:
            self.assertEqual(m.toggle_seat(s).outcome, SelectionOutcome.SELECTED)

        result = m.toggle_seat(seats[3])
        self.assertEqual(result.outcome, SelectionOutcome.CAPACITY_EXCEEDED)
        self.assertEqual(len(m.selected), 3)
        self.assertEqual(len(result.selected), 3)

        self.assertEqual(m.toggle_seat(seats[0]).outcome, SelectionOutcome.DESELECTED)
        self.assertEqual(m.toggle_seat(seats[3]).outcome, SelectionOutcome.SELECTED)
        self.assertEqual([s.id for s in m.selected], [2, 3, 4])

    def test_default_cap_is_eight(self):
        seats = [seat(i, number=i) for i in range(1, 10)]
        m = SeatSelectionMap(seats, 1)
        outcomes = [m.toggle_seat(s).outcome for s in seats]
        self.assertEqual(outcomes[:8], [SelectionOutcome.SELECTED] * 8)
        self.assertEqual(outcomes[8], SelectionOutcome.CAPACITY_EXCEEDED)

    def test_rejects_bad_cap(self):
        with self.assertRaises(ValidationError):
            SeatSelectionMap([], 1, max_seats=0)


class TestBlockedSeats(unittest.TestCase):
    def test_booked_seat_never_selected(self):
        booked = seat(1, booked=True)
        m = SeatSelectionMap([booked, seat(2, number=2)], 50)
        for _ in range(3):
            result = m.toggle_seat(booked)
            self.assertEqual(result.outcome, SelectionOutcome.BLOCKED)
        self.assertFalse(m.is_selected(booked))
        self.assertEqual(m.selected, [])

    def test_inactive_seat_blocked(self):
        gap = seat(1, active=False)
        m = SeatSelectionMap([gap], 50)
        self.assertEqual(m.toggle_seat(gap).outcome, SelectionOutcome.BLOCKED)
        self.assertEqual(m.selected, [])

    def test_blocked_check_comes_before_cap(self):
        seats = [seat(1), seat(2, number=2, booked=True)]
        m = SeatSelectionMap(seats, 50, max_seats=1)
        m.toggle_seat(1)
        self.assertEqual(m.toggle_seat(2).outcome, SelectionOutcome.BLOCKED)

    def test_unknown_seat(self):
        m = SeatSelectionMap([seat(1)], 50)
        with self.assertRaises(KeyError):
            m.toggle_seat(99)


class TestTotals(unittest.TestCase):
    def test_total_amount(self):
        seats = [seat(1, multiplier=1.0), seat(2, number=2, multiplier=1.2), seat(3, number=3, multiplier=1.5)]
        m = SeatSelectionMap(seats, 100000)
        for s in seats:
            m.toggle_seat(s)
        self.assertEqual(m.total_amount, Decimal("370000"))

    def test_total_tracks_deselection(self):
        seats = [seat(1, multiplier="1.2"), seat(2, number=2, multiplier="2")]
        m = SeatSelectionMap(seats, "75000")
        m.toggle_seat(1)
        result = m.toggle_seat(2)
        self.assertEqual(result.total_amount, Decimal("240000"))
        result = m.toggle_seat(1)
        self.assertEqual(result.total_amount, Decimal("150000"))

    def test_price_of(self):
        m = SeatSelectionMap([seat(1, multiplier="1.5")], 90000)
        self.assertEqual(m.price_of(m.seats[0]), Decimal("135000"))

    def test_rejects_non_positive_multiplier(self):
        with self.assertRaises(ValidationError):
            seat(1, multiplier=0)


class TestCallback(unittest.TestCase):
    def test_called_on_every_change_with_full_list(self):
        calls = []
        seats = [seat(1), seat(2, number=2), seat(3, number=3, booked=True)]
        m = SeatSelectionMap(seats, 10, max_seats=1, on_selection_change=calls.append)

        m.toggle_seat(1)
        m.toggle_seat(2)  # capacity
        m.toggle_seat(3)  # booked
        m.toggle_seat(1)
        self.assertEqual([[s.id for s in c] for c in calls], [[1], []])

    def test_clear(self):
        calls = []
        m = SeatSelectionMap([seat(1), seat(2, number=2)], 10, on_selection_change=calls.append)
        m.clear()
        self.assertEqual(calls, [])
        m.toggle_seat(1)
        m.toggle_seat(2)
        m.clear()
        self.assertEqual(m.selected, [])
        self.assertEqual(calls[-1], [])
        self.assertEqual(m.total_amount, Decimal("0"))


class TestGroupingAndState(unittest.TestCase):
    def test_rows_sorted(self):
        seats = [seat("b1", "B", 1), seat("a2", "A", 2), seat("a1", "A", 1)]
        m = SeatSelectionMap(seats, 1)
        rows = [(name, [s.seat_number for s in group]) for name, group in m.rows]
        self.assertEqual(rows, [("A", [1, 2]), ("B", [1])])

    def test_state_precedence(self):
        vip_booked = seat(1, seat_type=SeatType.VIP, booked=True)
        vip_inactive = seat(2, number=2, seat_type=SeatType.VIP, active=False)
        couple = seat(3, number=3, seat_type=SeatType.COUPLE)
        disabled = seat(4, number=4, seat_type=SeatType.DISABLED)
        plain = seat(5, number=5)
        m = SeatSelectionMap([vip_booked, vip_inactive, couple, disabled, plain], 1)

        self.assertEqual(m.seat_state(vip_booked), SeatState.BOOKED)
        self.assertEqual(m.seat_state(vip_inactive), SeatState.INACTIVE)
        self.assertEqual(m.seat_state(couple), SeatState.COUPLE)
        self.assertEqual(m.seat_state(disabled), SeatState.DISABLED)
        self.assertEqual(m.seat_state(plain), SeatState.STANDARD)
        m.toggle_seat(couple)
        self.assertEqual(m.seat_state(couple), SeatState.SELECTED)

    def test_duplicate_ids_rejected(self):
        with self.assertRaises(ValidationError):
            SeatSelectionMap([seat(1), seat(1, number=2)], 1)


class TestSeatInstanceFromDict(unittest.TestCase):
    def test_camel_case_wire_format(self):
        s = SeatInstance.from_dict(
            {
                "id": 12,
                "rowName": "C",
                "seatNumber": 4,
                "seatLabel": "C4",
                "seatType": "VIP",
                "priceMultiplier": "1.20",
                "active": True,
                "isBooked": True,
            }
        )
        self.assertEqual((s.id, s.row_name, s.seat_number, s.seat_label), (12, "C", 4, "C4"))
        self.assertEqual(s.seat_type, SeatType.VIP)
        self.assertEqual(s.price_multiplier, Decimal("1.2"))
        self.assertTrue(s.is_booked)
        self.assertEqual(SeatInstance.from_dict(s.to_dict()), s)

    def test_defaults(self):
        s = SeatInstance.from_dict({"id": "x", "row_name": "A", "seat_number": 3})
        self.assertEqual(s.seat_label, "A3")
        self.assertEqual(s.seat_type, SeatType.STANDARD)
        self.assertTrue(s.active)
        self.assertFalse(s.is_booked)

    def test_invalid(self):
        with self.assertRaises(ValidationError):
            SeatInstance.from_dict({"id": 1, "rowName": "A"})
        with self.assertRaises(ValidationError):
            SeatInstance.from_dict({"id": 1, "rowName": "A", "seatNumber": 1, "seatType": "BALCONY"})

    def test_flags_must_be_booleans(self):
        base = {"id": 1, "rowName": "A", "seatNumber": 1}
        with self.assertRaises(ValidationError):
            SeatInstance.from_dict({**base, "isBooked": "false"})
        with self.assertRaises(ValidationError):
            SeatInstance.from_dict({**base, "active": 0})
        self.assertFalse(SeatInstance.from_dict({**base, "active": False}).selectable)

    def test_non_object_rejected(self):
        for data in (["A", 1], "A1", None):
            with self.assertRaises(ValidationError):
                SeatInstance.from_dict(data)


if __name__ == "__main__":
    unittest.main()
