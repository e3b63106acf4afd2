import os
import tempfile
import unittest
from decimal import Decimal

from seat_layout.layout import CellSpec, SeatType, create_empty, serialize
from seat_layout.selection import SeatInstance, SeatSelectionMap, SelectionOutcome


def _layout_json() -> str:
    # Row A: A1 VIP, aisle, A2, A3 COUPLE; row B: four standard seats.
    layout = create_empty(2, 4)
    layout = layout.replace_cell(0, 0, CellSpec(SeatType.VIP, True))
    layout = layout.replace_cell(0, 1, CellSpec(SeatType.STANDARD, False))
    layout = layout.replace_cell(0, 3, CellSpec(SeatType.COUPLE, True))
    return serialize(layout)


class TestCinemaSeatingAPI(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        # Point the app at a temporary sqlite DB for tests.
        cls._tmpdir = tempfile.TemporaryDirectory()
        os.environ["CINEMA_SEATING_DATA_DIR"] = cls._tmpdir.name
        # Import after env var set so db uses the temp dir.
        from backend.app.db import init_db
        from backend.app.main import app

        cls.app = app
        init_db()

    @classmethod
    def tearDownClass(cls):
        cls._tmpdir.cleanup()

    def _client(self):
        from fastapi.testclient import TestClient

        return TestClient(self.app)

    def _create_room(self, c, name="Room 1") -> dict:
        r = c.post("/rooms", json={"name": name, "room_type": "IMAX", "seat_layout": _layout_json()})
        self.assertEqual(r.status_code, 200, r.text)
        return r.json()

    def test_health(self):
        c = self._client()
        self.assertEqual(c.get("/health").json(), {"ok": True})

    def test_create_and_load_room(self):
        c = self._client()
        room = self._create_room(c)
        self.assertEqual((room["rows"], room["cols"], room["total_seats"]), (2, 4, 7))

        loaded = c.get(f"/rooms/{room['id']}").json()
        self.assertEqual(loaded["seat_layout"], _layout_json())
        self.assertEqual(loaded["room_type"], "IMAX")

        seats = c.get(f"/rooms/{room['id']}/seats").json()
        row_a = [(s["row_name"], s["seat_number"], s["seat_type"], s["grid_col"]) for s in seats if s["row_name"] == "A"]
        self.assertEqual(row_a, [("A", 1, "VIP", 0), ("A", 2, "STANDARD", 2), ("A", 3, "COUPLE", 3)])

        self.assertEqual(c.get("/rooms/99999").status_code, 404)

    def test_bad_layout_rejected(self):
        c = self._client()
        r = c.post("/rooms", json={"name": "Broken", "seat_layout": '{"rows": 2, "cols": 2}'})
        self.assertEqual(r.status_code, 400)
        r = c.post("/rooms", json={"name": "   ", "seat_layout": _layout_json()})
        self.assertEqual(r.status_code, 422)

    def test_update_room_resyncs_seats(self):
        c = self._client()
        room = self._create_room(c, "Resize me")
        r = c.put(f"/rooms/{room['id']}", json={"name": "Resized", "seat_layout": serialize(create_empty(1, 2))})
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual((r.json()["name"], r.json()["total_seats"]), ("Resized", 2))
        self.assertEqual(len(c.get(f"/rooms/{room['id']}/seats").json()), 2)

        r = c.put("/rooms/99999", json={"name": "Ghost", "seat_layout": _layout_json()})
        self.assertEqual(r.status_code, 404)

    def test_showtime_seats_and_booking(self):
        c = self._client()
        room = self._create_room(c, "Booking room")
        st = c.post("/showtimes", json={"room_id": room["id"], "base_price": "100000"}).json()

        seats = c.get(f"/showtimes/{st['id']}/seats").json()
        self.assertEqual(len(seats), 7)
        first = seats[0]
        self.assertEqual(
            set(first),
            {"id", "rowName", "seatNumber", "seatLabel", "seatType", "priceMultiplier", "active", "isBooked"},
        )
        self.assertEqual((first["seatLabel"], first["seatType"]), ("A1", "VIP"))
        self.assertFalse(first["isBooked"])

        instances = [SeatInstance.from_dict(s) for s in seats]
        seat_map = SeatSelectionMap(instances, st["base_price"])
        by_label = {s.seat_label: s for s in instances}
        for label in ("A1", "A2", "A3"):
            self.assertEqual(seat_map.toggle_seat(by_label[label]).outcome, SelectionOutcome.SELECTED)
        self.assertEqual(seat_map.total_amount, Decimal("370000"))

        ids = [s.id for s in seat_map.selected]
        r = c.post(f"/showtimes/{st['id']}/bookings", json={"seat_ids": ids})
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(float(r.json()["amount"]), 370000.0)

        again = c.post(f"/showtimes/{st['id']}/bookings", json={"seat_ids": [ids[0]]})
        self.assertEqual(again.status_code, 409)

        refreshed = {s["seatLabel"]: s for s in c.get(f"/showtimes/{st['id']}/seats").json()}
        self.assertTrue(refreshed["A1"]["isBooked"])
        self.assertFalse(refreshed["B1"]["isBooked"])

        # Booked seats pin the layout.
        r = c.put(f"/rooms/{room['id']}", json={"name": "Booking room", "seat_layout": _layout_json()})
        self.assertEqual(r.status_code, 409)

    def test_aisle_in_layout_renumbers_later_seats(self):
        c = self._client()
        room = c.post("/rooms", json={"name": "Aisle room", "seat_layout": serialize(create_empty(1, 3))}).json()
        layout = create_empty(1, 3).replace_cell(0, 0, CellSpec(SeatType.STANDARD, False))
        r = c.put(f"/rooms/{room['id']}", json={"name": "Aisle room", "seat_layout": serialize(layout)})
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["total_seats"], 2)

        st = c.post("/showtimes", json={"room_id": room["id"], "base_price": "1"}).json()
        seats = c.get(f"/showtimes/{st['id']}/seats").json()
        self.assertEqual([(s["seatLabel"], s["active"]) for s in seats], [("A1", True), ("A2", True)])
        grid = {s["seat_number"]: s["grid_col"] for s in c.get(f"/rooms/{room['id']}/seats").json()}
        self.assertEqual(grid, {1: 1, 2: 2})

        # Seats are only authored through the layout.
        self.assertIn(c.put(f"/seats/{seats[0]['id']}", json={"active": False}).status_code, (404, 405))

    def test_rate_card(self):
        c = self._client()
        room = self._create_room(c, "Rates room")

        r = c.put("/seat-types/COUPLE", json={"name": "Sweetbox", "price_multiplier": "2.00"})
        self.assertEqual(r.status_code, 200, r.text)
        rates = {t["code"]: t for t in c.get("/seat-types").json()}
        self.assertEqual(rates["COUPLE"]["name"], "Sweetbox")
        self.assertEqual(float(rates["COUPLE"]["price_multiplier"]), 2.0)

        st = c.post("/showtimes", json={"room_id": room["id"], "base_price": "50000"}).json()
        seats = c.get(f"/showtimes/{st['id']}/seats").json()
        couple = next(s for s in seats if s["seatType"] == "COUPLE")
        self.assertEqual(float(couple["priceMultiplier"]), 2.0)
        vip = next(s for s in seats if s["seatType"] == "VIP")
        self.assertEqual(float(vip["priceMultiplier"]), 1.2)

        # Put the default back for other tests.
        c.put("/seat-types/COUPLE", json={"price_multiplier": "1.50"})

    def test_booking_cap_and_unknown_showtime(self):
        c = self._client()
        room = self._create_room(c, "Cap room")
        st = c.post("/showtimes", json={"room_id": room["id"], "base_price": "1"}).json()
        all_ids = [s["id"] for s in c.get(f"/showtimes/{st['id']}/seats").json()]
        big = c.post("/rooms", json={"name": "Big", "seat_layout": serialize(create_empty(3, 4))}).json()
        big_st = c.post("/showtimes", json={"room_id": big["id"], "base_price": "1"}).json()
        big_ids = [s["id"] for s in c.get(f"/showtimes/{big_st['id']}/seats").json()]

        r = c.post(f"/showtimes/{big_st['id']}/bookings", json={"seat_ids": big_ids[:9]})
        self.assertEqual(r.status_code, 400)
        r = c.post(f"/showtimes/{st['id']}/bookings", json={"seat_ids": [big_ids[0]]})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(c.get("/showtimes/99999/seats").status_code, 404)
        self.assertEqual(c.post("/showtimes/99999/bookings", json={"seat_ids": all_ids[:1]}).status_code, 404)

    def test_delete_room(self):
        c = self._client()
        room = self._create_room(c, "To delete")
        st = c.post("/showtimes", json={"room_id": room["id"], "base_price": "1"}).json()
        seat_id = c.get(f"/showtimes/{st['id']}/seats").json()[0]["id"]
        c.post(f"/showtimes/{st['id']}/bookings", json={"seat_ids": [seat_id]})

        self.assertEqual(c.delete(f"/rooms/{room['id']}").json(), {"deleted": True})
        self.assertEqual(c.get(f"/rooms/{room['id']}").status_code, 404)
        self.assertEqual(c.get(f"/showtimes/{st['id']}/seats").status_code, 404)


if __name__ == "__main__":
    unittest.main()
