from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from .editor import RoomFields, RoomRecord, RoomType
from .errors import FormatError, RoomNotFoundError, SeatLayoutError
from .layout import SeatLayout, create_empty, deserialize, serialize


logger = logging.getLogger(__name__)


def load_layout(path: str | Path) -> SeatLayout:
    p = Path(path)
    if not p.exists():
        raise SeatLayoutError(f"layout file not found: {p}")
    return deserialize(p.read_text(encoding="utf-8"))


def save_layout(layout: SeatLayout, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(serialize(layout) + "\n", encoding="utf-8")


def maybe_init_layout(
    path: str | Path,
    *,
    rows: Optional[int] = None,
    cols: Optional[int] = None,
    overwrite: bool = False,
) -> SeatLayout:
    p = Path(path)
    if p.exists() and not overwrite:
        return load_layout(p)

    if rows is None or cols is None:
        raise SeatLayoutError("rows and cols are required to initialize a new layout")

    layout = create_empty(rows, cols)
    save_layout(layout, p)
    return layout


class JsonRoomStore:
    """
    File-backed room store: one JSON object of rooms keyed by id.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {"next_id": 1, "rooms": {}}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise FormatError(f"failed to read rooms JSON: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get("rooms"), dict):
            raise FormatError(f"rooms file has unexpected shape: {self.path}")
        return data

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")

    def load_room(self, room_id: int) -> RoomRecord:
        room = self._read()["rooms"].get(str(room_id))
        if room is None:
            raise RoomNotFoundError(f"room not found: {room_id}")
        try:
            return RoomRecord(
                room_id=int(room_id),
                name=room["name"],
                room_type=RoomType(room["room_type"]),
                rows=int(room["rows"]),
                cols=int(room["cols"]),
                serialized_layout=room.get("seat_layout"),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise FormatError(f"malformed room {room_id} in {self.path}: {e!r}") from e

    def save_room(self, room_id: Optional[int], fields: RoomFields) -> int:
        data = self._read()
        if room_id is None:
            room_id = int(data.get("next_id", 1))
            data["next_id"] = room_id + 1
        elif str(room_id) not in data["rooms"]:
            raise RoomNotFoundError(f"room not found: {room_id}")

        data["rooms"][str(room_id)] = {
            "name": fields.name,
            "room_type": fields.room_type.value,
            "rows": fields.rows,
            "cols": fields.cols,
            "seat_layout": fields.serialized_layout,
        }
        self._write(data)
        logger.debug("wrote room %s to %s", room_id, self.path)
        return room_id
