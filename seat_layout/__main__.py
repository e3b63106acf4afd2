from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path

from .editor import RoomType, SeatGridEditor
from .errors import SeatLayoutError
from .layout import SeatType, is_active, iter_seats
from .log import setup_logging
from .render import render_layout, render_seat_map
from .selection import DEFAULT_MAX_SEATS, SeatInstance, SeatSelectionMap
from .storage import JsonRoomStore, load_layout, maybe_init_layout, save_layout


DEFAULT_FILE = "seat_layout.json"
DEFAULT_ROOMS_FILE = "rooms.json"

logger = logging.getLogger(__name__)


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--file",
        default=DEFAULT_FILE,
        help=f"Path to layout JSON file (default: {DEFAULT_FILE})",
    )


def _editor(path: str) -> SeatGridEditor:
    return SeatGridEditor(load_layout(path))


def cmd_init(args: argparse.Namespace) -> int:
    maybe_init_layout(args.file, rows=args.rows, cols=args.cols, overwrite=args.overwrite)
    print(f"Initialized layout at {args.file} ({args.rows} rows x {args.cols} cols)")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    print(render_layout(load_layout(args.file), cell_width=args.width))
    return 0


def cmd_set_type(args: argparse.Namespace) -> int:
    editor = _editor(args.file)
    if not is_active(editor.layout.cell(args.row, args.col)):
        print(f"R{args.row}C{args.col} is not an active seat; toggle it first")
        return 1
    seat_type = SeatType(args.type) if args.type else None
    editor.set_cell_type(args.row, args.col, seat_type)
    save_layout(editor.layout, args.file)
    cell = editor.layout.cell(args.row, args.col)
    print(f"Set R{args.row}C{args.col} to {cell.seat_type.value}")
    return 0


def cmd_toggle(args: argparse.Namespace) -> int:
    editor = _editor(args.file)
    editor.toggle_active(args.row, args.col)
    save_layout(editor.layout, args.file)
    label = editor.labels[args.row][args.col]
    print(f"R{args.row}C{args.col} is now {'seat ' + label if label else 'an aisle'}")
    return 0


def cmd_resize(args: argparse.Namespace) -> int:
    editor = _editor(args.file)
    editor.change_dimensions(args.rows, args.cols)
    save_layout(editor.layout, args.file)
    print(f"Resized layout to {args.rows} rows x {args.cols} cols")
    return 0


def cmd_export_csv(args: argparse.Namespace) -> int:
    layout = load_layout(args.file)
    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["row_name", "seat_number", "seat_type", "grid_row", "grid_col"])
        for seat in iter_seats(layout):
            w.writerow([seat.row_name, seat.seat_number, seat.seat_type.value, seat.row, seat.col])
    print(f"Exported seats to {out}")
    return 0


def cmd_save_room(args: argparse.Namespace) -> int:
    store = JsonRoomStore(args.rooms)
    if args.room_id is not None:
        editor = SeatGridEditor.open(store, args.room_id)
        editor.layout = load_layout(args.file)
        if args.name:
            editor.name = args.name
        if args.room_type:
            editor.room_type = RoomType(args.room_type)
    else:
        editor = SeatGridEditor(
            load_layout(args.file),
            name=args.name or "",
            room_type=RoomType(args.room_type or RoomType.STANDARD_2D.value),
            store=store,
        )
    room_id = editor.save()
    print(f"Saved room {room_id} ({editor.name}) to {args.rooms}")
    return 0


def cmd_load_room(args: argparse.Namespace) -> int:
    editor = SeatGridEditor.open(JsonRoomStore(args.rooms), args.room_id)
    save_layout(editor.layout, args.file)
    print(f"Loaded room {args.room_id} ({editor.name}) into {args.file}")
    return 0


def _find_seat(seat_map: SeatSelectionMap, token: str) -> SeatInstance:
    for seat in seat_map.seats:
        if seat.seat_label == token or str(seat.id) == token:
            return seat
    raise SeatLayoutError(f"no seat matches {token!r}")


def cmd_select(args: argparse.Namespace) -> int:
    inp = Path(args.seats)
    try:
        raw = json.loads(inp.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise SeatLayoutError(f"failed to read seats JSON: {e}") from e
    if not isinstance(raw, list):
        raise SeatLayoutError("seats JSON must be a list of seat objects")

    seat_map = SeatSelectionMap(
        [SeatInstance.from_dict(item) for item in raw],
        args.base_price,
        max_seats=args.max_seats,
    )
    for token in args.pick or []:
        result = seat_map.toggle_seat(_find_seat(seat_map, token))
        print(f"{token}: {result.outcome.value}")
    print(render_seat_map(seat_map))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="seat_layout", description="Cinema seat layout editor and seat map (CLI).")
    p.add_argument("--log-level", default=None, help="Logging level (default: CINEMA_SEATING_LOG_LEVEL or INFO)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create a new empty layout file")
    _add_common_args(p_init)
    p_init.add_argument("--rows", type=int, required=True)
    p_init.add_argument("--cols", type=int, required=True)
    p_init.add_argument("--overwrite", action="store_true", help="Overwrite existing layout file")
    p_init.set_defaults(func=cmd_init)

    p_show = sub.add_parser("show", help="Print the layout with seat labels")
    _add_common_args(p_show)
    p_show.add_argument("--width", type=int, default=5, help="Cell width for display")
    p_show.set_defaults(func=cmd_show)

    p_type = sub.add_parser("set-type", help="Set or cycle the seat type of a cell")
    _add_common_args(p_type)
    p_type.add_argument("--row", type=int, required=True)
    p_type.add_argument("--col", type=int, required=True)
    p_type.add_argument("--type", choices=[t.value for t in SeatType], help="Seat type (omit to cycle)")
    p_type.set_defaults(func=cmd_set_type)

    p_toggle = sub.add_parser("toggle", help="Toggle a cell between seat and aisle")
    _add_common_args(p_toggle)
    p_toggle.add_argument("--row", type=int, required=True)
    p_toggle.add_argument("--col", type=int, required=True)
    p_toggle.set_defaults(func=cmd_toggle)

    p_resize = sub.add_parser("resize", help="Change grid dimensions (shrinking discards cells)")
    _add_common_args(p_resize)
    p_resize.add_argument("--rows", type=int, required=True)
    p_resize.add_argument("--cols", type=int, required=True)
    p_resize.set_defaults(func=cmd_resize)

    p_export = sub.add_parser("export-csv", help="Export numbered seats to a CSV file")
    _add_common_args(p_export)
    p_export.add_argument("--output", required=True)
    p_export.set_defaults(func=cmd_export_csv)

    p_save = sub.add_parser("save-room", help="Save the layout as a room in a rooms file")
    _add_common_args(p_save)
    p_save.add_argument("--rooms", default=DEFAULT_ROOMS_FILE)
    p_save.add_argument("--room-id", type=int, help="Existing room to update (omit to create)")
    p_save.add_argument("--name", help="Room name (required when creating)")
    p_save.add_argument("--room-type", choices=[t.value for t in RoomType])
    p_save.set_defaults(func=cmd_save_room)

    p_load = sub.add_parser("load-room", help="Write a stored room's layout to a layout file")
    _add_common_args(p_load)
    p_load.add_argument("--rooms", default=DEFAULT_ROOMS_FILE)
    p_load.add_argument("--room-id", type=int, required=True)
    p_load.set_defaults(func=cmd_load_room)

    p_select = sub.add_parser("select", help="Pick seats from a showtime's seat list")
    p_select.add_argument("--seats", required=True, help="JSON list of seat instances")
    p_select.add_argument("--base-price", required=True)
    p_select.add_argument("--max-seats", type=int, default=DEFAULT_MAX_SEATS)
    p_select.add_argument("--pick", action="append", help="Seat label or id to toggle (repeatable)")
    p_select.set_defaults(func=cmd_select)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    setup_logging(args.log_level)
    try:
        return int(args.func(args))
    except SeatLayoutError as e:
        logger.debug("command %s failed", args.cmd, exc_info=True)
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
