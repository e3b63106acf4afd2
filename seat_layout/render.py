from __future__ import annotations

from .layout import SeatLayout, SeatType, row_label, seat_numbers
from .selection import SeatSelectionMap, SeatState


TYPE_MARKS = {
    SeatType.STANDARD: "",
    SeatType.VIP: "V",
    SeatType.COUPLE: "C",
    SeatType.DISABLED: "D",
}

STATE_MARKS = {
    SeatState.BOOKED: "x",
    SeatState.INACTIVE: "-",
    SeatState.SELECTED: "*",
    SeatState.VIP: "V",
    SeatState.COUPLE: "C",
    SeatState.DISABLED: "D",
    SeatState.STANDARD: "",
}


def _cell(text: str, width: int) -> str:
    if len(text) > width:
        text = text[: max(0, width - 1)] + "…"
    return text.center(width)


def render_layout(layout: SeatLayout, *, cell_width: int = 5) -> str:
    """Editor view: seat labels with a type mark, '.' for aisles and gaps."""
    cell_width = max(3, int(cell_width))
    numbers = seat_numbers(layout)
    label_width = len(row_label(layout.rows - 1)) + 1

    header = " " * label_width + " ".join(f"{c}".center(cell_width) for c in range(layout.cols))
    lines = [header]
    for r in range(layout.rows):
        name = row_label(r)
        cells = []
        for c, cell in enumerate(layout.cells[r]):
            number = numbers[r][c]
            if number is None:
                cells.append(_cell(".", cell_width))
            else:
                cells.append(_cell(f"{name}{number}{TYPE_MARKS[cell.seat_type]}", cell_width))
        lines.append(name.ljust(label_width) + " ".join(cells))
    lines.append("SCREEN".center(len(header)))
    return "\n".join(lines)


def render_seat_map(seat_map: SeatSelectionMap, *, cell_width: int = 4) -> str:
    """Customer view: one line per row, seat numbers with a state mark."""
    cell_width = max(3, int(cell_width))
    groups = seat_map.rows
    label_width = max((len(name) for name, _ in groups), default=1) + 1

    lines = []
    for name, seats in groups:
        cells = [_cell(f"{s.seat_number}{STATE_MARKS[seat_map.seat_state(s)]}", cell_width) for s in seats]
        lines.append(name.ljust(label_width) + " ".join(cells))
    width = max((len(line) for line in lines), default=len("SCREEN"))
    lines.insert(0, "SCREEN".center(width))
    lines.append(f"Selected: {', '.join(s.seat_label for s in seat_map.selected) or '-'}")
    lines.append(f"Total: {seat_map.total_amount}")
    return "\n".join(lines)
