from __future__ import annotations


class SeatLayoutError(Exception):
    pass


class FormatError(SeatLayoutError):
    """Serialized layout text that cannot be turned back into a layout."""


class ValidationError(SeatLayoutError):
    pass


class RoomSaveError(SeatLayoutError):
    """The room store rejected a save; the editor's working layout is untouched."""


class RoomNotFoundError(SeatLayoutError, KeyError):
    def __str__(self) -> str:
        return Exception.__str__(self)
