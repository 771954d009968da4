"""Status colours persisted as cell background fills."""

# Module responsibilities:
# - Own the closed set of field status colours and their canonical ARGB codes.
# - Translate cell fills back into status colours so callers never compare raw codes.

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class StatusColor(str, Enum):
    """Status tint attached to a source field."""

    DEFAULT = "default"
    GREEN = "green"  # implicit "mapped" marker
    RED = "red"
    YELLOW = "yellow"


# Colours a user may assign by hand; green is derived from the mapping state.
MANUAL_COLORS: tuple[StatusColor, ...] = (StatusColor.DEFAULT, StatusColor.RED, StatusColor.YELLOW)

# Tints that are written across a whole data row.
ROW_TINTS: tuple[StatusColor, ...] = (StatusColor.YELLOW, StatusColor.RED)

YELLOW_HEX = "#E6A700"
RED_HEX = "#F44336"
MAPPED_GREEN_HEX = "#90EE90"
WHITE_HEX = "#FFFFFF"


def hex_to_argb(hex_color: str) -> str:
    """Convert ``#RRGGBB`` into the opaque ``FFRRGGBB`` form used by workbook fills."""

    normalized = hex_color.strip().lstrip("#").upper()
    if len(normalized) != 6:
        raise ValueError(f"Expected a #RRGGBB colour, got {hex_color!r}")
    return f"FF{normalized}"


_CODES: dict[StatusColor, str] = {
    StatusColor.DEFAULT: hex_to_argb(WHITE_HEX),
    StatusColor.GREEN: hex_to_argb(MAPPED_GREEN_HEX),
    StatusColor.RED: hex_to_argb(RED_HEX),
    StatusColor.YELLOW: hex_to_argb(YELLOW_HEX),
}
_BY_CODE: dict[str, StatusColor] = {code: color for color, code in _CODES.items()}


def to_code(color: StatusColor | str) -> str:
    """Return the canonical ARGB code for ``color``."""

    return _CODES[StatusColor(color)]


def _canonical(code: str) -> Optional[str]:
    normalized = code.strip().lstrip("#").upper()
    if len(normalized) == 6:
        return f"FF{normalized}"
    if len(normalized) == 8:
        return normalized
    return None


def from_cell_fill(code: Optional[str]) -> Optional[StatusColor]:
    """Resolve a fill code (``RRGGBB``/``AARRGGBB``, optional ``#``) to a status colour.

    Unrecognized or missing codes resolve to ``None``; callers treat that as
    :attr:`StatusColor.DEFAULT`.
    """

    if not code or not isinstance(code, str):
        return None
    canonical = _canonical(code)
    if canonical is None:
        return None
    return _BY_CODE.get(canonical)


def fill_color_of(cell: Any) -> Optional[str]:
    """Return the solid RGB fill code of an openpyxl cell, or ``None``.

    Theme and indexed colours carry no literal RGB value and are ignored.
    """

    fill = getattr(cell, "fill", None)
    if fill is None or getattr(fill, "fill_type", None) is None:
        return None
    color = getattr(fill, "fgColor", None)
    if color is None or getattr(color, "type", None) != "rgb":
        return None
    rgb = color.rgb
    return rgb if isinstance(rgb, str) else None


def row_tint(cells: Any) -> Optional[StatusColor]:
    """Return the yellow/red tint found on any of ``cells``; yellow wins over red."""

    found: set[StatusColor] = set()
    for cell in cells:
        color = from_cell_fill(fill_color_of(cell))
        if color in ROW_TINTS:
            found.add(color)
    for tint in ROW_TINTS:
        if tint in found:
            return tint
    return None
