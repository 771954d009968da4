"""Fixed column layouts of the mapping workbook and the catalog template."""

# Module responsibilities:
# - Declare the ordered column schema shared by the workbook writer and reader.
# - Resolve header rows to column positions, tolerant of cosmetic header variants.

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence


@dataclass(frozen=True)
class ColumnSpec:
    """A workbook column: canonical key, printed header, and accepted aliases."""

    key: str
    header: str
    aliases: tuple[str, ...] = ()
    width: Optional[float] = None

    def display_width(self) -> float:
        if self.width is not None:
            return self.width
        return max(18, len(self.header) + 2)

    def names(self) -> tuple[str, ...]:
        return (self.header, self.key.replace("_", " "), *self.aliases)


MAPPING_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("source_name", "שם שדה צד ספק", ("supplier field name",), width=33),
    ColumnSpec("essence", "מהות השדה", ("field essence",)),
    ColumnSpec("source_type", "סוג השדה צד ספק", ("supplier field type",)),
    ColumnSpec("dgh_note", 'דג"ח', ("dgh note", "dgh"), width=45),
    ColumnSpec("target_name", "שם השדה בתקן", ("standard field name",), width=50),
    ColumnSpec("target_type", "סוג השדה בתקן", ("standard field type",)),
    ColumnSpec("target_rules", "חוקי השדה בתקן", ("standard field rules",)),
    ColumnSpec("always_returns", "האם יחזור תמיד", ("always returns",)),
    ColumnSpec("mapping_details", "פירוט הפרסר", ("parser details",)),
    ColumnSpec("outputs", "המיפוי יתבצע בOUTPUTS הבאים:", ("output targets", "outputs")),
    ColumnSpec("notes", "הערות", ()),
    ColumnSpec("stream_from_supplier", "האם צריך להזרים מהספק?", ("should stream from supplier",)),
)

TEMPLATE_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("name", "שם שדה", ("field name",)),
    ColumnSpec("field_type", "סוג שדה", ("field type",)),
    ColumnSpec("essence", "מהות השדה", ("field essence",)),
    ColumnSpec("dgh_note", 'דג"ח', ("dgh note", "dgh")),
    ColumnSpec("always_returns", "האם יחזור תמיד?", ("always returns",)),
    ColumnSpec("notes", "הערות", ()),
)

# Bidi controls: LRM, RLM, ALM, embeddings/overrides and isolates.
_DIRECTIONAL_MARKS = re.compile("[\u200e\u200f\u061c\u202a-\u202e\u2066-\u2069\ufeff]")
_QUOTE_VARIANTS = str.maketrans(
    {
        "\u05f4": '"',  # Hebrew gershayim
        "\u201c": '"',
        "\u201d": '"',
        "\u201e": '"',
        "\u201f": '"',
        "\u2033": '"',
        "\uff02": '"',
        "\u05f3": "'",  # Hebrew geresh
        "\u2018": "'",
        "\u2019": "'",
        "\u2032": "'",
    }
)
_WHITESPACE = re.compile(r"\s+")


def normalize_header(label: object) -> str:
    """Fold a header cell into a comparison key.

    Applies NFKC, strips directional marks, maps quotation-mark variants to
    ASCII quotes, collapses whitespace and casefolds.
    """

    if label is None:
        return ""
    text = unicodedata.normalize("NFKC", str(label))
    text = _DIRECTIONAL_MARKS.sub("", text)
    text = text.translate(_QUOTE_VARIANTS).replace("''", '"')
    text = _WHITESPACE.sub(" ", text).strip()
    return text.casefold()


def resolve_columns(
    header_cells: Sequence[object],
    columns: Iterable[ColumnSpec] = MAPPING_COLUMNS,
) -> Dict[str, Optional[int]]:
    """Map each column key to its zero-based position in ``header_cells``.

    Columns whose header is absent map to ``None``. The first matching header
    wins when a label is repeated.
    """

    positions: Dict[str, int] = {}
    for idx, cell in enumerate(header_cells):
        normalized = normalize_header(cell)
        if normalized and normalized not in positions:
            positions[normalized] = idx

    resolved: Dict[str, Optional[int]] = {}
    for spec in columns:
        resolved[spec.key] = None
        for name in spec.names():
            idx = positions.get(normalize_header(name))
            if idx is not None:
                resolved[spec.key] = idx
                break
    return resolved


def missing_columns(resolved: Mapping[str, Optional[int]]) -> list[str]:
    return [key for key, idx in resolved.items() if idx is None]
