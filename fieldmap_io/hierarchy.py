"""Conversion between dot-separated target paths and arrow hierarchy labels."""

from __future__ import annotations

from typing import NamedTuple, Optional, Protocol

ARROW = "->"
ARROW_JOIN = " -> "


class ParsedLabel(NamedTuple):
    """Result of :func:`from_label`."""

    leaf: str
    dot_path: str


class _TargetLike(Protocol):
    id: str
    name: str
    path: Optional[str]


def to_label(dot_path: str) -> str:
    """Render ``a.b.c`` as ``a -> b -> c``."""

    return ARROW_JOIN.join(dot_path.split("."))


def from_label(label: str) -> ParsedLabel:
    """Parse a hierarchy label back into its leaf name and dot-path.

    Labels without an arrow are plain names: the whole label is the leaf and
    the dot-path is empty.
    """

    text = (label or "").strip()
    if ARROW not in text:
        return ParsedLabel(leaf=text, dot_path="")
    parts = [part.strip() for part in text.split(ARROW)]
    parts = [part for part in parts if part]
    if not parts:
        return ParsedLabel(leaf=text, dot_path="")
    return ParsedLabel(leaf=parts[-1], dot_path=".".join(parts))


def leaf_name(dot_path: str) -> str:
    return dot_path.rsplit(".", 1)[-1]


def label_for_target(node: Optional[_TargetLike]) -> str:
    """Return the full hierarchy label of a target node.

    An explicit ``path`` wins. Otherwise node ids of the form ``a.b.c:42`` encode
    the hierarchy before the colon; ids without a dotted part (or the ``root``
    id) fall back to the node name.
    """

    if node is None:
        return ""
    path = (node.path or "").strip()
    if path:
        return to_label(path)
    name = node.name or ""
    raw_id = (node.id or "").strip()
    if not raw_id:
        return name
    path_part = raw_id.split(":", 1)[0]
    if not path_part or path_part == "root" or "." not in path_part:
        return name
    return to_label(path_part)
