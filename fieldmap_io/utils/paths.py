"""Filesystem helpers for the FieldMap workspace structure."""

# Module responsibilities:
# - Define the default ~/FieldMap directory layout and create folders on demand.
# - Offer small helpers to resolve output paths without overwriting inputs accidentally.

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

DEFAULT_BASE = Path.home() / "FieldMap"


def ensure_default_structure(base: Optional[Path] = None) -> Dict[str, Path]:
    """Ensure the default FieldMap directory structure exists.

    Args:
        base: Optional override for the FieldMap base directory.

    Returns:
        Mapping with keys ``base``, ``out``, ``logs``.
    """

    target_base = base or DEFAULT_BASE
    paths = {
        "base": target_base,
        "out": target_base / "out",
        "logs": target_base / "logs",
    }
    for path in paths.values():
        path.mkdir(parents=True, exist_ok=True)
    return paths


def prepare_output_path(filename: str, base: Optional[Path] = None) -> Path:
    """Prepare an output path inside the FieldMap out directory.

    Args:
        filename: Desired file name.
        base: Optional override for the FieldMap base directory.

    Returns:
        Final path under the ``out`` directory.
    """

    paths = ensure_default_structure(base)
    return paths["out"] / filename
