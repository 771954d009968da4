"""Configuration helpers for FieldMap runtime files.

Loads the workbook presentation settings from YAML. The bundled
``workbook.yaml`` is used unless a path is given or ``FIELDMAP_CONFIG`` points
elsewhere.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from fieldmap.core.errors import ConfigError
from fieldmap_io.settings import WorkbookSettings

CONFIG_DIR = Path(__file__).resolve().parent
DEFAULT_SETTINGS_PATH = CONFIG_DIR / "workbook.yaml"
CONFIG_ENV = "FIELDMAP_CONFIG"


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Settings file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Settings file is not valid YAML: {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Settings file must contain a mapping")
    return data


def load_settings(path: str | Path | None = None) -> WorkbookSettings:
    """Load :class:`WorkbookSettings` from YAML.

    Args:
        path: Explicit settings file. Falls back to ``$FIELDMAP_CONFIG`` and then
            to the bundled defaults.

    Raises:
        ConfigError: When the file is missing, malformed or fails validation.
    """

    if path is None:
        env_path = os.getenv(CONFIG_ENV)
        if env_path:
            path = env_path
        elif not DEFAULT_SETTINGS_PATH.exists():
            return WorkbookSettings()
        else:
            path = DEFAULT_SETTINGS_PATH

    data = _load_yaml(Path(path))
    section = data.get("workbook", {})
    if not isinstance(section, dict):
        raise ConfigError("'workbook' section must be a mapping")
    try:
        return WorkbookSettings.model_validate(section)
    except ValidationError as exc:
        raise ConfigError(f"Invalid workbook settings in {path}: {exc}") from exc


__all__ = ["CONFIG_ENV", "DEFAULT_SETTINGS_PATH", "load_settings"]
