"""Presentation settings for generated workbooks."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .colors import hex_to_argb


class WorkbookSettings(BaseModel):
    """Styling and layout knobs shared by the mapping and template workbooks."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    font_name: str = "Segoe UI"
    font_size: int = Field(default=14, gt=0)
    header_text_color: str = "#FFFFFF"
    header_fill_color: str = "#2A6BFF"
    header_row_height: float = Field(default=50, gt=0)
    blank_rows: int = Field(default=50, ge=0)
    right_to_left: bool = True
    mapping_sheet: str = "mapping"
    template_sheet: str = "Template"
    meta_sheet: str = "__meta"
    meta_key: str = "schemaKey"
    meta_sheet_state: Literal["hidden", "veryHidden"] = "veryHidden"

    @field_validator("header_text_color", "header_fill_color")
    @classmethod
    def _check_hex(cls, value: str) -> str:
        hex_to_argb(value)
        return value

    @property
    def header_text_argb(self) -> str:
        return hex_to_argb(self.header_text_color)

    @property
    def header_fill_argb(self) -> str:
        return hex_to_argb(self.header_fill_color)
