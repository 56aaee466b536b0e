"""Pydantic schemas for the VidGrid HTTP API."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CatalogEntryModel(BaseModel):
    """One directory or video file, addressed by its root-relative path."""

    name: str = Field(..., description="Entry name as stored on disk.")
    type: Literal["directory", "file"] = Field(..., description="Entry kind.")
    path: str = Field(..., description="Root-relative path using '/' separators.")


class UIConfig(BaseModel):
    """Grid defaults persisted for the web UI. Unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    defaultRows: int = Field(2, ge=1, description="Initial grid rows.")
    defaultCols: int = Field(2, ge=1, description="Initial grid columns.")
    defaultMuted: bool = Field(True, description="Start players muted.")
    singleAudio: bool = Field(True, description="Only one cell may play sound at a time.")


class SaveConfigResponse(BaseModel):
    success: bool = Field(True, description="True when the configuration was written.")


__all__ = ["CatalogEntryModel", "SaveConfigResponse", "UIConfig"]
