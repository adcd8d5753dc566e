"""
Command catalog models.

A ``CommandEntry`` is one row of the launcher catalog: an installed
application, a System Settings panel, a built-in system action, or an
extension command registered by an outer layer.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CommandCategory(str, Enum):
    APPLICATION = "application"
    SETTINGS_PANEL = "settings-panel"
    SYSTEM = "system"
    EXTENSION = "extension"


_ID_PREFIX = {
    CommandCategory.APPLICATION: "app",
    CommandCategory.SETTINGS_PANEL: "settings",
    CommandCategory.SYSTEM: "system",
    CommandCategory.EXTENSION: "extension",
}

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def make_command_id(category: CommandCategory, key: str) -> str:
    """Derive the stable id for ``key`` within ``category``.

    ``make_command_id(CommandCategory.SETTINGS_PANEL, "Date & Time")``
    → ``"settings-date-time"``
    """
    slug = _NON_SLUG.sub("-", key.lower()).strip("-")
    return f"{_ID_PREFIX[CommandCategory(category)]}-{slug}"


class CommandEntry(BaseModel):
    """Immutable catalog entry; rebuilt from scratch on every discovery scan."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable id, see make_command_id()")
    title: str = Field(..., min_length=1)
    keywords: List[str] = Field(default_factory=list)
    icon: Optional[str] = Field(default=None, description="data:image/png;base64 URL")
    category: CommandCategory
    target: Optional[str] = Field(
        default=None,
        description="Bundle path for applications, bundle identifier for settings panels",
    )

    @model_validator(mode="after")
    def _check_target(self) -> "CommandEntry":
        needs_target = (CommandCategory.APPLICATION, CommandCategory.SETTINGS_PANEL)
        if self.category in needs_target and not self.target:
            raise ValueError(f"{self.category.value} commands require a target")
        if self.category == CommandCategory.SYSTEM and self.target is not None:
            raise ValueError("system commands never carry a target")
        return self


class ExecuteCommandResponse(BaseModel):
    command_id: str
    success: bool


class InvalidateCacheResponse(BaseModel):
    success: bool = True
