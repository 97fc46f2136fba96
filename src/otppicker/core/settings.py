"""Picker settings loader."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from otppicker.utils.env import get_int_env, get_list_env


DEFAULT_KEYWORDS = ["verification code", "OTP", "認証コード", "確認コード"]


class PickerSettings(BaseModel):
    """Search hints and engine limits."""

    model_config = ConfigDict(extra="forbid")

    keywords: List[str] = Field(default_factory=lambda: list(DEFAULT_KEYWORDS))
    lookback_minutes: int = Field(default=10, ge=1)
    max_results: int = Field(default=10, ge=1)
    max_body_chars: Optional[int] = Field(default=200_000, ge=1)
    max_depth: int = Field(default=32, ge=20)

    @field_validator("keywords")
    @classmethod
    def _strip_keywords(cls, value: List[str]) -> List[str]:
        return [item.strip() for item in value if item and item.strip()]

    @classmethod
    def from_file(cls, path: Path) -> "PickerSettings":
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid picker settings: {exc}") from exc

    def with_env_overrides(self) -> "PickerSettings":
        """Return a copy updated from ``OTPPICKER_*`` environment variables."""
        update = {}
        keywords = get_list_env("OTPPICKER_KEYWORDS")
        if keywords:
            update["keywords"] = keywords
        lookback = get_int_env("OTPPICKER_LOOKBACK_MINUTES")
        if lookback is not None:
            update["lookback_minutes"] = lookback
        try:
            return self.model_validate(self.model_dump() | update)
        except ValidationError as exc:
            raise ValueError(f"Invalid picker settings: {exc}") from exc

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "PickerSettings":
        settings = cls.from_file(path) if path is not None else cls()
        return settings.with_env_overrides()
