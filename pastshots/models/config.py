"""Configuration models for pastshots."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pastshots.errors import SetupError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".pastshotsrc"
SUPPORTED_BROWSERS = ("firefox", "chrome", "chromium", "webkit")


class ViewportConfig(BaseModel):
    width: int = Field(default=1024, gt=0)
    height: int = Field(default=768, gt=0)

    @classmethod
    def parse(cls, value: str) -> "ViewportConfig":
        """Parse a ``width,height`` string."""
        parts = [p.strip() for p in value.split(",")]
        if len(parts) != 2:
            raise ValueError(f"Expected <width,height>, got '{value}'")
        return cls(width=int(parts[0]), height=int(parts[1]))

    def as_dict(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}


class CaptureSettings(BaseModel):
    """Resolved, immutable settings consumed by the capturer."""

    model_config = ConfigDict(frozen=True)

    selector: str = ""
    tolerance: float = Field(default=0.0, ge=0)
    create_diff: bool = False
    strict: bool = False
    settle_delay_ms: int = Field(default=200, ge=0)


class PastshotsConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Output
    output: str = "pastshots"

    # Embedded server
    serve: Optional[str] = None
    port: int = Field(default=8081, ge=0, le=65535)

    # Browser
    browser: str = "firefox"
    headless: bool = True
    viewport_size: ViewportConfig = Field(default_factory=ViewportConfig, alias="viewportSize")

    # Capture
    selector: str = ""
    tolerance: float = Field(default=0.0, ge=0)
    create_diff: bool = Field(default=False, alias="createDiff")
    strict: bool = False
    settle_delay_ms: int = Field(default=200, ge=0, alias="settleDelay")

    @field_validator("browser")
    @classmethod
    def check_browser(cls, v: str) -> str:
        v = v.lower()
        if v not in SUPPORTED_BROWSERS:
            raise ValueError(f"Unknown browser type: {v}")
        return v

    @field_validator("viewport_size", mode="before")
    @classmethod
    def parse_viewport_string(cls, v: Any) -> Any:
        if isinstance(v, str):
            return ViewportConfig.parse(v)
        return v

    @classmethod
    def load(cls, path: str | Path = CONFIG_FILE_NAME) -> "PastshotsConfig":
        """Load config from a JSON rc file, falling back to defaults."""
        path = Path(path)
        if not path.exists():
            logger.info("No config file found. Using defaults.")
            return cls()
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return cls.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise SetupError(f"Can not parse {path}: {e}") from e

    def merged(self, overrides: dict[str, Any]) -> "PastshotsConfig":
        """Layer the non-None values of ``overrides`` over this config."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return PastshotsConfig.model_validate(data)
        except ValidationError as e:
            raise SetupError(f"Invalid options: {e}") from e

    def capture_settings(self) -> CaptureSettings:
        return CaptureSettings(
            selector=self.selector,
            tolerance=self.tolerance,
            create_diff=self.create_diff,
            strict=self.strict,
            settle_delay_ms=self.settle_delay_ms,
        )
