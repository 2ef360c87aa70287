# snapprep/utils/config.py
from __future__ import annotations

import functools
from enum import Enum
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------- Enums ----------

class BrowserType(str, Enum):
    chromium = "chromium"
    firefox = "firefox"
    webkit = "webkit"


class ScreenshotFormat(str, Enum):
    png = "png"
    jpeg = "jpeg"


class PreparationMode(str, Enum):
    """How much of the pre-capture preparation to run."""
    full = "full"
    color_scheme_only = "color_scheme_only"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _split_csv(raw: str) -> List[str]:
    return [p.strip() for p in raw.split(",") if p.strip()]


# ---------- Settings ----------

class Settings(BaseSettings):
    """
    Central configuration for snapshot-prep.

    Values load in this order of precedence:
      1) Environment variables
      2) .env file in project root
      3) Defaults below
    """

    # ---- Browser configuration ----
    HEADLESS: bool = Field(default=True, description="Run the browser headless")
    BROWSER_TYPE: BrowserType = Field(default=BrowserType.chromium, description="Playwright browser")
    SLOW_MO: int = Field(default=0, ge=0, description="Slow down actions (ms) for debugging")
    PAGE_LOAD_TIMEOUT: int = Field(default=60000, ge=1000)

    # ---- Page preparation ----
    PREPARATION_MODE: PreparationMode = Field(default=PreparationMode.full)

    # ---- Capture settings ----
    SCENARIOS_FILE: Path = Field(default=Path("./scenarios.yaml"))
    OUTPUT_DIR: Path = Field(default=Path("./snapshots"))
    SCREENSHOT_FORMAT: ScreenshotFormat = Field(default=ScreenshotFormat.png)
    SCREENSHOT_QUALITY: int = Field(default=90, ge=1, le=100)
    FULL_PAGE_SCREENSHOT: bool = Field(default=True)

    # ---- CSS build ----
    CSS_CONFIG_FILE: Path = Field(default=Path("./css.config.yaml"))
    CSS_PREFIXES: str = Field(default="-webkit-,-moz-,-ms-", description="Comma-separated vendor prefixes to emit")

    # ---- Logging ----
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE: Path = Field(default=Path("./snapprep.log"))
    COLORIZED_OUTPUT: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("SCENARIOS_FILE", "OUTPUT_DIR", "CSS_CONFIG_FILE", "LOG_FILE", mode="after")
    @classmethod
    def _absolutize(cls, v: Path):
        return v if v.is_absolute() else Path.cwd() / v

    @field_validator("CSS_PREFIXES")
    @classmethod
    def _known_prefixes(cls, v: str):
        unknown = [p for p in _split_csv(v) if p not in ("-webkit-", "-moz-", "-ms-", "-o-")]
        if unknown:
            raise ValueError(f"unknown vendor prefix(es): {', '.join(unknown)}")
        return v

    @property
    def css_prefixes(self) -> List[str]:
        return _split_csv(self.CSS_PREFIXES)

    def ensure_dirs(self) -> None:
        """Create required directories (idempotent)."""
        for p in {self.OUTPUT_DIR, self.LOG_FILE.parent}:
            p.mkdir(parents=True, exist_ok=True)

    # Convenience: Playwright launch options dict
    def playwright_launch_kwargs(self) -> dict:
        return {
            "headless": self.HEADLESS,
            "slow_mo": self.SLOW_MO,
        }


# --------- Public accessor (memoized) ---------

@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache settings once per process.
    Call `get_settings.cache_clear()` if you need to reload after changing env.
    """
    return Settings()

