from __future__ import annotations

"""CSS build configuration
-------------------------
The ordered plugin list for the stylesheet build, optionally read from
`css.config.yaml`:

    plugins:
      - import-inliner
      - vendor-prefixer
"""

from pathlib import Path
from typing import Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

IMPORT_INLINER = "import-inliner"
VENDOR_PREFIXER = "vendor-prefixer"

# Inlining runs first so the prefixer sees the merged stylesheet.
PLUGIN_ORDER: Tuple[str, ...] = (IMPORT_INLINER, VENDOR_PREFIXER)

# Names the PostCSS ecosystem uses for the same plugins.
PLUGIN_ALIASES = {
    "postcss-import": IMPORT_INLINER,
    "autoprefixer": VENDOR_PREFIXER,
}


class BuildConfigError(ValueError):
    """The build configuration is missing, malformed or lists plugins wrongly."""


class BuildConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    plugins: Tuple[str, ...] = PLUGIN_ORDER

    @field_validator("plugins", mode="before")
    @classmethod
    def _normalize(cls, v):
        if isinstance(v, str) or not isinstance(v, (list, tuple)):
            raise ValueError("plugins must be a list of plugin names")
        return tuple(PLUGIN_ALIASES.get(str(name).strip(), str(name).strip()) for name in v)

    @field_validator("plugins")
    @classmethod
    def _known_and_ordered(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        unknown = [name for name in v if name not in PLUGIN_ORDER]
        if unknown:
            raise ValueError(f"unknown plugin(s): {', '.join(unknown)}")
        if v != PLUGIN_ORDER:
            raise ValueError(f"plugins must be exactly {list(PLUGIN_ORDER)} in this order, got {list(v)}")
        return v


DEFAULT_BUILD_CONFIG = BuildConfig()


def load_build_config(path: Optional[Path | str] = None) -> BuildConfig:
    """Read a YAML build config; a missing file means the default config."""
    if path is None:
        return DEFAULT_BUILD_CONFIG
    cfg_path = Path(path)
    if not cfg_path.exists():
        return DEFAULT_BUILD_CONFIG
    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as ye:
        raise BuildConfigError(f"YAML parse error in {cfg_path}: {ye}") from ye
    if data is None:
        return DEFAULT_BUILD_CONFIG
    if not isinstance(data, dict):
        raise BuildConfigError(f"{cfg_path} must define a mapping/object at the top level.")
    try:
        return BuildConfig.model_validate(data)
    except ValidationError as ve:
        msgs = "; ".join(e.get("msg", "invalid value") for e in ve.errors())
        raise BuildConfigError(f"Invalid build config '{cfg_path}': {msgs}") from ve
