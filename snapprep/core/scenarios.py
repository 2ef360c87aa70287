from __future__ import annotations

"""Scenario schema and loader
-----------------------------
Pydantic models for visual-test scenarios and viewports, and a YAML loader
with ${ENV} substitution and multi-document support.
"""

import os
import re
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from snapprep.utils.config import PreparationMode


class ScenarioFileError(ValueError):
    """A scenario file could not be read or failed validation."""


# ---------- Models ----------


class Viewport(BaseModel):
    label: str
    width: int = Field(..., ge=320, le=7680)
    height: int = Field(..., ge=320, le=4320)


class Scenario(BaseModel):
    label: str = Field(..., description="Human-readable scenario name, used in logs and file names")
    url: str
    selectors: List[str] = Field(default_factory=list, description="Capture these elements instead of the page")
    ready_selector: Optional[str] = None
    delay_ms: int = Field(default=0, ge=0)
    preparation: Optional[PreparationMode] = Field(default=None, description="Override PREPARATION_MODE")

    @field_validator("label")
    @classmethod
    def _label_non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("label cannot be empty")
        return v

    @field_validator("url")
    @classmethod
    def _url_absolute(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://", "file://")):
            raise ValueError("url must be an absolute http(s) or file:// URL")
        return v


_DEFAULT_VIEWPORTS = [Viewport(label="desktop", width=1366, height=768)]


class ScenarioFile(BaseModel):
    id: str = Field(default="default", description="Suite id, used as the output sub-directory")
    viewports: List[Viewport] = Field(default_factory=lambda: list(_DEFAULT_VIEWPORTS))
    scenarios: List[Scenario] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_labels(self) -> "ScenarioFile":
        for kind, labels in (
            ("scenario", [s.label for s in self.scenarios]),
            ("viewport", [v.label for v in self.viewports]),
        ):
            dupes = sorted({lbl for lbl in labels if labels.count(lbl) > 1})
            if dupes:
                raise ValueError(f"duplicate {kind} label(s): {', '.join(dupes)}")
        return self

    @property
    def labels(self) -> List[str]:
        return [s.label for s in self.scenarios]

    def select(self, labels: Optional[List[str]] = None) -> List[Scenario]:
        if not labels:
            return list(self.scenarios)
        wanted = set(labels)
        return [s for s in self.scenarios if s.label in wanted]


# ---------- Loading ----------


_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _subst_env(obj):
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(0)), obj)
    if isinstance(obj, list):
        return [_subst_env(x) for x in obj]
    if isinstance(obj, dict):
        return {k: _subst_env(v) for k, v in obj.items()}
    return obj


def _format_errors(header: str, ve: ValidationError) -> str:
    lines = [header]
    for e in ve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []))
        msg = e.get("msg", "invalid value")
        lines.append(f"  - {loc}: {msg}")
    return "\n".join(lines)


def load_scenarios_file(path: Path | str) -> List[ScenarioFile]:
    """Load one or more scenario suites from a YAML file (supports multi-document)."""
    sc_path = Path(path)
    if not sc_path.exists():
        raise ScenarioFileError(f"Scenario file not found: {sc_path}")
    try:
        docs = list(yaml.safe_load_all(sc_path.read_text(encoding="utf-8")))
    except yaml.YAMLError as ye:
        raise ScenarioFileError(f"YAML parse error in {sc_path}: {ye}") from ye

    out: List[ScenarioFile] = []
    for idx, data in enumerate(docs, start=1):
        if data is None:
            continue
        if not isinstance(data, dict):
            raise ScenarioFileError(f"Document {idx} in {sc_path} must be a mapping/object.")
        try:
            out.append(ScenarioFile.model_validate(_subst_env(data)))
        except ValidationError as ve:
            raise ScenarioFileError(_format_errors(f"Invalid scenarios '{sc_path}' (document {idx}):", ve)) from ve
    if not out:
        raise ScenarioFileError(f"No scenario documents found in {sc_path}")
    return out


__all__ = [
    "Viewport",
    "Scenario",
    "ScenarioFile",
    "ScenarioFileError",
    "load_scenarios_file",
]
