"""
Page preparation package
------------------------
The pre-capture hook and the steps it is built from.
"""

from .capability import PageCapability, PlaywrightPageCapability
from .hook import build_steps, on_before, run_steps
from .steps import (
    DISABLE_MOTION_CSS,
    EmulateColorScheme,
    LogScenario,
    PreparationStep,
    SettleDelay,
    StyleOverride,
    WaitForFonts,
)

__all__ = [
    "PageCapability",
    "PlaywrightPageCapability",
    "build_steps",
    "on_before",
    "run_steps",
    "DISABLE_MOTION_CSS",
    "EmulateColorScheme",
    "LogScenario",
    "PreparationStep",
    "SettleDelay",
    "StyleOverride",
    "WaitForFonts",
]
