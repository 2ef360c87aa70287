from __future__ import annotations

"""Pre-capture hook
------------------
`on_before` brings a page into a deterministic visual state before the
screenshot is taken: forced color scheme, no CSS motion, loaded fonts and a
short settle delay. Errors from the browser driver propagate to the caller.
"""

from typing import Any, Iterable, List, Optional, Sequence

from snapprep.prepare.capability import as_capability
from snapprep.prepare.steps import (
    EmulateColorScheme,
    LogScenario,
    PreparationStep,
    SettleDelay,
    StyleOverride,
    WaitForFonts,
)
from snapprep.utils.config import PreparationMode, Settings, get_settings
from snapprep.utils.timing import Sleeper, measure


def build_steps(
    mode: PreparationMode = PreparationMode.full,
    *,
    extra_overrides: Iterable[StyleOverride] = (),
    sleep: Optional[Sleeper] = None,
) -> List[PreparationStep]:
    """
    Assemble the ordered preparation steps for `mode`.

    color_scheme_only: log + color scheme.
    full:              log + color scheme + style overrides + fonts + settle.
    """
    mode = PreparationMode(mode)
    steps: List[PreparationStep] = [LogScenario(), EmulateColorScheme()]
    if mode is PreparationMode.color_scheme_only:
        return steps

    steps.append(StyleOverride())
    steps.extend(extra_overrides)
    steps.append(WaitForFonts())
    steps.append(SettleDelay(sleep=sleep))
    return steps


def steps_from_settings(
    settings: Settings,
    mode: Optional[PreparationMode] = None,
    *,
    extra_overrides: Iterable[StyleOverride] = (),
    sleep: Optional[Sleeper] = None,
) -> List[PreparationStep]:
    return build_steps(
        mode or settings.PREPARATION_MODE,
        extra_overrides=extra_overrides,
        sleep=sleep,
    )


def _field(scenario: Any, key: str) -> Any:
    if isinstance(scenario, dict):
        return scenario.get(key)
    return getattr(scenario, key, None)


def _label_of(scenario: Any) -> str:
    label = _field(scenario, "label")
    if not label:
        raise ValueError("scenario must have a non-empty label")
    return str(label)


async def run_steps(page: Any, label: str, steps: Sequence[PreparationStep]) -> None:
    cap = as_capability(page)
    for step in steps:
        await step.apply(cap, label)


@measure("on_before")
async def on_before(
    page: Any,
    scenario: Any,
    viewport: Any = None,
    *,
    mode: Optional[PreparationMode] = None,
    settings: Optional[Settings] = None,
    extra_overrides: Iterable[StyleOverride] = (),
    sleep: Optional[Sleeper] = None,
) -> None:
    """
    Prepare `page` for capturing `scenario`.

    `page` is a Playwright async Page or any PageCapability. `scenario` needs a
    `label` (attribute or mapping key). `viewport` is accepted for runner
    compatibility and not used. The mode comes from, in order: the `mode`
    argument, the scenario's own `preparation` field, PREPARATION_MODE.
    """
    s = settings or get_settings()
    label = _label_of(scenario)
    if mode is None:
        mode = _field(scenario, "preparation")
    steps = steps_from_settings(s, mode, extra_overrides=extra_overrides, sleep=sleep)
    await run_steps(page, label, steps)
