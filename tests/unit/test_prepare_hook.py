import asyncio
import logging

import pytest

from snapprep.prepare.hook import build_steps, on_before
from snapprep.prepare.steps import (
    DISABLE_MOTION_CSS,
    EmulateColorScheme,
    LogScenario,
    SettleDelay,
    StyleOverride,
    WaitForFonts,
)
from snapprep.utils.config import PreparationMode, Settings

from fakes import EventHandler, FakePage, FakeSleep


@pytest.fixture
def events():
    evs = []
    handler = EventHandler(evs)
    base = logging.getLogger("snapprep")
    base.addHandler(handler)
    yield evs
    base.removeHandler(handler)


def _settings(**kw) -> Settings:
    return Settings(**kw)


def test_full_preparation_runs_steps_in_order(events):
    page = FakePage(events)
    sleep = FakeSleep(events)

    asyncio.run(on_before(page, {"label": "homepage"}, {"label": "desktop"}, settings=_settings(), sleep=sleep))

    kinds = [kind for kind, _ in events]
    assert kinds == ["log", "color-scheme", "init-script", "evaluate", "fonts", "sleep"]


def test_log_line_precedes_any_page_effect(events):
    page = FakePage(events)
    asyncio.run(on_before(page, {"label": "homepage"}, None, settings=_settings(), sleep=FakeSleep(events)))

    assert events[0] == ("log", "SCENARIO > homepage")


def test_color_scheme_forced_light_exactly_once(events):
    page = FakePage(events)
    page.scheme = "dark"  # host preference

    asyncio.run(on_before(page, {"label": "homepage"}, None, settings=_settings(), sleep=FakeSleep(events)))

    assert page.scheme == "light"
    assert [e for e in events if e[0] == "color-scheme"] == [("color-scheme", "light")]


def test_style_override_registered_for_future_loads_and_current_document(events):
    page = FakePage(events)
    asyncio.run(on_before(page, {"label": "homepage"}, None, settings=_settings(), sleep=FakeSleep(events)))

    assert len(page.init_scripts) == 1
    script = page.init_scripts[0]
    assert "snapprep-override-disable-motion" in script
    for decl in ("animation-duration: 0s", "animation-delay: 0s", "transition-duration: 0s", "transition-delay: 0s"):
        assert decl in script
    assert "*::before" in script and "*::after" in script
    assert page.evaluated == [script]


def test_settle_delay_starts_only_after_fonts_are_ready(events):
    fonts = asyncio.Event()
    page = FakePage(events, fonts=fonts)
    sleep = FakeSleep(events)

    async def scenario():
        task = asyncio.create_task(on_before(page, {"label": "slow-fonts"}, None, settings=_settings(), sleep=sleep))
        for _ in range(5):
            await asyncio.sleep(0)
        assert not task.done()
        assert sleep.calls == []
        fonts.set()
        await task

    asyncio.run(scenario())

    kinds = [kind for kind, _ in events]
    assert kinds.index("fonts") < kinds.index("sleep")
    assert sleep.calls == [500]


def test_full_mode_ignores_environment_overrides(events, monkeypatch):
    monkeypatch.setenv("COLOR_SCHEME", "dark")
    monkeypatch.setenv("SETTLE_DELAY_MS", "0")
    monkeypatch.setenv("DISABLE_ANIMATIONS", "false")
    page = FakePage(events)
    page.scheme = "dark"
    sleep = FakeSleep(events)

    asyncio.run(on_before(page, {"label": "x"}, None, settings=_settings(), sleep=sleep))

    assert page.scheme == "light"
    assert len(page.init_scripts) == 1
    assert sleep.calls == [500]


def test_color_scheme_only_mode_skips_later_steps(events):
    page = FakePage(events)
    sleep = FakeSleep(events)

    asyncio.run(
        on_before(page, {"label": "header"}, None, mode=PreparationMode.color_scheme_only, settings=_settings(), sleep=sleep)
    )

    assert page.scheme == "light"
    assert page.init_scripts == []
    assert not any(kind == "fonts" for kind, _ in events)
    assert sleep.calls == []


def test_mode_taken_from_scenario_then_settings(events):
    class Sc:
        label = "header"
        preparation = PreparationMode.color_scheme_only

    page = FakePage(events)
    asyncio.run(on_before(page, Sc(), None, settings=_settings(), sleep=FakeSleep(events)))
    assert page.init_scripts == []

    page2 = FakePage(events)
    asyncio.run(
        on_before(page2, {"label": "x"}, None, settings=_settings(PREPARATION_MODE="color_scheme_only"), sleep=FakeSleep(events))
    )
    assert page2.init_scripts == []


def test_invoking_twice_reaches_same_state(events):
    page = FakePage(events)
    s = _settings()
    asyncio.run(on_before(page, {"label": "homepage"}, None, settings=s, sleep=FakeSleep(events)))
    asyncio.run(on_before(page, {"label": "homepage"}, None, settings=s, sleep=FakeSleep(events)))

    assert page.scheme == "light"
    # both registrations target the same style element id
    assert len(set(page.init_scripts)) == 1


def test_missing_label_is_rejected(events):
    with pytest.raises(ValueError):
        asyncio.run(on_before(FakePage(events), {"url": "https://example.com"}, None, settings=_settings()))


def test_driver_errors_propagate(events):
    class BrokenPage(FakePage):
        async def emulate_color_scheme(self, scheme):
            raise RuntimeError("Target page, context or browser has been closed")

    sleep = FakeSleep(events)
    with pytest.raises(RuntimeError, match="has been closed"):
        asyncio.run(on_before(BrokenPage(events), {"label": "gone"}, None, settings=_settings(), sleep=sleep))
    assert sleep.calls == []


def test_build_steps_composition():
    steps = build_steps(PreparationMode.full, extra_overrides=[StyleOverride(override="hide-carets", css="* { caret-color: transparent; }")])
    assert [type(s) for s in steps] == [LogScenario, EmulateColorScheme, StyleOverride, StyleOverride, WaitForFonts, SettleDelay]
    assert steps[2].css == DISABLE_MOTION_CSS
    assert steps[3].element_id == "snapprep-override-hide-carets"

    short = build_steps("color_scheme_only")
    assert [type(s) for s in short] == [LogScenario, EmulateColorScheme]

