import asyncio
from urllib.parse import quote

import pytest

pytest.importorskip("playwright")

from playwright.async_api import Error as PlaywrightError, async_playwright

from snapprep.prepare.hook import on_before
from snapprep.utils.config import Settings

pytestmark = pytest.mark.e2e


PAGE = """
<!doctype html>
<html><head><style>
  @keyframes spin { to { transform: rotate(360deg); } }
  .box { transition: opacity 2s ease 1s; animation: spin 3s linear 1s infinite; }
  .box::before { content: "x"; transition: color 4s; }
  @media (prefers-color-scheme: dark) { body { background: black; } }
</style></head>
<body><div class="box">box</div></body></html>
"""

PROBE = """() => {
  const box = document.querySelector('.box');
  const cs = getComputedStyle(box);
  const before = getComputedStyle(box, '::before');
  return {
    light: matchMedia('(prefers-color-scheme: light)').matches,
    animationDuration: cs.animationDuration,
    animationDelay: cs.animationDelay,
    transitionDuration: cs.transitionDuration,
    transitionDelay: cs.transitionDelay,
    beforeTransition: before.transitionDuration,
    overrides: document.querySelectorAll('style[id^="snapprep-override-"]').length,
  };
}"""


async def _no_wait(ms: int) -> None:
    return None


async def _prepare_and_probe(times: int = 1) -> dict:
    async with async_playwright() as p:
        try:
            browser = await p.chromium.launch()
        except PlaywrightError as e:
            pytest.skip(f"chromium not available: {e}")
        try:
            context = await browser.new_context(color_scheme="dark")
            page = await context.new_page()
            for _ in range(times):
                await on_before(page, {"label": "homepage"}, None, settings=Settings(), sleep=_no_wait)
            await page.goto("data:text/html," + quote(PAGE))
            return await page.evaluate(PROBE)
        finally:
            await browser.close()


def test_light_scheme_and_no_motion_after_navigation():
    state = asyncio.run(_prepare_and_probe())

    assert state["light"] is True
    for key in ("animationDuration", "animationDelay", "transitionDuration", "transitionDelay", "beforeTransition"):
        assert state[key] == "0s", key
    assert state["overrides"] == 1


def test_running_twice_keeps_a_single_override():
    state = asyncio.run(_prepare_and_probe(times=2))
    assert state["light"] is True
    assert state["transitionDuration"] == "0s"
    assert state["overrides"] == 1
