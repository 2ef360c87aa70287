from __future__ import annotations

"""Preparation steps
-------------------
Small, composable actions applied to a page before a screenshot. Each step is
awaited in turn by the hook; a step never catches driver errors.
"""

import json
from dataclasses import dataclass, field
from typing import Optional

from snapprep.prepare.capability import PageCapability
from snapprep.utils.logger import get_logger
from snapprep.utils.timing import Sleeper, async_sleep_ms


log = get_logger(__name__)


DISABLE_MOTION_CSS = """
*, *::before, *::after {
  animation-duration: 0s !important;
  animation-delay: 0s !important;
  transition-duration: 0s !important;
  transition-delay: 0s !important;
}
""".strip()


# Installs (or refreshes) one <style> element per override name. The element id
# is stable, so running the same override twice leaves a single element.
_STYLE_INSTALLER = """
((id, css) => {
  const install = () => {
    let el = document.getElementById(id);
    if (!el) {
      el = document.createElement("style");
      el.id = id;
      (document.head || document.documentElement).appendChild(el);
    }
    el.textContent = css;
  };
  if (document.head || document.documentElement) {
    install();
  } else {
    document.addEventListener("DOMContentLoaded", install, { once: true });
  }
})(%s, %s);
"""


class PreparationStep:
    """Base class: one awaited side effect on the page."""

    name: str = "step"

    async def apply(self, page: PageCapability, label: str) -> None:
        raise NotImplementedError


@dataclass
class LogScenario(PreparationStep):
    name: str = "log"

    async def apply(self, page: PageCapability, label: str) -> None:
        log.info(f"SCENARIO > {label}")


@dataclass
class EmulateColorScheme(PreparationStep):
    scheme: str = "light"
    name: str = "color-scheme"

    async def apply(self, page: PageCapability, label: str) -> None:
        await page.emulate_color_scheme(self.scheme)


@dataclass
class StyleOverride(PreparationStep):
    """
    Apply a CSS override on every navigation of the page.

    The stylesheet is registered as an init script so it is present from the
    first paint of each new document; with `apply_now` it is also installed
    into the document that is already loaded.
    """

    override: str = "disable-motion"
    css: str = DISABLE_MOTION_CSS
    apply_now: bool = True
    name: str = field(init=False, default="style-override")

    @property
    def element_id(self) -> str:
        return f"snapprep-override-{self.override}"

    def script(self) -> str:
        return _STYLE_INSTALLER % (json.dumps(self.element_id), json.dumps(self.css))

    async def apply(self, page: PageCapability, label: str) -> None:
        script = self.script()
        await page.add_init_script(script)
        if self.apply_now:
            await page.evaluate(script)


@dataclass
class WaitForFonts(PreparationStep):
    name: str = "fonts"

    async def apply(self, page: PageCapability, label: str) -> None:
        await page.wait_for_fonts()


@dataclass
class SettleDelay(PreparationStep):
    delay_ms: int = 500
    sleep: Optional[Sleeper] = None
    name: str = "settle"

    async def apply(self, page: PageCapability, label: str) -> None:
        await (self.sleep or async_sleep_ms)(self.delay_ms)
