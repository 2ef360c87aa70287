from __future__ import annotations

"""Page preparation capability
-----------------------------
The handful of browser operations the pre-capture steps need, expressed as a
protocol so the steps can run against a real Playwright page or a fake one.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from playwright.async_api import Page


@runtime_checkable
class PageCapability(Protocol):
    async def emulate_color_scheme(self, scheme: str) -> None:
        """Make `prefers-color-scheme` report `scheme` for the current document and later ones."""
        ...

    async def add_init_script(self, script: str) -> None:
        """Run `script` in every document created in this page from now on."""
        ...

    async def evaluate(self, expression: str, arg: Optional[Any] = None) -> Any:
        """Evaluate `expression` in the current document."""
        ...

    async def wait_for_fonts(self) -> None:
        """Resolve once `document.fonts.ready` has resolved."""
        ...


class PlaywrightPageCapability:
    """PageCapability backed by a Playwright async `Page`."""

    def __init__(self, page: Page) -> None:
        self.page = page

    async def emulate_color_scheme(self, scheme: str) -> None:
        await self.page.emulate_media(color_scheme=scheme)

    async def add_init_script(self, script: str) -> None:
        await self.page.add_init_script(script=script)

    async def evaluate(self, expression: str, arg: Optional[Any] = None) -> Any:
        return await self.page.evaluate(expression, arg)

    async def wait_for_fonts(self) -> None:
        handle = await self.page.evaluate_handle("document.fonts.ready")
        await handle.dispose()


def as_capability(page: Any) -> PageCapability:
    """Wrap a Playwright page; pass through anything already speaking the protocol."""
    if isinstance(page, PageCapability):
        return page
    return PlaywrightPageCapability(page)
