import asyncio
import json
from pathlib import Path

from PIL import Image

from snapprep.core import engine as engine_mod
from snapprep.core.engine import CaptureRunner
from snapprep.core.scenarios import ScenarioFile
from snapprep.utils.config import PreparationMode, Settings


def _png(path: str, size=(40, 30)) -> None:
    Image.new("RGB", size, "white").save(path)


class FakeLocator:
    def __init__(self, page, selector):
        self.page = page
        self.selector = selector

    @property
    def first(self):
        return self

    async def screenshot(self, path, type, quality=None):
        self.page.calls.append(("element", self.selector))
        _png(path, (10, 10))


class FakePage:
    def __init__(self, fail_on_goto=False):
        self.calls = []
        self.url = "about:blank"
        self.fail_on_goto = fail_on_goto

    def set_default_timeout(self, ms):
        self.calls.append(("timeout", ms))

    async def goto(self, url, wait_until="load"):
        if self.fail_on_goto:
            raise RuntimeError("net::ERR_NAME_NOT_RESOLVED")
        self.calls.append(("goto", url))
        self.url = url

    async def wait_for_selector(self, selector, state="visible"):
        self.calls.append(("ready", selector))

    async def screenshot(self, path, type, full_page, quality=None):
        self.calls.append(("page", full_page))
        _png(path)

    def locator(self, selector):
        return FakeLocator(self, selector)


class FakeContext:
    def __init__(self, browser, viewport):
        self.browser = browser
        self.viewport = viewport
        self.closed = False

    async def new_page(self):
        page = FakePage(fail_on_goto=self.browser.fail_on_goto)
        self.browser.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, fail_on_goto=False):
        self.contexts = []
        self.pages = []
        self.fail_on_goto = fail_on_goto
        self.closed = False

    async def new_context(self, viewport):
        ctx = FakeContext(self, viewport)
        self.contexts.append(ctx)
        return ctx

    async def close(self):
        self.closed = True


class FakePlaywright:
    def __init__(self, browser):
        self.chromium = self
        self.browser = browser

    async def launch(self, **kwargs):
        return self.browser

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


def _suite() -> ScenarioFile:
    return ScenarioFile.model_validate({
        "id": "demo",
        "viewports": [
            {"label": "phone", "width": 375, "height": 667},
            {"label": "desktop", "width": 1366, "height": 768},
        ],
        "scenarios": [
            {"label": "homepage", "url": "https://demo.app/"},
            {"label": "pricing", "url": "https://demo.app/pricing", "ready_selector": ".plans", "selectors": [".plans", "footer"]},
        ],
    })


def _runner(tmp_path: Path, monkeypatch, browser: FakeBrowser, hooks: list, **kw) -> CaptureRunner:
    monkeypatch.setattr(engine_mod, "async_playwright", lambda: FakePlaywright(browser))

    async def fake_before(page, scenario, viewport, *, mode=None, settings=None):
        hooks.append((scenario.label, viewport.label, mode))
        page.calls.append(("before", scenario.label))

    return CaptureRunner(settings=Settings(OUTPUT_DIR=tmp_path / "out"), before=fake_before, **kw)


def test_runner_prepares_then_captures_each_viewport(tmp_path: Path, monkeypatch):
    browser = FakeBrowser()
    hooks = []
    runner = _runner(tmp_path, monkeypatch, browser, hooks, mode=PreparationMode.color_scheme_only)

    summary = asyncio.run(runner.run(_suite()))

    assert summary["ok"] is True
    assert len(summary["results"]) == 4
    assert [c.viewport for c in browser.contexts] == [
        {"width": 375, "height": 667},
        {"width": 1366, "height": 768},
    ] * 2
    assert all(c.closed for c in browser.contexts) and browser.closed
    assert hooks[0] == ("homepage", "phone", PreparationMode.color_scheme_only)

    # the hook runs before navigation
    first = [name for name, _ in browser.pages[0].calls]
    assert first.index("before") < first.index("goto") < first.index("page")

    pricing = summary["results"][2]
    assert [c["selector"] for c in pricing["captures"]] == [".plans", "footer"]
    assert pricing["captures"][0]["width"] == 10

    manifest = json.loads((Path(summary["run_dir"]) / "manifest.json").read_text(encoding="utf-8"))
    assert manifest["id"] == "demo"
    assert manifest["preparation_mode"] == "color_scheme_only"
    assert len(manifest["results"]) == 4


def test_runner_records_failures_and_continues(tmp_path: Path, monkeypatch):
    browser = FakeBrowser(fail_on_goto=True)
    hooks = []
    runner = _runner(tmp_path, monkeypatch, browser, hooks)

    summary = asyncio.run(runner.run(_suite(), labels=["homepage"]))

    assert summary["ok"] is False
    assert [r["error_type"] for r in summary["results"]] == ["RuntimeError", "RuntimeError"]
    assert "ERR_NAME_NOT_RESOLVED" in summary["results"][0]["error"]
    assert all(c.closed for c in browser.contexts)
