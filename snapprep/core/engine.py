from __future__ import annotations

"""Capture runner
-----------------
Launches a Playwright browser and, for each scenario x viewport, opens a fresh
context, runs the pre-capture hook, navigates and saves screenshots plus a
per-run manifest. A failing scenario is recorded and the run moves on.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from playwright.async_api import Browser, async_playwright

from snapprep.capture.screenshot import ScreenshotManager
from snapprep.core.scenarios import Scenario, ScenarioFile, Viewport
from snapprep.prepare.hook import on_before
from snapprep.utils.config import PreparationMode, Settings, get_settings
from snapprep.utils.logger import (
    attach_file_logger,
    detach_file_logger,
    get_logger,
    log_with_context,
)
from snapprep.utils.timing import async_sleep_ms

BeforeHook = Callable[..., Awaitable[None]]


@dataclass
class RunContext:
    """Filesystem locations for the current run."""
    run_dir: Path
    manifest_path: Path


def _ts() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")


class CaptureRunner:
    """Captures every selected scenario of a suite against a live browser."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        mode: Optional[PreparationMode] = None,
        before: BeforeHook = on_before,
    ):
        self.settings = settings or get_settings()
        self.mode = mode
        self.before = before
        self.log = get_logger(__name__)

    def _prepare_run_dir(self, suite: ScenarioFile) -> RunContext:
        base = self.settings.OUTPUT_DIR / suite.id / _ts()
        base.mkdir(parents=True, exist_ok=True)
        return RunContext(run_dir=base, manifest_path=base / "manifest.json")

    def _write_manifest(self, suite: ScenarioFile, ctx: RunContext, results: List[dict]) -> None:
        d = {
            "id": suite.id,
            "run_dir": str(ctx.run_dir),
            "created_at": datetime.now(timezone.utc).isoformat(),
            "preparation_mode": (self.mode or self.settings.PREPARATION_MODE).value,
            "viewports": [v.model_dump() for v in suite.viewports],
            "results": results,
        }
        ctx.manifest_path.write_text(json.dumps(d, indent=2), encoding="utf-8")

    async def _capture_one(
        self,
        browser: Browser,
        shots: ScreenshotManager,
        scenario: Scenario,
        viewport: Viewport,
    ) -> Dict[str, Any]:
        s = self.settings
        log = log_with_context(self.log, scenario=scenario.label, viewport=viewport.label)
        context = await browser.new_context(viewport={"width": viewport.width, "height": viewport.height})
        try:
            page = await context.new_page()
            page.set_default_timeout(s.PAGE_LOAD_TIMEOUT)
            await self.before(page, scenario, viewport, mode=self.mode, settings=s)
            await page.goto(scenario.url, wait_until="load")
            if scenario.ready_selector:
                await page.wait_for_selector(scenario.ready_selector, state="visible")
            await async_sleep_ms(scenario.delay_ms)

            if scenario.selectors:
                captures = [
                    await shots.element(page, sel, idx, scenario.label, viewport.label)
                    for idx, sel in enumerate(scenario.selectors)
                ]
            else:
                captures = [await shots.page(page, scenario.label, viewport.label)]
            log.info(f"Captured {len(captures)} image(s)")
            return {
                "ok": True,
                "scenario": scenario.label,
                "viewport": viewport.label,
                "captures": [c.to_dict() for c in captures],
            }
        except Exception as e:
            log.error(f"Scenario failed: {e}")
            return {
                "ok": False,
                "scenario": scenario.label,
                "viewport": viewport.label,
                "error": str(e),
                "error_type": type(e).__name__,
            }
        finally:
            await context.close()

    async def run(self, suite: ScenarioFile, labels: Optional[List[str]] = None) -> dict:
        """
        Capture the selected scenarios of `suite` across all its viewports.

        Returns {"ok": bool, "run_dir": str, "results": [...]} and writes
        screenshots, run.log and manifest.json to the run directory.
        """
        s = self.settings
        scenarios = suite.select(labels)
        ctx = self._prepare_run_dir(suite)
        per_run_handler = attach_file_logger(ctx.run_dir / "run.log")
        results: List[dict] = []
        try:
            async with async_playwright() as p:
                browser_type = getattr(p, s.BROWSER_TYPE.value)
                browser = await browser_type.launch(**s.playwright_launch_kwargs())
                try:
                    shots = ScreenshotManager(ctx.run_dir, settings=s)
                    for scenario in scenarios:
                        for viewport in suite.viewports:
                            results.append(await self._capture_one(browser, shots, scenario, viewport))
                finally:
                    await browser.close()
        finally:
            self._write_manifest(suite, ctx, results)
            detach_file_logger(per_run_handler)

        return {
            "ok": all(r["ok"] for r in results),
            "id": suite.id,
            "run_dir": str(ctx.run_dir),
            "results": results,
        }
