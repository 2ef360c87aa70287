# snapprep/capture/screenshot.py
from __future__ import annotations

"""Screenshot utilities
----------------------
Captures page/element screenshots with deterministic filenames
(<scenario>_<index>_<selector>_<viewport>.<ext>) and returns structured results.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image
from playwright.async_api import Page

from snapprep.utils.config import get_settings, Settings
from snapprep.utils.logger import get_logger
from snapprep.utils.timing import measure


@dataclass
class CaptureResult:
    path: Path
    width: int
    height: int
    kind: str            # "page" or "element"
    scenario: str
    viewport: str
    selector: Optional[str]
    url: str
    ts: str              # ISO timestamp

    def to_dict(self) -> dict:
        d = asdict(self)
        d["path"] = str(self.path)
        return d


def safe_name(raw: str) -> str:
    return "".join(ch if ch.isalnum() or ch in ("-", "_") else "_" for ch in raw)


class ScreenshotManager:
    """
    Centralized screenshot helper.
    - Respects global settings (format/quality/full-page).
    - Produces deterministic file names.
    """

    def __init__(self, run_dir: Path, settings: Optional[Settings] = None):
        self.settings: Settings = settings or get_settings()
        self.run_dir = run_dir
        self.log = get_logger(__name__)

    # ----------- Public API -----------

    @measure("page_screenshot")
    async def page(self, page: Page, scenario: str, viewport: str, full_page: Optional[bool] = None) -> CaptureResult:
        fmt = self.settings.SCREENSHOT_FORMAT.value
        is_full = full_page if full_page is not None else self.settings.FULL_PAGE_SCREENSHOT

        out_path = self._build_path(f"{scenario}_0_document_{viewport}", fmt)
        await page.screenshot(
            path=str(out_path),
            type=fmt,
            full_page=is_full,
            quality=(self.settings.SCREENSHOT_QUALITY if fmt == "jpeg" else None),
        )
        return self._result(out_path, "page", scenario, viewport, None, page.url)

    @measure("element_screenshot")
    async def element(self, page: Page, selector: str, index: int, scenario: str, viewport: str) -> CaptureResult:
        fmt = self.settings.SCREENSHOT_FORMAT.value
        out_path = self._build_path(f"{scenario}_{index}_{selector}_{viewport}", fmt)
        await page.locator(selector).first.screenshot(
            path=str(out_path),
            type=fmt,
            quality=(self.settings.SCREENSHOT_QUALITY if fmt == "jpeg" else None),
        )
        return self._result(out_path, "element", scenario, viewport, selector, page.url)

    # ----------- Internals -----------

    def _build_path(self, base: str, ext: str) -> Path:
        out_path = self.run_dir / f"{safe_name(base)}.{ext}"
        out_path.parent.mkdir(parents=True, exist_ok=True)
        return out_path

    def _result(self, path: Path, kind: str, scenario: str, viewport: str, selector: Optional[str], url: str) -> CaptureResult:
        w, h = self._image_size(path)
        return CaptureResult(
            path=path,
            width=w,
            height=h,
            kind=kind,
            scenario=scenario,
            viewport=viewport,
            selector=selector,
            url=url,
            ts=self._ts(),
        )

    @staticmethod
    def _image_size(path: Path) -> Tuple[int, int]:
        with Image.open(path) as im:
            return im.width, im.height

    @staticmethod
    def _ts() -> str:
        return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
