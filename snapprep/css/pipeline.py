from __future__ import annotations

"""CSS build pipeline
--------------------
Runs the configured plugins, in order, over a stylesheet file.
"""

from pathlib import Path
from typing import List, Optional, Sequence

from snapprep.css.config import BuildConfig, DEFAULT_BUILD_CONFIG, IMPORT_INLINER, VENDOR_PREFIXER
from snapprep.css.plugins import CssPlugin, ImportInliner, VendorPrefixer
from snapprep.utils.config import Settings, get_settings
from snapprep.utils.logger import get_logger
from snapprep.utils.timing import measure


class CssPipeline:
    def __init__(self, plugins: Sequence[CssPlugin]):
        self.plugins: List[CssPlugin] = list(plugins)
        self.log = get_logger(__name__)

    @classmethod
    def from_config(
        cls,
        config: BuildConfig = DEFAULT_BUILD_CONFIG,
        *,
        settings: Optional[Settings] = None,
        load_paths: Sequence[Path] = (),
    ) -> "CssPipeline":
        s = settings or get_settings()
        factories = {
            IMPORT_INLINER: lambda: ImportInliner(load_paths=load_paths),
            VENDOR_PREFIXER: lambda: VendorPrefixer(prefixes=s.css_prefixes),
        }
        return cls([factories[name]() for name in config.plugins])

    @property
    def plugin_names(self) -> List[str]:
        return [p.name for p in self.plugins]

    def process_text(self, css: str, source: Path) -> str:
        for plugin in self.plugins:
            self.log.debug(f"{plugin.name}: {source}")
            css = plugin.process(css, source)
        return css

    def process(self, source: Path | str) -> str:
        src = Path(source)
        return self.process_text(src.read_text(encoding="utf-8"), src)


@measure("build_css", level="INFO")
def build_css(source: Path | str, dest: Optional[Path | str] = None, pipeline: Optional[CssPipeline] = None) -> str:
    """Process `source`; write to `dest` when given. Returns the output text."""
    pipe = pipeline or CssPipeline.from_config()
    out = pipe.process(source)
    if dest is not None:
        dest_path = Path(dest)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        dest_path.write_text(out, encoding="utf-8")
    return out
