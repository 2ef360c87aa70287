"""
CSS build package
-----------------
Build configuration (ordered plugin list) and the pipeline that runs it.
"""

from .config import BuildConfig, BuildConfigError, DEFAULT_BUILD_CONFIG, load_build_config
from .pipeline import CssPipeline, build_css
from .plugins import ImportInliner, ImportResolutionError, VendorPrefixer

__all__ = [
    "BuildConfig",
    "BuildConfigError",
    "DEFAULT_BUILD_CONFIG",
    "load_build_config",
    "CssPipeline",
    "build_css",
    "ImportInliner",
    "ImportResolutionError",
    "VendorPrefixer",
]
