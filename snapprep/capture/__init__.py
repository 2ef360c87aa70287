"""
Capture package: screenshots and their structured results.
"""

from .screenshot import CaptureResult, ScreenshotManager

__all__ = [
    "CaptureResult",
    "ScreenshotManager",
]
