"""
snapshot-prep: deterministic page preparation for visual regression
captures, plus the stylesheet build used by the pages under test.
"""

__version__ = "0.1.0"
