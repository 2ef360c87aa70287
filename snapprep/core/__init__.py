"""
Core package: scenario loading and the capture runner.
Lightweight package init to avoid import cycles.

Consumers should import submodules directly, e.g.:
  from snapprep.core.scenarios import load_scenarios_file, Scenario
  from snapprep.core.engine import CaptureRunner
"""

__all__: list[str] = []
