# snapprep/cli.py
from __future__ import annotations

"""Command-line interface
------------------------
List/validate scenario files, run captures, build stylesheets and view the
effective config. Thin wrapper around the loader, runner and CSS pipeline.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import click

from snapprep.core.scenarios import ScenarioFileError, load_scenarios_file
from snapprep.css.config import BuildConfigError, load_build_config
from snapprep.css.pipeline import CssPipeline, build_css
from snapprep.css.plugins import ImportResolutionError
from snapprep.utils.config import PreparationMode, get_settings
from snapprep.utils.logger import bind, get_logger, set_log_level, unbind


# -------- helpers --------


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _scenarios_path(path: Optional[str]) -> Path:
    return Path(path).resolve() if path else get_settings().SCENARIOS_FILE


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL from settings",
)
@click.version_option(package_name="snapshot-prep")
def cli(log_level: Optional[str]):
    _ = get_settings()
    if log_level:
        set_log_level(log_level.upper())


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective configuration (after .env & env vars)."""
    _echo_json(get_settings().model_dump(mode="json"))


@cli.command("scenarios")
@click.argument("path", required=False)
def cmd_scenarios(path: Optional[str]):
    """List scenarios in a scenario file (default: SCENARIOS_FILE)."""
    fp = _scenarios_path(path)
    try:
        suites = load_scenarios_file(fp)
    except ScenarioFileError as e:
        click.echo(f"ERR {e}")
        sys.exit(1)

    total = sum(len(s.scenarios) for s in suites)
    click.echo(f"Found {total} scenario(s):\n")
    for suite in suites:
        viewports = ", ".join(v.label for v in suite.viewports)
        for sc in suite.scenarios:
            mode = sc.preparation.value if sc.preparation else "default"
            click.echo(f" - [{suite.id}] {sc.label}  ({sc.url})  viewports: {viewports}  preparation: {mode}")


@cli.command("validate")
@click.argument("targets", nargs=-1, required=False)
def cmd_validate(targets: List[str]):
    """Validate scenario files (supports multi-doc YAML)."""
    paths = [Path(t).resolve() for t in targets] or [get_settings().SCENARIOS_FILE]
    ok = True
    for fp in paths:
        try:
            for suite in load_scenarios_file(fp):
                click.echo(f"OK  {fp}  ->  [{suite.id}] {len(suite.scenarios)} scenario(s) x {len(suite.viewports)} viewport(s)")
        except ScenarioFileError as e:
            ok = False
            click.echo(f"ERR {fp}  ->  {e}")
    sys.exit(0 if ok else 1)


@cli.command("capture")
@click.argument("path", required=False)
@click.option("--label", "labels", multiple=True, help="Only capture scenarios with this label (repeatable)")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in PreparationMode]),
    default=None,
    help="Override PREPARATION_MODE for every scenario",
)
@click.option("--json-out", type=click.Path(dir_okay=False), default=None, help="Write a JSON summary to this file")
def cmd_capture(path: Optional[str], labels: List[str], mode: Optional[str], json_out: Optional[str]):
    """
    Prepare pages and capture screenshots for the scenarios in PATH.

    Examples:
      snapprep capture scenarios.yaml
      snapprep capture --label homepage --mode color_scheme_only
    """
    settings = get_settings()
    settings.ensure_dirs()
    log = get_logger(__name__)

    try:
        suites = load_scenarios_file(_scenarios_path(path))
    except ScenarioFileError as e:
        click.echo(f"ERR {e}")
        sys.exit(2)

    unknown = sorted(set(labels) - {lbl for suite in suites for lbl in suite.labels})
    if unknown:
        click.echo(f"ERR Unknown scenario label(s): {', '.join(unknown)}")
        sys.exit(2)

    from snapprep.core.engine import CaptureRunner  # local import keeps playwright off the CLI import path

    runner = CaptureRunner(settings=settings, mode=PreparationMode(mode) if mode else None)
    bind(run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"))
    summaries: List[dict] = []
    try:
        for suite in suites:
            log.info(f"Capturing suite '{suite.id}'")
            summaries.append(asyncio.run(runner.run(suite, list(labels) or None)))
    finally:
        unbind("run_id")

    results = [r for s in summaries for r in s["results"]]
    for res in results:
        if res["ok"]:
            click.echo(f"OK  {res['scenario']} @ {res['viewport']} -> {len(res['captures'])} image(s)")
        else:
            click.echo(f"ERR {res['scenario']} @ {res['viewport']} -> {res.get('error_type')}: {res.get('error')}")

    ok_count = sum(1 for r in results if r["ok"])
    fail_count = len(results) - ok_count
    click.echo(f"Done. OK={ok_count}  FAIL={fail_count}")

    if json_out:
        outp = Path(json_out).resolve()
        outp.parent.mkdir(parents=True, exist_ok=True)
        outp.write_text(json.dumps({"runs": summaries}, indent=2), encoding="utf-8")
        click.echo(f"Wrote summary: {outp}")

    sys.exit(0 if fail_count == 0 else 1)


@cli.command("build-css")
@click.argument("source", type=click.Path(dir_okay=False, exists=True))
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None, help="Write result here (default: stdout)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="Build config YAML (default: CSS_CONFIG_FILE)")
@click.option("--load-path", "load_paths", multiple=True, type=click.Path(file_okay=False), help="Extra directory to resolve @import from (repeatable)")
def cmd_build_css(source: str, output: Optional[str], config_path: Optional[str], load_paths: List[str]):
    """Inline @imports and add vendor prefixes to SOURCE."""
    settings = get_settings()
    try:
        config = load_build_config(config_path or settings.CSS_CONFIG_FILE)
        pipeline = CssPipeline.from_config(config, settings=settings, load_paths=[Path(p) for p in load_paths])
        out = build_css(source, output, pipeline=pipeline)
    except (BuildConfigError, ImportResolutionError, UnicodeDecodeError, OSError) as e:
        click.echo(f"ERR {e}", err=True)
        sys.exit(1)

    if output:
        click.echo(f"Wrote {output} ({' -> '.join(pipeline.plugin_names)})")
    else:
        click.echo(out, nl=False)


def main() -> None:
    cli(prog_name="snapprep")


if __name__ == "__main__":
    main()
