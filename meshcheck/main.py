"""
meshcheck — CLI entrypoint.

Usage:
    meshcheck --help
    meshcheck analyze k8s/
    meshcheck analyze gateway.yaml service.yaml --json
    meshcheck analyzers
    meshcheck config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from meshcheck import __version__
from meshcheck.core.observability.logging_config import resolve_level, setup_logging

_LEVEL_CHOICE = click.Choice(["Error", "Warning", "Info"], case_sensitive=False)

_LEVEL_COLORS = {"Error": "red", "Warning": "yellow", "Info": "cyan"}


@click.group()
@click.version_option(version=__version__, prog_name="meshcheck")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to meshcheck.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """meshcheck — find gateway listener ports no Service exposes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug, verbose, quiet, os.environ.get("MESHCHECK_LOG_LEVEL")),
        log_file=os.environ.get("MESHCHECK_LOG_FILE"),
        log_file_level=os.environ.get("MESHCHECK_LOG_FILE_LEVEL"),
    )


@cli.command()
@click.argument("paths", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--suppress", "-S", "suppress", multiple=True,
    help="Suppress a message: 'CODE=Kind name', e.g. 'IST0104=Gateway default/gw'.",
)
@click.option(
    "--failure-threshold", type=_LEVEL_CHOICE, default=None,
    help="Lowest message level that makes the command fail (default: Error).",
)
@click.option(
    "--output-threshold", type=_LEVEL_CHOICE, default=None,
    help="Lowest message level to print (default: Info).",
)
@click.option(
    "--namespace", "-n", default=None,
    help="Namespace for resources that don't declare one.",
)
@click.option(
    "--recursive/--no-recursive", default=True,
    help="Descend into sub-directories.",
)
@click.option(
    "--analyzer", "-A", "analyzers", multiple=True,
    help="Run only this analyzer (repeatable).",
)
@click.pass_context
def analyze(
    ctx: click.Context,
    paths: tuple[str, ...],
    as_json: bool,
    suppress: tuple[str, ...],
    failure_threshold: str | None,
    output_threshold: str | None,
    namespace: str | None,
    recursive: bool,
    analyzers: tuple[str, ...],
) -> None:
    """Analyze manifest files or directories (use - for stdin)."""
    from meshcheck.core.use_cases.analyze import run_analysis

    result = run_analysis(
        paths,
        config_path=ctx.obj.get("config_path"),
        suppress=suppress,
        failure_threshold=failure_threshold,
        output_threshold=output_threshold,
        namespace=namespace,
        analyzers=analyzers or None,
        recursive=recursive,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.failed else 0)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    for err in result.load_errors:
        click.secho(f"❌ {err}", fg="red", err=True)

    for msg in result.messages:
        level = msg.level.value
        click.secho(f"{level} [{msg.code}]", fg=_LEVEL_COLORS.get(level, "white"), nl=False)
        where = f" ({msg.resource})" if msg.resource else ""
        click.echo(f"{where} {msg.message}")

    quiet = ctx.obj.get("quiet", False)
    if not result.messages and not result.load_errors:
        click.secho("✔ No validation issues found", fg="green")
    elif not quiet:
        counts = result.counts()
        summary = ", ".join(f"{n} {lvl.lower()}(s)" for lvl, n in counts.items() if n)
        if result.suppressed:
            summary += f"{', ' if summary else ''}{result.suppressed} suppressed"
        if summary:
            click.echo(f"\n{summary}")

    if ctx.obj.get("verbose") and not quiet:
        click.echo(
            f"Checked {len(result.files)} file(s), {result.resources_loaded} resource(s) "
            f"with {len(result.analyzers_run)} analyzer(s)."
        )

    if result.failed:
        sys.exit(1)


@cli.command("analyzers")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def list_analyzers(as_json: bool) -> None:
    """List available analyzers and the resources they read."""
    from meshcheck.core.analysis.registry import default_registry

    metas = default_registry().metadata()

    if as_json:
        click.echo(json.dumps([m.model_dump() for m in metas], indent=2))
        return

    for meta in metas:
        click.secho(f"• {meta.name}", fg="cyan", bold=True)
        if meta.description:
            click.echo(f"    {meta.description}")
        click.echo(f"    inputs: {', '.join(meta.inputs)}")


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate meshcheck.yml configuration."""
    from meshcheck.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)
        return

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        if result.config_path:
            click.echo(f"   File: {result.config_path}")
        click.echo(f"   Default namespace: {result.config.default_namespace}")
        click.echo(f"   Suppressions: {len(result.config.suppress)}")
        click.echo(f"   Failure threshold: {result.config.failure_threshold.value}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        sys.exit(1)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
