"""
scriptforge — CLI entrypoint.

Usage:
    python -m scriptforge.main --help
    python -m scriptforge.main status
    python -m scriptforge.main config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from scriptforge import __version__
from scriptforge.core.observability.logging_config import parse_component_levels, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="scriptforge")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to scriptforge.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """scriptforge — configure and run code generators."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("SCRIPTFORGE_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("SCRIPTFORGE_LOG_FILE"),
        log_file_level=os.environ.get("SCRIPTFORGE_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
        component_levels=parse_component_levels(os.environ.get("SCRIPTFORGE_LOG_COMPONENTS")),
    )


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show discovered generators and where settings are stored."""
    from scriptforge.core.config.loader import ConfigError
    from scriptforge.core.context import resolve_project_root
    from scriptforge.core.persistence.backends import JsonFileBackend
    from scriptforge.core.use_cases.bootstrap import open_registry

    try:
        registry = open_registry(config_path=ctx.obj.get("config_path"))
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"error": str(e)}, indent=2))
            return
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    with registry:
        backend = registry.store.backend
        store_path = str(backend.path) if isinstance(backend, JsonFileBackend) else None
        enabled = sum(1 for info in registry if info.generator.enabled)

        if as_json:
            click.echo(json.dumps({
                "project_root": str(resolve_project_root()),
                "store_path": store_path,
                "generators": {
                    "total": registry.factory_count,
                    "enabled": enabled,
                    "failed": len(registry.failures),
                },
                "preferences": len(registry.store),
            }, indent=2))
            return

        if not ctx.obj.get("quiet"):
            click.secho(f"\n📋 {resolve_project_root()}", fg="cyan", bold=True)
            if store_path:
                click.echo(f"   💾 {store_path}")
            click.echo()

        click.secho(f"   Generators: {registry.factory_count} ({enabled} enabled)", fg="white", bold=True)
        for info in registry:
            marker = " ✓" if info.generator.enabled else ""
            click.echo(f"     • {info.generator.display_name}{marker}")

        if registry.failures:
            click.echo()
            click.secho(f"   ⚠️  Failed: {len(registry.failures)}", fg="yellow")
            for failure in registry.failures:
                click.echo(f"     • {failure.type_name} ({failure.stage})")

        click.echo()


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate scriptforge.yml."""
    from scriptforge.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Store: {result.config.store_path}")
        click.echo(f"   Generator modules: {len(result.config.generator_modules)}")
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
        click.echo()
        sys.exit(1)

    click.echo()


# ── Register sub-command groups from scriptforge/ui/cli/ ──────────

from scriptforge.ui.cli.generators import generators  # noqa: E402
from scriptforge.ui.cli.tags import tags  # noqa: E402

cli.add_command(generators)
cli.add_command(tags)


if __name__ == "__main__":
    cli()
