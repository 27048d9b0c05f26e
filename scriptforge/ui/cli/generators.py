"""
CLI commands for generators — list, inspect, edit and run.

Thin wrappers over the registry and ``EditSession``. Every command
opens the registry, does its work and shuts it down again, which
persists all property values.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from scriptforge.core.models.generation import GenerationResult, ResultState


def _open_registry(ctx: click.Context):
    """Open the registry, exiting with a message on config errors."""
    from scriptforge.core.config.loader import ConfigError
    from scriptforge.core.use_cases.bootstrap import open_registry

    config_path: Path | None = ctx.obj.get("config_path")
    try:
        return open_registry(config_path=config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def _resolve_index(registry, ref: str) -> int:
    """Turn an index or generator name into a catalogue index."""
    if ref.isdigit():
        index = int(ref)
        if registry.get_factory(index) is not None:
            return index
    else:
        for index, info in enumerate(registry):
            if ref in (info.type_name, info.generator.display_name):
                return index
    click.secho(f"❌ No generator '{ref}' (see 'scriptforge generators list')", fg="red")
    sys.exit(1)


def _echo_result(result: GenerationResult | None, as_json: bool) -> None:
    if result is None:
        if as_json:
            click.echo(json.dumps({"state": None}, indent=2))
        else:
            click.secho("⊘ Nothing to do", fg="yellow")
        return

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json", exclude={"artifact": {"content"}}), indent=2))
        return

    icon, color = {
        ResultState.SUCCESS: ("✅", "green"),
        ResultState.WARNING: ("⚠️ ", "yellow"),
        ResultState.ERROR: ("❌", "red"),
    }[result.state]
    click.secho(f"{icon} {result.message}", fg=color)
    if result.artifact:
        click.echo(f"   → {result.artifact.path}")


@click.group()
def generators() -> None:
    """Generators — list, configure and run code generators."""


# ── Observe ─────────────────────────────────────────────────────


@generators.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_generators(ctx: click.Context, as_json: bool) -> None:
    """List discovered generators."""
    with _open_registry(ctx) as registry:
        if as_json:
            click.echo(json.dumps({
                "generators": [
                    {"index": i, "type": info.type_name, "enabled": info.generator.enabled}
                    for i, info in enumerate(registry)
                ],
                "failures": [f.to_dict() for f in registry.failures],
            }, indent=2))
            return

        if registry.factory_count == 0:
            click.secho("No generators discovered.", fg="yellow")

        for index, info in enumerate(registry):
            marker = click.style("●", fg="green") if info.generator.enabled else click.style("○", fg="white")
            click.echo(f"   {index:>2} {marker} {info.type_name}")

        if registry.failures:
            click.echo()
            click.secho("   ⚠️  Failed to load:", fg="yellow")
            for failure in registry.failures:
                click.echo(f"     • {failure.type_name} ({failure.stage}): {failure.error}")


@generators.command("show")
@click.argument("generator")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, generator: str, as_json: bool) -> None:
    """Show a generator's properties and actions."""
    from scriptforge.core.session import EditSession

    with _open_registry(ctx) as registry:
        session = EditSession(registry)
        session.select(_resolve_index(registry, generator))
        info = session.info
        assert info is not None

        labels = session.action_labels()
        actions = [
            {"index": i, "label": label, "interactable": session.is_action_interactable(i)}
            for i, label in enumerate(labels)
        ]

        if as_json:
            click.echo(json.dumps({**info.to_dict(), "actions": actions}, indent=2))
            return

        click.secho(f"\n🔧 {info.generator.display_name}", fg="cyan", bold=True)
        click.echo(f"   {info.type_name}")
        click.echo()

        for descriptor, value in zip(info.descriptors, session.values):
            shown = "" if value is None else str(value)
            if descriptor.decorator:
                shown = f"{descriptor.decorator.prefix or ''}{shown}{descriptor.decorator.suffix or ''}"
            click.echo(f"   {descriptor.name:<16} [{descriptor.kind}] {shown}")
            if descriptor.tooltip:
                click.secho(f"   {'':<16} {descriptor.tooltip}", dim=True)

        if actions:
            click.echo()
            click.secho("   Actions:", fg="white", bold=True)
            for action in actions:
                state = "" if action["interactable"] else click.style(" (unavailable)", fg="yellow")
                click.echo(f"     {action['index']}. {action['label']}{state}")

        click.echo()


# ── Edit ────────────────────────────────────────────────────────


def _apply_assignments(ctx: click.Context, generator: str, assignments: list[tuple[str, str | bool]], as_json: bool) -> None:
    from scriptforge.core.session import DirtyResolution, EditSession

    with _open_registry(ctx) as registry:
        session = EditSession(registry)
        session.select(_resolve_index(registry, generator))

        for name, raw in assignments:
            try:
                descriptor = session.descriptor(name)
                value = raw if isinstance(raw, bool) else descriptor.kind.parse(raw)
            except (LookupError, ValueError) as e:
                session.deselect(DirtyResolution.DISCARD)
                click.secho(f"❌ {e}", fg="red")
                sys.exit(1)
            session.set_value(name, value)

        if not session.dirty:
            if as_json:
                click.echo(json.dumps({"applied": [], "errors": []}, indent=2))
            else:
                click.secho("⊘ No changes", fg="yellow")
            return

        report = session.apply()

        if as_json:
            click.echo(json.dumps(report.to_dict(), indent=2))
        else:
            for name in report.applied:
                click.secho(f"   ✓ {name} = {session.get_value(name)}", fg="green")
            for error in report.errors:
                click.secho(f"   ✗ {error}", fg="red")
            if report.hook_error:
                click.secho(f"   ✗ on_apply: {report.hook_error}", fg="red")

        if not report.ok:
            sys.exit(1)


@generators.command("set")
@click.argument("generator")
@click.argument("assignments", nargs=-1, required=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def set_properties(ctx: click.Context, generator: str, assignments: tuple[str, ...], as_json: bool) -> None:
    """Set properties and apply them.

    Examples:

        scriptforge generators set TagEnumGenerator output_path=Generated/Tags.cs

        scriptforge generators set 0 enabled=true namespace=Game
    """
    parsed: list[tuple[str, str | bool]] = []
    for item in assignments:
        name, sep, value = item.partition("=")
        if not sep or not name:
            click.secho(f"❌ Expected NAME=VALUE, got '{item}'", fg="red")
            sys.exit(1)
        parsed.append((name, value))
    _apply_assignments(ctx, generator, parsed, as_json)


@generators.command("enable")
@click.argument("generator")
@click.pass_context
def enable(ctx: click.Context, generator: str) -> None:
    """Enable a generator."""
    _apply_assignments(ctx, generator, [("enabled", True)], as_json=False)


@generators.command("disable")
@click.argument("generator")
@click.pass_context
def disable(ctx: click.Context, generator: str) -> None:
    """Disable a generator."""
    _apply_assignments(ctx, generator, [("enabled", False)], as_json=False)


# ── Act ─────────────────────────────────────────────────────────


@generators.command("action")
@click.argument("generator")
@click.argument("action", type=int)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def action(ctx: click.Context, generator: str, action: int, as_json: bool) -> None:
    """Invoke one of a generator's actions by number."""
    from scriptforge.core.session import EditSession

    with _open_registry(ctx) as registry:
        session = EditSession(registry)
        session.select(_resolve_index(registry, generator))

        labels = session.action_labels()
        if not 0 <= action < len(labels):
            click.secho(f"❌ No action {action} (available: {len(labels)})", fg="red")
            sys.exit(1)
        if not session.is_action_interactable(action):
            click.secho(f"❌ Action '{labels[action]}' is not available right now", fg="red")
            sys.exit(1)

        result = session.invoke_action(action)
        _echo_result(result, as_json)
        if result is not None and not result.ok:
            sys.exit(1)


@generators.command("run")
@click.argument("generator")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(ctx: click.Context, generator: str, as_json: bool) -> None:
    """Run a generator's generate() step."""
    with _open_registry(ctx) as registry:
        info = registry.get_factory(_resolve_index(registry, generator))
        assert info is not None

        if not info.generator.enabled:
            click.secho(f"⚠️  {info.generator.display_name} is disabled", fg="yellow")

        result = info.generator.generate()
        _echo_result(result, as_json)
        if not result.ok:
            sys.exit(1)
