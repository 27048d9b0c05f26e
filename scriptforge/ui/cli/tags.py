"""
CLI commands for tag identifiers — preview synthesis without writing files.
"""

from __future__ import annotations

import json

import click


@click.group()
def tags() -> None:
    """Tags — preview identifier synthesis for tag enums."""


@tags.command("synthesize")
@click.argument("names", nargs=-1)
@click.option("--render", is_flag=True, help="Print the rendered enum file.")
@click.option("--namespace", default="Project", help="Namespace for --render.")
@click.option("--enum-name", default="Tags", help="Enum type name for --render.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def synthesize_cmd(
    names: tuple[str, ...],
    render: bool,
    namespace: str,
    enum_name: str,
    as_json: bool,
) -> None:
    """Show the identifiers and values NAMES would get.

    Examples:

        scriptforge tags synthesize Player "3Enemy" Player ""

        scriptforge tags synthesize Player Enemy --render
    """
    from scriptforge.core.synthesis.identifiers import MAX_ENTRIES, render_enum, synthesize

    result = synthesize(list(names))

    if as_json:
        data = result.to_dict()
        if render:
            data["rendered"] = render_enum(result, namespace=namespace, enum_name=enum_name)
        click.echo(json.dumps(data, indent=2))
        return

    if render:
        click.echo(render_enum(result, namespace=namespace, enum_name=enum_name))
        return

    for entry in result.entries:
        renamed = click.style(f"  ← '{entry.original}'", dim=True) if entry.renamed else ""
        click.echo(f"   {entry.identifier:<24} = {entry.value}{renamed}")

    if result.truncated:
        click.echo()
        click.secho(
            f"   ⚠️  {result.total} names given, only the first {MAX_ENTRIES} are used",
            fg="yellow",
        )
