"""
CLI commands for plugin manifests.

Thin wrappers over ``plugkit.core.config.loader``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


@click.group("manifest")
def manifest() -> None:
    """Plugin manifests — validation and pass ordering."""


@manifest.command("check")
@click.argument("path", type=click.Path(path_type=Path), required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def check(path: Path | None, as_json: bool) -> None:
    """Validate a plugin.yml (default: search upward from cwd)."""
    from plugkit.core.config.loader import ConfigError, load_manifest
    from plugkit.generators.registry import default_registry

    try:
        loaded = load_manifest(path)
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"valid": False, "errors": [str(e)]}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    warnings = []
    if loaded.generator and default_registry().get(loaded.generator) is None:
        warnings.append(f"generator '{loaded.generator}' is not a built-in backend")

    if as_json:
        click.echo(json.dumps({
            "valid": True,
            "plugin": loaded.model_dump(mode="json"),
            "warnings": warnings,
        }, indent=2))
        return

    click.secho("✅ Manifest is valid", fg="green", bold=True)
    click.echo(f"   Plugin: {loaded.identity}")
    if loaded.generator:
        click.echo(f"   Generator: {loaded.generator}")
    if loaded.deps:
        click.echo(f"   Depends on: {', '.join(d.plugin for d in loaded.deps)}")
    for warn in warnings:
        click.secho(f"   ⚠️  {warn}", fg="yellow")


@manifest.command("order")
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def order(root: Path, as_json: bool) -> None:
    """List every plugin under ROOT in the order its passes must run."""
    from plugkit.core.config.loader import ConfigError, find_all

    try:
        manifests = find_all(root)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([m.identity for m in manifests], indent=2))
        return

    for m in manifests:
        click.echo(m.identity)
