"""
plugkit — CLI entrypoint.

Usage:
    python -m plugkit.main --help
    plugkit run outline < request.bin > response.bin
    plugkit invoke outline descriptors.pb -f a.proto
    plugkit manifest check plugins/outline/plugin.yml

The ``protoc-gen-outline`` / ``protoc-gen-typeindex`` executables are the
same backends wired straight to the plugin driver, for use with
``protoc --outline_out=...``.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from plugkit import __version__
from plugkit.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    ENV_LEVEL,
    setup_logging,
    setup_logging_from_env,
)


@click.group()
@click.version_option(version=__version__, prog_name="plugkit")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """plugkit — protoc code generator plugins and tooling."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get(ENV_LEVEL, "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )


def _get_generator(name: str):
    from plugkit.generators.registry import default_registry

    registry = default_registry()
    generator = registry.get(name)
    if generator is None:
        known = ", ".join(registry.list_generators())
        click.secho(f"❌ Unknown generator '{name}' (known: {known})", fg="red", err=True)
        sys.exit(1)
    return generator


@cli.command("run")
@click.argument("generator_name")
def run_plugin(generator_name: str) -> None:
    """Act as a protoc plugin: request on stdin, response on stdout."""
    from plugkit.core.engine.driver import PluginDriver

    driver = PluginDriver(_get_generator(generator_name))
    code = driver.run(sys.stdin.buffer, sys.stdout.buffer)
    sys.exit(code)


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def list_generators(as_json: bool) -> None:
    """List the built-in generators and what they support."""
    from plugkit.generators.registry import default_registry

    status = default_registry().generator_status()

    if as_json:
        click.echo(json.dumps(status, indent=2))
        return

    click.secho("🧩 Generators:", fg="cyan", bold=True)
    for name, info in status.items():
        features = ", ".join(info["features"]) or "none"
        click.echo(f"   • {name} ({info['type']})")
        click.echo(f"       features: {features}")
        if info["editions"]:
            click.echo(f"       editions: {info['editions']}")


@cli.command()
@click.argument("generator_name")
@click.argument(
    "descriptor_set",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--file", "-f", "files", multiple=True, help="File to generate (default: all).")
@click.option("--param", "-p", "parameter", default="", help="Generator parameter string.")
@click.option(
    "--manifest",
    "manifest_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help="plugin.yml whose default options are prepended to --param.",
)
@click.option(
    "--response",
    "response_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write the serialized response here.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def invoke(
    generator_name: str,
    descriptor_set: Path,
    files: tuple[str, ...],
    parameter: str,
    manifest_path: Path | None,
    response_path: Path | None,
    as_json: bool,
) -> None:
    """Run a generator in-process against a FileDescriptorSet.

    DESCRIPTOR_SET is the output of ``protoc --include_imports
    --descriptor_set_out=...``. The request goes through the same wire
    encoding a real protoc invocation would use.
    """
    from plugkit.core.config.loader import ConfigError, load_manifest
    from plugkit.core.config.parameters import merge_parameters
    from plugkit.core.digest import output_digest
    from plugkit.core.engine.driver import PluginDriver
    from plugkit.core.errors import MalformedDescriptor
    from plugkit.core.models.request import GenerationRequest
    from plugkit.core.protocol.descriptors import decode_descriptor_set
    from plugkit.core.protocol.envelope import encode_request, encode_response

    generator = _get_generator(generator_name)

    if manifest_path is not None:
        try:
            manifest = load_manifest(manifest_path)
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(1)
        parameter = merge_parameters(manifest.default_parameter, parameter)

    try:
        closure = decode_descriptor_set(descriptor_set.read_bytes())
        request = GenerationRequest.build(
            list(closure.files),
            list(files) or [f.name for f in closure.files],
            parameter=parameter,
        )
    except MalformedDescriptor as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    response = PluginDriver(generator).handle(encode_request(request))

    if response_path is not None:
        response_path.write_bytes(encode_response(response))

    digest = output_digest(response.files) if response.ok else None

    if as_json:
        click.echo(json.dumps({
            "generator": generator.name,
            "ok": response.ok,
            "error": response.error,
            "files": [
                {
                    "name": f.name,
                    "insertion_point": f.insertion_point,
                    "size": len(f.content),
                }
                for f in response.files
            ],
            "digest": digest,
        }, indent=2))
        sys.exit(0 if response.ok else 1)

    if response.failed:
        click.secho(f"❌ {generator.name}: {response.error}", fg="red")
        sys.exit(1)

    click.secho(f"✅ {generator.name}: {len(response.files)} output record(s)", fg="green", bold=True)
    for f in response.files:
        tag = f"  @{f.insertion_point}" if f.is_insertion else ""
        click.echo(f"   • {f.name}{tag}  ({len(f.content)} chars)")
    click.echo(f"   digest: {digest}")


# ── Plugin executables ──────────────────────────────────────────


def outline_plugin() -> None:
    """``protoc-gen-outline``."""
    from plugkit.core.engine.driver import plugin_main
    from plugkit.generators.outline import OutlineGenerator

    setup_logging_from_env()
    sys.exit(plugin_main(OutlineGenerator()))


def type_index_plugin() -> None:
    """``protoc-gen-typeindex``."""
    from plugkit.core.engine.driver import plugin_main
    from plugkit.generators.type_index import TypeIndexGenerator

    setup_logging_from_env()
    sys.exit(plugin_main(TypeIndexGenerator()))


# ── Register sub-command groups ─────────────────────────────────

from plugkit.ui.cli.manifest import manifest  # noqa: E402

cli.add_command(manifest)


if __name__ == "__main__":
    cli()
