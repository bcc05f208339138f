"""
Manifest loader — reads plugin.yml files into PluginManifest models.

A directory tree of plugins holds one plugin.yml per plugin version.
``find_all`` returns them in dependency order: a plugin that inserts into
another plugin's output comes after it, which is the order the passes of a
multi-plugin pipeline have to run in.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

import yaml

from plugkit.core.models.manifest import PluginManifest

logger = logging.getLogger(__name__)

# Default manifest filename
MANIFEST_FILE = "plugin.yml"

# Directories never searched for manifests
_SKIP_DIRS = {"testdata", "vendor"}

_SEMVER = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-([0-9A-Za-z.-]+))?(?:\+.*)?$")


class ConfigError(Exception):
    """Raised when a plugin manifest is invalid or missing."""


def find_manifest_file(start_dir: Path | None = None) -> Path | None:
    """Search for plugin.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to plugin.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / MANIFEST_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_manifest(path: Path | None = None) -> PluginManifest:
    """Load and validate a plugin manifest.

    Args:
        path: Explicit path to plugin.yml. If None, searches upward.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_manifest_file()

    if path is None:
        raise ConfigError(f"No {MANIFEST_FILE} found. Specify one with --manifest.")

    if not path.is_file():
        raise ConfigError(f"Manifest not found: {path}")

    logger.debug("Loading plugin manifest from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        manifest = PluginManifest.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid plugin manifest {path}: {e}") from e

    logger.info("Loaded plugin %s", manifest.identity)
    return manifest


def _prerelease_key(pre: str) -> tuple:
    # Numeric identifiers compare as numbers and sort before alphanumeric ones.
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in pre.split(".")
    )


def semver_key(version: str) -> tuple:
    """Sort key for ``v1.2.3[-pre]`` versions, in semver precedence.

    A prerelease sorts before its release; ``rc.9`` sorts before ``rc.10``.
    """
    match = _SEMVER.match(version)
    if match is None:
        return ((0, 0, 0), 0, ((1, 0, version),))
    major, minor, patch, pre = match.groups()
    numbers = (int(major), int(minor or 0), int(patch or 0))
    if pre is None:
        return (numbers, 1, ())
    return (numbers, 0, _prerelease_key(pre))


def sort_by_dependency_order(manifests: list[PluginManifest]) -> list[PluginManifest]:
    """Order manifests so each plugin follows the plugins it depends on.

    Input order is kept among plugins whose dependencies are all met.

    Raises:
        ConfigError: a dependency is not ``name:version``, or some
            dependencies can never be satisfied (missing or cyclic).
    """
    pending = list(manifests)
    resolved: list[PluginManifest] = []
    resolved_ids: set[str] = set()

    while pending:
        unresolved = []
        for manifest in pending:
            ready = True
            for dep in manifest.deps:
                if ":" not in dep.plugin:
                    raise ConfigError(f"Invalid plugin dependency: {dep.plugin}")
                if dep.plugin not in resolved_ids:
                    ready = False
                    break
            if ready:
                resolved.append(manifest)
                resolved_ids.add(manifest.identity)
            else:
                unresolved.append(manifest)

        if len(unresolved) == len(pending):
            names = ", ".join(m.identity for m in unresolved)
            raise ConfigError(f"Unable to resolve plugin dependencies for: {names}")
        pending = unresolved

    return resolved


def find_all(root: Path) -> list[PluginManifest]:
    """Load every plugin.yml under ``root``, in dependency order.

    Hidden directories, ``testdata`` and ``vendor`` are skipped. Before
    dependency ordering, manifests are sorted by name and then version.
    """
    root = root.resolve()
    manifests: list[PluginManifest] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames if not d.startswith(".") and d not in _SKIP_DIRS
        )
        if MANIFEST_FILE in filenames:
            manifests.append(load_manifest(Path(dirpath) / MANIFEST_FILE))

    manifests.sort(key=lambda m: (m.name, semver_key(m.plugin_version)))
    logger.debug("Found %d plugin manifests under %s", len(manifests), root)
    return sort_by_dependency_order(manifests)
