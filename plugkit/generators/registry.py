"""
Generator registry — the static table of built-in backends.

Backend selection happens outside the plugin: the orchestrator picks which
executable (or which ``plugkit run NAME``) to spawn. The registry is only
the lookup table behind that choice; nothing is loaded dynamically.
"""

from __future__ import annotations

import logging
from typing import Any

from plugkit.core.models.features import edition_name, feature_names
from plugkit.generators.base import Generator

logger = logging.getLogger(__name__)


class GeneratorRegistry:
    """Name → generator lookup."""

    def __init__(self) -> None:
        self._generators: dict[str, Generator] = {}

    def register(self, generator: Generator) -> None:
        """Register a generator.

        Args:
            generator: The generator instance to register.
        """
        name = generator.name
        if name in self._generators:
            logger.warning("Overwriting existing generator: %s", name)
        self._generators[name] = generator
        logger.debug("Registered generator: %s", name)

    def unregister(self, name: str) -> None:
        """Remove a generator from the registry."""
        self._generators.pop(name, None)

    def get(self, name: str) -> Generator | None:
        """Look up a generator by name."""
        return self._generators.get(name)

    def list_generators(self) -> list[str]:
        """List all registered generator names, sorted."""
        return sorted(self._generators)

    def generator_status(self) -> dict[str, dict[str, Any]]:
        """Describe every registered generator's advertised capabilities."""
        status = {}
        for name in self.list_generators():
            generator = self._generators[name]
            features = int(generator.supported_features())
            lo, hi = generator.minimum_edition, generator.maximum_edition
            status[name] = {
                "name": name,
                "type": generator.__class__.__name__,
                "supported_features": features,
                "features": feature_names(features),
                "editions": (
                    f"{edition_name(lo)}..{edition_name(hi)}"
                    if lo is not None and hi is not None else None
                ),
            }
        return status


def default_registry() -> GeneratorRegistry:
    """Registry holding the built-in backends."""
    from plugkit.generators.outline import OutlineGenerator
    from plugkit.generators.type_index import TypeIndexGenerator

    registry = GeneratorRegistry()
    registry.register(OutlineGenerator())
    registry.register(TypeIndexGenerator())
    return registry
