"""Generators — code generator backends behind the plugin protocol.

Public re-exports for convenient access.
"""

from plugkit.generators.base import Generator
from plugkit.generators.mock import MockGenerator
from plugkit.generators.outline import OutlineGenerator
from plugkit.generators.registry import GeneratorRegistry, default_registry
from plugkit.generators.type_index import TypeIndexGenerator

__all__ = [
    "Generator",
    "GeneratorRegistry",
    "MockGenerator",
    "OutlineGenerator",
    "TypeIndexGenerator",
    "default_registry",
]
