"""
Generator base — the contract between the plugin driver and a backend.

This defines the abstract interface every code generator implements. The
driver only talks to generators through this contract and knows nothing
about what they emit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from plugkit.core.engine.context import GeneratorContext
from plugkit.core.errors import GeneratorError
from plugkit.core.models.descriptor import DescriptorSet, SchemaFile
from plugkit.core.models.features import Feature


class Generator(ABC):
    """Abstract base class for all code generators.

    A generator is called once per plugin process. It reports failure by
    raising ``GeneratorError``; anything else it raises is caught by the
    driver and reported the same way.

    To create a new generator:
        1. Subclass Generator
        2. Implement name and generate_file (or override generate)
        3. Advertise supported_features / edition bounds if it handles them
        4. Register it in the GeneratorRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The generator identifier (e.g., 'outline')."""

    def supported_features(self) -> Feature:
        """Optional protocol capabilities this generator understands."""
        return Feature.NONE

    @property
    def minimum_edition(self) -> int | None:
        """Oldest edition accepted, or None when editions are unsupported."""
        return None

    @property
    def maximum_edition(self) -> int | None:
        """Newest edition accepted, or None when editions are unsupported."""
        return None

    def validate_parameter(self, parameter: str) -> tuple[bool, str]:
        """Check the parameter string before generation starts.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """
        return True, ""

    def generate(
        self,
        descriptor_set: DescriptorSet,
        files_to_generate: Sequence[str],
        parameter: str,
        context: GeneratorContext,
    ) -> None:
        """Produce output for every requested file.

        The default calls :meth:`generate_file` once per requested file, in
        request order. Must be pure: the same inputs always give the same
        output.

        Raises:
            GeneratorError: the input cannot be generated for this target.
        """
        for name in files_to_generate:
            schema_file = descriptor_set.file_by_name(name)
            if schema_file is None:
                raise GeneratorError(f"No descriptor for requested file: {name}")
            self.generate_file(schema_file, descriptor_set, parameter, context)

    @abstractmethod
    def generate_file(
        self,
        schema_file: SchemaFile,
        descriptor_set: DescriptorSet,
        parameter: str,
        context: GeneratorContext,
    ) -> None:
        """Produce output for one file."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


def output_stem(file_name: str) -> str:
    """``foo/bar.proto`` → ``foo/bar``; other extensions are kept."""
    return file_name.removesuffix(".proto")
