"""
Mock generator — universal test double for the generator contract.

Emits whatever outputs it was configured with, or fails on demand, and
logs every call it receives.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from plugkit.core.engine.context import GeneratorContext
from plugkit.core.errors import GeneratorError
from plugkit.core.models.descriptor import DescriptorSet, SchemaFile
from plugkit.core.models.features import Feature
from plugkit.generators.base import Generator


@dataclass(frozen=True)
class MockCall:
    """One recorded ``generate`` call."""

    files_to_generate: tuple[str, ...]
    parameter: str


class MockGenerator(Generator):
    """Configurable generator for tests.

    By default it succeeds and emits nothing. Outputs are written in the
    order they were configured: ``(name, None)`` keys open full files,
    ``(name, tag)`` keys open insertions.
    """

    def __init__(
        self,
        generator_name: str = "mock",
        features: Feature = Feature.NONE,
        minimum_edition: int | None = None,
        maximum_edition: int | None = None,
    ):
        self._name = generator_name
        self._features = features
        self._minimum_edition = minimum_edition
        self._maximum_edition = maximum_edition
        self._outputs: list[tuple[str, str | None, str]] = []
        self._error: str | None = None
        self._exception: BaseException | None = None
        self._invalid_parameter: str | None = None
        self._call_log: list[MockCall] = []

    @property
    def name(self) -> str:
        return self._name

    def supported_features(self) -> Feature:
        return self._features

    @property
    def minimum_edition(self) -> int | None:
        return self._minimum_edition

    @property
    def maximum_edition(self) -> int | None:
        return self._maximum_edition

    @property
    def call_log(self) -> list[MockCall]:
        """All generate calls this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def set_output(self, name: str, content: str, insertion_point: str | None = None) -> None:
        """Emit ``content`` as ``name`` (or at ``insertion_point`` in it)."""
        self._outputs.append((name, insertion_point, content))

    def set_failure(self, error: str = "Mock failure") -> None:
        """Fail with a GeneratorError after writing the configured outputs."""
        self._error = error

    def set_exception(self, exc: BaseException) -> None:
        """Raise an arbitrary exception after writing the configured outputs."""
        self._exception = exc

    def reject_parameter(self, message: str = "bad parameter") -> None:
        self._invalid_parameter = message

    def validate_parameter(self, parameter: str) -> tuple[bool, str]:
        if self._invalid_parameter is not None:
            return False, self._invalid_parameter
        return True, ""

    def generate(
        self,
        descriptor_set: DescriptorSet,
        files_to_generate: Sequence[str],
        parameter: str,
        context: GeneratorContext,
    ) -> None:
        self._call_log.append(MockCall(tuple(files_to_generate), parameter))

        for name, insertion_point, content in self._outputs:
            if insertion_point is None:
                handle = context.open_full(name)
            else:
                handle = context.open_insertion(name, insertion_point)
            with handle:
                handle.write(content)

        if self._exception is not None:
            raise self._exception
        if self._error is not None:
            raise GeneratorError(self._error)

    def generate_file(
        self,
        schema_file: SchemaFile,
        descriptor_set: DescriptorSet,
        parameter: str,
        context: GeneratorContext,
    ) -> None:
        # generate() is overridden; nothing is emitted per file.
        return None

    def reset(self) -> None:
        """Clear call log and configured behavior."""
        self._call_log.clear()
        self._outputs.clear()
        self._error = None
        self._exception = None
        self._invalid_parameter = None
