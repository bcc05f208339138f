"""
Outline generator — one summary file per schema file.

For ``a.proto`` in package ``p`` declaring message ``M`` it emits ``a.out``:

    <generated for message M in package p>

Options (comma-separated in the parameter string):
    suffix=EXT          output extension, default ``.out``
    insertion_points    emit ``@@protoc_insertion_point`` markers so later
                        passes (see type_index) can extend the file
    workers=N           render files on N threads; output order is unchanged

Unknown options are rejected: a typo must never silently change output.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from plugkit.core.config.parameters import parse_parameter
from plugkit.core.engine.context import GeneratorContext
from plugkit.core.errors import GeneratorError
from plugkit.core.models.descriptor import DescriptorSet, SchemaFile
from plugkit.core.models.features import Edition, Feature
from plugkit.generators.base import Generator, output_stem

logger = logging.getLogger(__name__)

# Marker the outline leaves at the end of every file.
OUTLINE_SCOPE = "outline_scope"


@dataclass(frozen=True)
class OutlineOptions:
    suffix: str = ".out"
    insertion_points: bool = False
    workers: int = 1

    @classmethod
    def parse(cls, parameter: str) -> OutlineOptions:
        """Parse the parameter string.

        Raises:
            GeneratorError: an unknown option or a bad value.
        """
        suffix = cls.suffix
        insertion_points = cls.insertion_points
        workers = cls.workers

        for key, value in parse_parameter(parameter):
            if key == "suffix":
                if not value or "/" in value:
                    raise GeneratorError(f"Invalid suffix: {value!r}")
                suffix = value
            elif key == "insertion_points":
                if value not in ("", "true", "false"):
                    raise GeneratorError(f"insertion_points takes no value, got {value!r}")
                insertion_points = value != "false"
            elif key == "workers":
                try:
                    workers = int(value)
                except ValueError:
                    raise GeneratorError(f"workers must be an integer, got {value!r}") from None
                if workers < 1:
                    raise GeneratorError(f"workers must be at least 1, got {workers}")
            else:
                raise GeneratorError(f"Unknown option: {key}")

        return cls(suffix=suffix, insertion_points=insertion_points, workers=workers)


def render_outline(schema_file: SchemaFile, options: OutlineOptions) -> str:
    """Render the outline text for one file."""
    lines: list[str] = []
    where = f" in package {schema_file.package}" if schema_file.package else ""

    for declared in schema_file.iter_types():
        lines.append(f"<generated for {declared.kind} {schema_file.relative_name(declared)}{where}>")
        if options.insertion_points and declared.kind == "message":
            lines.append(f"// @@protoc_insertion_point(class_scope:{declared.full_name})")

    if options.insertion_points:
        lines.append(f"// @@protoc_insertion_point({OUTLINE_SCOPE})")

    return "\n".join(lines) + "\n" if lines else ""


class OutlineGenerator(Generator):
    """Reference backend: emits a one-line-per-type outline of each file."""

    @property
    def name(self) -> str:
        return "outline"

    def supported_features(self) -> Feature:
        return Feature.PROTO3_OPTIONAL | Feature.SUPPORTS_EDITIONS

    @property
    def minimum_edition(self) -> int | None:
        return Edition.PROTO2

    @property
    def maximum_edition(self) -> int | None:
        return Edition.EDITION_2023

    def validate_parameter(self, parameter: str) -> tuple[bool, str]:
        try:
            OutlineOptions.parse(parameter)
        except GeneratorError as e:
            return False, str(e)
        return True, ""

    def generate(
        self,
        descriptor_set: DescriptorSet,
        files_to_generate: Sequence[str],
        parameter: str,
        context: GeneratorContext,
    ) -> None:
        options = OutlineOptions.parse(parameter)
        if options.workers == 1 or len(files_to_generate) < 2:
            super().generate(descriptor_set, files_to_generate, parameter, context)
            return

        files = []
        for name in files_to_generate:
            schema_file = descriptor_set.file_by_name(name)
            if schema_file is None:
                raise GeneratorError(f"No descriptor for requested file: {name}")
            files.append(schema_file)

        logger.debug("Rendering %d files on %d workers", len(files), options.workers)
        with ThreadPoolExecutor(max_workers=options.workers) as pool:
            rendered = list(pool.map(lambda f: render_outline(f, options), files))

        # Writes happen here, in request order, whatever order rendering finished in.
        for schema_file, text in zip(files, rendered):
            with context.open_full(output_stem(schema_file.name) + options.suffix) as out:
                out.write(text)

    def generate_file(
        self,
        schema_file: SchemaFile,
        descriptor_set: DescriptorSet,
        parameter: str,
        context: GeneratorContext,
    ) -> None:
        options = OutlineOptions.parse(parameter)
        with context.open_full(output_stem(schema_file.name) + options.suffix) as out:
            out.write(render_outline(schema_file, options))
