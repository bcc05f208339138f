"""
Type index generator — a second pass that extends outline output.

Emits one full file listing every type declared by the requested files,
and appends a ``// type NAME`` line per type into each file's outline at
the ``outline_scope`` insertion point. Run it after the outline generator
was invoked with ``insertion_points``.

Options:
    target_suffix=EXT   extension of the outline files; falls back to the
                        outline pass's ``suffix`` option, then ``.out``
    index=NAME          name of the index file, default ``types.idx``

Unknown options are ignored (logged at DEBUG), so this pass can share a
parameter string with the outline pass.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from plugkit.core.config.parameters import parse_parameter
from plugkit.core.engine.context import GeneratorContext
from plugkit.core.models.descriptor import DescriptorSet, SchemaFile
from plugkit.generators.base import Generator, output_stem
from plugkit.generators.outline import OUTLINE_SCOPE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypeIndexOptions:
    target_suffix: str = ".out"
    index: str = "types.idx"

    @classmethod
    def parse(cls, parameter: str) -> TypeIndexOptions:
        values = {"target_suffix": None, "index": cls.index}
        outline_suffix = None
        for key, value in parse_parameter(parameter):
            if key in values and value:
                values[key] = value
            elif key == "suffix" and value:
                outline_suffix = value
            else:
                logger.debug("type_index: ignoring option %r", key)
        if values["target_suffix"] is None:
            values["target_suffix"] = outline_suffix or cls.target_suffix
        return cls(**values)


class TypeIndexGenerator(Generator):
    """Index every declared type and annotate the outline files."""

    @property
    def name(self) -> str:
        return "type_index"

    def generate(
        self,
        descriptor_set: DescriptorSet,
        files_to_generate: Sequence[str],
        parameter: str,
        context: GeneratorContext,
    ) -> None:
        options = TypeIndexOptions.parse(parameter)
        index = context.open_full(options.index)
        try:
            super().generate(descriptor_set, files_to_generate, parameter, context)
            for name in files_to_generate:
                schema_file = descriptor_set.file_by_name(name)
                for declared in schema_file.iter_types():
                    index.write(f"{declared.full_name}\t{declared.kind}\t{schema_file.name}\n")
        finally:
            index.close()

    def generate_file(
        self,
        schema_file: SchemaFile,
        descriptor_set: DescriptorSet,
        parameter: str,
        context: GeneratorContext,
    ) -> None:
        options = TypeIndexOptions.parse(parameter)
        target = output_stem(schema_file.name) + options.target_suffix
        with context.open_insertion(target, OUTLINE_SCOPE) as out:
            for declared in schema_file.iter_types():
                out.write(f"// type {declared.full_name}\n")
