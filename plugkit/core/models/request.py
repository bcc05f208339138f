"""
Generation request — what the compiler asks a plugin to do.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator

from plugkit.core.models.descriptor import DescriptorSet, SchemaFile


class CompilerVersion(BaseModel):
    """Version triple of the orchestrating compiler (e.g. protoc 25.2)."""

    model_config = ConfigDict(frozen=True)

    major: int = 0
    minor: int = 0
    patch: int = 0
    suffix: str = ""

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        return f"{text}-{self.suffix}" if self.suffix else text

    def at_least(self, major: int, minor: int = 0, patch: int = 0) -> bool:
        """Whether this version is ``major.minor.patch`` or newer."""
        return (self.major, self.minor, self.patch) >= (major, minor, patch)


class GenerationRequest(BaseModel):
    """One plugin invocation's input.

    ``parameter`` is opaque here; backends parse it themselves (by
    convention comma-separated ``key=value`` pairs). A missing
    ``compiler_version`` means the compiler did not state one.
    """

    model_config = ConfigDict(frozen=True)

    files_to_generate: tuple[str, ...] = ()
    parameter: str = ""
    descriptor_set: DescriptorSet = DescriptorSet()
    compiler_version: CompilerVersion | None = None

    @model_validator(mode="after")
    def _requested_matches_set(self) -> GenerationRequest:
        if self.descriptor_set.requested != self.files_to_generate:
            raise ValueError(
                "files_to_generate must match the descriptor set's requested files"
            )
        return self

    @property
    def files(self) -> tuple[SchemaFile, ...]:
        """The SchemaFiles named by ``files_to_generate``."""
        return self.descriptor_set.requested_files

    @classmethod
    def build(
        cls,
        files: list[SchemaFile] | tuple[SchemaFile, ...],
        files_to_generate: list[str] | tuple[str, ...],
        parameter: str = "",
        compiler_version: CompilerVersion | None = None,
    ) -> GenerationRequest:
        """Validate the closure and assemble a request around it."""
        descriptor_set = DescriptorSet.from_files(files, files_to_generate)
        return cls(
            files_to_generate=tuple(files_to_generate),
            parameter=parameter,
            descriptor_set=descriptor_set,
            compiler_version=compiler_version,
        )
