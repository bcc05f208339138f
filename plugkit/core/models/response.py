"""
Generation response and output files — the result contract.

A response is either a list of files or an error string, never both.
Modelled on the receipt pattern: build one with :meth:`success` or
:meth:`failure` and inspect it through ``ok`` / ``failed``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from plugkit.core.models.features import Feature


class OutputFile(BaseModel):
    """A file produced by a generator.

    Attributes:
        name:            Output path relative to the output directory.
        content:         Text to write (or to insert).
        insertion_point: ``None`` for a full file; otherwise the marker tag
                         in an already-generated ``name`` to insert at.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    content: str = ""
    insertion_point: str | None = None

    @property
    def is_insertion(self) -> bool:
        return self.insertion_point is not None


class GenerationResponse(BaseModel):
    """The plugin's answer to one request."""

    model_config = ConfigDict(frozen=True)

    files: tuple[OutputFile, ...] = ()
    error: str | None = None
    supported_features: int = 0
    minimum_edition: int | None = None
    maximum_edition: int | None = None

    @model_validator(mode="after")
    def _error_excludes_files(self) -> GenerationResponse:
        if self.error is not None:
            if not self.error:
                raise ValueError("error message must not be empty")
            if self.files:
                raise ValueError("a failed response cannot carry files")
        return self

    @property
    def ok(self) -> bool:
        """Whether generation succeeded."""
        return self.error is None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def features(self) -> Feature:
        return Feature(self.supported_features)

    @classmethod
    def success(
        cls,
        files: list[OutputFile] | tuple[OutputFile, ...] = (),
        supported_features: int = 0,
        **kwargs: Any,
    ) -> GenerationResponse:
        """Create a success response."""
        return cls(
            files=tuple(files),
            supported_features=int(supported_features),
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        error: str,
        supported_features: int = 0,
        **kwargs: Any,
    ) -> GenerationResponse:
        """Create a failure response. An empty message is replaced."""
        return cls(
            error=error or "unknown error",
            supported_features=int(supported_features),
            **kwargs,
        )
