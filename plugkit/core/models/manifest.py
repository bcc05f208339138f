"""
Plugin manifest — the identity and wiring of one generator plugin.

Loaded from plugin.yml. A manifest names the plugin, pins its version,
points at the registry backend that implements it, and declares which
other plugins must run first (because it inserts into their output).
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class Dependency(BaseModel):
    """Another plugin that must run before this one (``name:version``)."""

    plugin: str

    @property
    def name(self) -> str:
        return self.plugin.partition(":")[0]

    @property
    def version(self) -> str:
        return self.plugin.partition(":")[2]


class PluginManifest(BaseModel):
    """A plugin declared in plugin.yml."""

    version: str = "v1"

    name: str
    plugin_version: str
    source_url: str = ""
    description: str = ""
    generator: str = ""
    output_languages: list[str] = Field(default_factory=list)
    deps: list[Dependency] = Field(default_factory=list)
    default_options: list[str] = Field(default_factory=list)

    @field_validator("plugin_version")
    @classmethod
    def _semver_like(cls, v: str) -> str:
        if not v.startswith("v"):
            raise ValueError(f"plugin_version must look like v1.2.3, got {v!r}")
        return v

    @property
    def identity(self) -> str:
        """``name:plugin_version``, the form dependencies refer to."""
        return f"{self.name}:{self.plugin_version}"

    @property
    def default_parameter(self) -> str:
        """Default options joined into a parameter string."""
        return ",".join(self.default_options)

    def __str__(self) -> str:
        return self.identity
