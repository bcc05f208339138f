"""
Plugin error taxonomy.

Every failure a plugin can report travels back to the orchestrator as a
single string in the response envelope. The classes exist so the library
can raise and test precise conditions; on the wire they collapse to
``str(exc)``.
"""

from __future__ import annotations


class PluginError(Exception):
    """Base class for failures reported inside a response envelope."""


class MalformedRequest(PluginError):
    """The request envelope could not be decoded."""


class TruncatedInput(MalformedRequest):
    """The input channel closed before the declared request length arrived."""


class MalformedDescriptor(PluginError):
    """The descriptor closure violates referential integrity."""


class DuplicateFile(PluginError):
    """The same full output file was opened twice in one invocation."""


class UnsupportedFeature(PluginError):
    """The request needs a capability the generator does not advertise."""


class GeneratorError(PluginError):
    """The generator rejected its input (bad parameter, unsupported construct)."""
