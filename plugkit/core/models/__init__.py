"""
Domain models — pydantic types for the plugin protocol.

All models are re-exported here for convenient access:

    from plugkit.core.models import DescriptorSet, GenerationRequest, OutputFile
"""

from plugkit.core.models.descriptor import (
    DeclaredType,
    DescriptorSet,
    EnumType,
    EnumValueInfo,
    MessageField,
    MessageType,
    MethodInfo,
    SchemaFile,
    ServiceType,
)
from plugkit.core.models.features import Edition, Feature
from plugkit.core.models.manifest import Dependency, PluginManifest
from plugkit.core.models.request import CompilerVersion, GenerationRequest
from plugkit.core.models.response import GenerationResponse, OutputFile

__all__ = [
    # request.py
    "CompilerVersion",
    # descriptor.py
    "DeclaredType",
    # manifest.py
    "Dependency",
    "DescriptorSet",
    # features.py
    "Edition",
    "EnumType",
    "EnumValueInfo",
    "Feature",
    "GenerationRequest",
    # response.py
    "GenerationResponse",
    "MessageField",
    "MessageType",
    "MethodInfo",
    "OutputFile",
    "PluginManifest",
    "SchemaFile",
    "ServiceType",
]
