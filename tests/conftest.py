"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest
from google.protobuf import descriptor_pb2

from plugkit.core.models.descriptor import MessageType, SchemaFile
from plugkit.core.models.request import CompilerVersion, GenerationRequest


def _file_proto(
    name: str,
    package: str = "",
    messages=(),
    enums=(),
    services=(),
    deps=(),
    syntax: str = "proto3",
    edition: int | None = None,
) -> descriptor_pb2.FileDescriptorProto:
    """Build a FileDescriptorProto; messages may be names or DescriptorProtos."""
    proto = descriptor_pb2.FileDescriptorProto(name=name)
    if package:
        proto.package = package
    if syntax:
        proto.syntax = syntax
    if edition is not None:
        proto.edition = edition
    proto.dependency.extend(deps)
    for message in messages:
        if isinstance(message, str):
            proto.message_type.add(name=message)
        else:
            proto.message_type.append(message)
    for enum_name in enums:
        enum = proto.enum_type.add(name=enum_name)
        enum.value.add(name=f"{enum_name.upper()}_UNSPECIFIED", number=0)
    for service_name in services:
        proto.service.add(name=service_name)
    return proto


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def file_proto():
    """Factory for FileDescriptorProtos."""
    return _file_proto


@pytest.fixture
def schema_a() -> SchemaFile:
    """``a.proto`` in package ``p`` declaring message ``M``."""
    return SchemaFile(
        name="a.proto",
        package="p",
        syntax="proto3",
        messages=(MessageType(name="M", full_name="p.M"),),
    )


@pytest.fixture
def simple_request(schema_a: SchemaFile) -> GenerationRequest:
    """Request to generate a.proto with no parameter."""
    return GenerationRequest.build([schema_a], ["a.proto"])


@pytest.fixture
def versioned_request(schema_a: SchemaFile) -> GenerationRequest:
    dep = SchemaFile(
        name="dep.proto",
        package="p.dep",
        messages=(MessageType(name="D", full_name="p.dep.D"),),
    )
    a = schema_a.model_copy(update={"dependencies": ("dep.proto",)})
    return GenerationRequest.build(
        [dep, a],
        ["a.proto"],
        parameter="insertion_points",
        compiler_version=CompilerVersion(major=25, minor=2, patch=0),
    )


@pytest.fixture
def restore_logging():
    """Put the root logger back the way the test found it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
