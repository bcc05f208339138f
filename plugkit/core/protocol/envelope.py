"""
Request/response envelope — the bytes exchanged over stdin/stdout.

The wire format is protoc's own ``CodeGeneratorRequest`` /
``CodeGeneratorResponse`` (google/protobuf/compiler/plugin.proto), so any
protoc-compatible orchestrator can drive these plugins. Protobuf gives the
compatibility rules for free: unknown fields are skipped, absent optional
fields read as unset.
"""

from __future__ import annotations

import logging

from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from plugkit.core.errors import MalformedRequest
from plugkit.core.models.request import CompilerVersion, GenerationRequest
from plugkit.core.models.response import GenerationResponse, OutputFile
from plugkit.core.protocol.descriptors import (
    descriptor_set_from_protos,
    schema_file_to_proto,
)

logger = logging.getLogger(__name__)


def decode_request(data: bytes) -> GenerationRequest:
    """Decode a serialized CodeGeneratorRequest.

    An unset parameter decodes to ``""`` and an unset compiler version to
    ``None``.

    Raises:
        MalformedRequest: the bytes are not a CodeGeneratorRequest.
        MalformedDescriptor: the embedded descriptors are inconsistent.
    """
    try:
        proto = plugin_pb2.CodeGeneratorRequest.FromString(data)
    except DecodeError as e:
        raise MalformedRequest(f"Failed to parse CodeGeneratorRequest: {e}") from e

    files_to_generate = tuple(proto.file_to_generate)
    descriptor_set = descriptor_set_from_protos(proto.proto_file, files_to_generate)

    compiler_version = None
    if proto.HasField("compiler_version"):
        v = proto.compiler_version
        compiler_version = CompilerVersion(
            major=v.major, minor=v.minor, patch=v.patch, suffix=v.suffix,
        )

    request = GenerationRequest(
        files_to_generate=files_to_generate,
        parameter=proto.parameter if proto.HasField("parameter") else "",
        descriptor_set=descriptor_set,
        compiler_version=compiler_version,
    )
    logger.debug(
        "Decoded request: %d file(s) to generate, parameter=%r, compiler=%s",
        len(files_to_generate), request.parameter, compiler_version or "unknown",
    )
    return request


def encode_request(request: GenerationRequest) -> bytes:
    """Serialize a request the way an orchestrator would."""
    proto = plugin_pb2.CodeGeneratorRequest()
    proto.file_to_generate.extend(request.files_to_generate)
    if request.parameter:
        proto.parameter = request.parameter
    proto.proto_file.extend(schema_file_to_proto(f) for f in request.descriptor_set.files)
    if request.compiler_version is not None:
        v = request.compiler_version
        proto.compiler_version.major = v.major
        proto.compiler_version.minor = v.minor
        proto.compiler_version.patch = v.patch
        if v.suffix:
            proto.compiler_version.suffix = v.suffix
    return proto.SerializeToString(deterministic=True)


def encode_response(response: GenerationResponse) -> bytes:
    """Serialize a response for the orchestrator."""
    proto = plugin_pb2.CodeGeneratorResponse()
    if response.supported_features:
        proto.supported_features = response.supported_features
    if response.minimum_edition is not None:
        proto.minimum_edition = response.minimum_edition
    if response.maximum_edition is not None:
        proto.maximum_edition = response.maximum_edition

    if response.error is not None:
        proto.error = response.error
    else:
        for out in response.files:
            entry = proto.file.add(name=out.name, content=out.content)
            if out.insertion_point is not None:
                entry.insertion_point = out.insertion_point
    return proto.SerializeToString(deterministic=True)


def decode_response(data: bytes) -> GenerationResponse:
    """Decode a serialized CodeGeneratorResponse.

    Files accompanying an error are dropped: partial output from a failed
    invocation is never valid.

    Raises:
        MalformedRequest: the bytes are not a CodeGeneratorResponse.
    """
    try:
        proto = plugin_pb2.CodeGeneratorResponse.FromString(data)
    except DecodeError as e:
        raise MalformedRequest(f"Failed to parse CodeGeneratorResponse: {e}") from e

    editions = {
        "minimum_edition": proto.minimum_edition if proto.HasField("minimum_edition") else None,
        "maximum_edition": proto.maximum_edition if proto.HasField("maximum_edition") else None,
    }

    if proto.error:
        if len(proto.file):
            logger.warning("Discarding %d file(s) from a failed response", len(proto.file))
        return GenerationResponse.failure(
            proto.error, supported_features=proto.supported_features, **editions,
        )

    files = [
        OutputFile(
            name=f.name,
            content=f.content,
            insertion_point=f.insertion_point if f.HasField("insertion_point") else None,
        )
        for f in proto.file
    ]
    return GenerationResponse.success(
        files, supported_features=proto.supported_features, **editions,
    )
