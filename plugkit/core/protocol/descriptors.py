"""
Descriptor codec — FileDescriptorProto <-> SchemaFile.

protoc describes each parsed file as a ``google.protobuf.FileDescriptorProto``.
This module lifts those messages into the frozen descriptor model (computing
fully-qualified names on the way) and lowers them back for re-encoding.
Only the structure generators need is carried over; options and source
locations are dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from google.protobuf import descriptor_pb2
from google.protobuf.message import DecodeError

from plugkit.core.errors import MalformedDescriptor
from plugkit.core.models.descriptor import (
    DescriptorSet,
    EnumType,
    EnumValueInfo,
    MessageField,
    MessageType,
    MethodInfo,
    SchemaFile,
    ServiceType,
)

logger = logging.getLogger(__name__)

_FieldProto = descriptor_pb2.FieldDescriptorProto


def _qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


def _short(wrapper, value: int, prefix: str, where: str) -> str:
    """``TYPE_INT32`` → ``int32``; unknown numbers are rejected."""
    try:
        return wrapper.Name(value).removeprefix(prefix).lower()
    except ValueError as e:
        raise MalformedDescriptor(f"{where}: unknown enum value {value}") from e


def _long(wrapper, value: str, prefix: str) -> int:
    return wrapper.Value(prefix + value.upper())


# ── Decoding ────────────────────────────────────────────────────────


def _field_from_proto(proto: _FieldProto, where: str) -> MessageField:
    if not proto.name:
        raise MalformedDescriptor(f"{where}: field without a name")
    where = f"{where}.{proto.name}"
    if not proto.HasField("number"):
        raise MalformedDescriptor(f"{where}: field without a number")

    label = _short(_FieldProto.Label, proto.label, "LABEL_", where) if proto.HasField("label") else ""
    type_ = _short(_FieldProto.Type, proto.type, "TYPE_", where) if proto.HasField("type") else ""

    return MessageField(
        name=proto.name,
        number=proto.number,
        label=label,
        type=type_,
        type_name=proto.type_name,
        json_name=proto.json_name,
        oneof_index=proto.oneof_index if proto.HasField("oneof_index") else None,
        proto3_optional=proto.proto3_optional,
    )


def _enum_from_proto(proto: descriptor_pb2.EnumDescriptorProto, scope: str, where: str) -> EnumType:
    if not proto.name:
        raise MalformedDescriptor(f"{where}: enum without a name")
    full_name = _qualify(scope, proto.name)
    values = []
    for value in proto.value:
        if not value.name:
            raise MalformedDescriptor(f"{where}: enum value without a name in {full_name}")
        values.append(EnumValueInfo(name=value.name, number=value.number))
    return EnumType(name=proto.name, full_name=full_name, values=tuple(values))


def _message_from_proto(proto: descriptor_pb2.DescriptorProto, scope: str, where: str) -> MessageType:
    if not proto.name:
        raise MalformedDescriptor(f"{where}: message without a name")
    full_name = _qualify(scope, proto.name)
    member = f"{where}:{full_name}"
    return MessageType(
        name=proto.name,
        full_name=full_name,
        fields=tuple(_field_from_proto(f, member) for f in proto.field),
        nested_types=tuple(_message_from_proto(m, full_name, where) for m in proto.nested_type),
        enum_types=tuple(_enum_from_proto(e, full_name, where) for e in proto.enum_type),
        oneofs=tuple(o.name for o in proto.oneof_decl),
    )


def _service_from_proto(proto: descriptor_pb2.ServiceDescriptorProto, scope: str, where: str) -> ServiceType:
    if not proto.name:
        raise MalformedDescriptor(f"{where}: service without a name")
    full_name = _qualify(scope, proto.name)
    methods = []
    for method in proto.method:
        if not method.name:
            raise MalformedDescriptor(f"{where}: method without a name in {full_name}")
        methods.append(MethodInfo(
            name=method.name,
            input_type=method.input_type,
            output_type=method.output_type,
            client_streaming=method.client_streaming,
            server_streaming=method.server_streaming,
        ))
    return ServiceType(name=proto.name, full_name=full_name, methods=tuple(methods))


def schema_file_from_proto(proto: descriptor_pb2.FileDescriptorProto) -> SchemaFile:
    """Convert one FileDescriptorProto into a SchemaFile.

    Raises:
        MalformedDescriptor: a required name or number is missing, or a
            public-dependency index points outside the dependency list.
    """
    if not proto.name:
        raise MalformedDescriptor("File descriptor without a name")
    where = proto.name
    package = proto.package

    dependencies = tuple(proto.dependency)
    public = []
    for index in proto.public_dependency:
        if not 0 <= index < len(dependencies):
            raise MalformedDescriptor(f"{where}: invalid public dependency index {index}")
        public.append(dependencies[index])

    return SchemaFile(
        name=proto.name,
        package=package,
        syntax=proto.syntax,
        edition=proto.edition if proto.HasField("edition") else 0,
        dependencies=dependencies,
        public_dependencies=tuple(public),
        messages=tuple(_message_from_proto(m, package, where) for m in proto.message_type),
        enums=tuple(_enum_from_proto(e, package, where) for e in proto.enum_type),
        services=tuple(_service_from_proto(s, package, where) for s in proto.service),
    )


def descriptor_set_from_protos(
    protos: Iterable[descriptor_pb2.FileDescriptorProto],
    requested: Iterable[str] = (),
) -> DescriptorSet:
    """Build a validated DescriptorSet from FileDescriptorProtos."""
    files = [schema_file_from_proto(p) for p in protos]
    descriptor_set = DescriptorSet.from_files(files, requested)
    logger.debug(
        "Decoded %d schema files (%d requested)",
        len(descriptor_set.files), len(descriptor_set.requested),
    )
    return descriptor_set


def decode_descriptor_set(data: bytes, requested: Iterable[str] = ()) -> DescriptorSet:
    """Decode a serialized FileDescriptorSet (``protoc --descriptor_set_out``).

    Raises:
        MalformedDescriptor: undecodable bytes or an integrity violation.
    """
    try:
        fds = descriptor_pb2.FileDescriptorSet.FromString(data)
    except DecodeError as e:
        raise MalformedDescriptor(f"Cannot decode FileDescriptorSet: {e}") from e
    return descriptor_set_from_protos(fds.file, requested)


# ── Encoding ────────────────────────────────────────────────────────


def _field_to_proto(field: MessageField) -> _FieldProto:
    proto = _FieldProto(name=field.name, number=field.number)
    if field.label:
        proto.label = _long(_FieldProto.Label, field.label, "LABEL_")
    if field.type:
        proto.type = _long(_FieldProto.Type, field.type, "TYPE_")
    if field.type_name:
        proto.type_name = field.type_name
    if field.json_name:
        proto.json_name = field.json_name
    if field.oneof_index is not None:
        proto.oneof_index = field.oneof_index
    if field.proto3_optional:
        proto.proto3_optional = True
    return proto


def _enum_to_proto(enum: EnumType) -> descriptor_pb2.EnumDescriptorProto:
    proto = descriptor_pb2.EnumDescriptorProto(name=enum.name)
    for value in enum.values:
        proto.value.add(name=value.name, number=value.number)
    return proto


def _message_to_proto(message: MessageType) -> descriptor_pb2.DescriptorProto:
    proto = descriptor_pb2.DescriptorProto(name=message.name)
    proto.field.extend(_field_to_proto(f) for f in message.fields)
    proto.nested_type.extend(_message_to_proto(m) for m in message.nested_types)
    proto.enum_type.extend(_enum_to_proto(e) for e in message.enum_types)
    for oneof in message.oneofs:
        proto.oneof_decl.add(name=oneof)
    return proto


def _service_to_proto(service: ServiceType) -> descriptor_pb2.ServiceDescriptorProto:
    proto = descriptor_pb2.ServiceDescriptorProto(name=service.name)
    for method in service.methods:
        m = proto.method.add(name=method.name)
        if method.input_type:
            m.input_type = method.input_type
        if method.output_type:
            m.output_type = method.output_type
        if method.client_streaming:
            m.client_streaming = True
        if method.server_streaming:
            m.server_streaming = True
    return proto


def schema_file_to_proto(schema_file: SchemaFile) -> descriptor_pb2.FileDescriptorProto:
    """Convert a SchemaFile back into a FileDescriptorProto."""
    proto = descriptor_pb2.FileDescriptorProto(name=schema_file.name)
    if schema_file.package:
        proto.package = schema_file.package
    if schema_file.syntax:
        proto.syntax = schema_file.syntax
    if schema_file.edition:
        proto.edition = schema_file.edition
    proto.dependency.extend(schema_file.dependencies)
    proto.public_dependency.extend(
        schema_file.dependencies.index(name) for name in schema_file.public_dependencies
    )
    proto.message_type.extend(_message_to_proto(m) for m in schema_file.messages)
    proto.enum_type.extend(_enum_to_proto(e) for e in schema_file.enums)
    proto.service.extend(_service_to_proto(s) for s in schema_file.services)
    return proto


def encode_descriptor_set(descriptor_set: DescriptorSet) -> bytes:
    """Serialize the set as a FileDescriptorSet (requested names are not kept)."""
    fds = descriptor_pb2.FileDescriptorSet()
    fds.file.extend(schema_file_to_proto(f) for f in descriptor_set.files)
    return fds.SerializeToString(deterministic=True)
