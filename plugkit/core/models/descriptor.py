"""
Descriptor model — the parsed schema files a generator reads.

A ``DescriptorSet`` is the dependency closure handed over by the compiler:
every file the requested ones import, keyed by name. Everything here is
frozen after construction. Sequences are tuples and the lookup indexes are
built once, so worker threads can share one set without coordination.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import ClassVar, Union

from pydantic import BaseModel, ConfigDict, PrivateAttr

from plugkit.core.errors import MalformedDescriptor


class MessageField(BaseModel):
    """One field of a message."""

    model_config = ConfigDict(frozen=True)

    name: str
    number: int
    label: str = ""              # optional | required | repeated
    type: str = ""               # int32, string, message, enum, ...
    type_name: str = ""          # referenced message/enum, e.g. ".pkg.Msg"
    json_name: str = ""
    oneof_index: int | None = None
    proto3_optional: bool = False


class EnumValueInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    number: int


class EnumType(BaseModel):
    """An enumeration, top-level or nested in a message."""

    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    values: tuple[EnumValueInfo, ...] = ()

    kind: ClassVar[str] = "enum"


class MessageType(BaseModel):
    """A message (record) with its nested declarations."""

    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    fields: tuple[MessageField, ...] = ()
    nested_types: tuple[MessageType, ...] = ()
    enum_types: tuple[EnumType, ...] = ()
    oneofs: tuple[str, ...] = ()

    kind: ClassVar[str] = "message"

    @property
    def uses_proto3_optional(self) -> bool:
        if any(f.proto3_optional for f in self.fields):
            return True
        return any(m.uses_proto3_optional for m in self.nested_types)


class MethodInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    input_type: str = ""
    output_type: str = ""
    client_streaming: bool = False
    server_streaming: bool = False


class ServiceType(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    methods: tuple[MethodInfo, ...] = ()

    kind: ClassVar[str] = "service"


DeclaredType = Union[MessageType, EnumType, ServiceType]


def _walk_message(message: MessageType) -> Iterator[DeclaredType]:
    yield message
    for nested in message.nested_types:
        yield from _walk_message(nested)
    yield from message.enum_types


class SchemaFile(BaseModel):
    """One parsed schema file.

    Attributes:
        name:                Unique, path-like key (``"foo/bar.proto"``).
        package:             Dotted namespace, empty for the root namespace.
        syntax:              ``proto2``, ``proto3``, ``editions`` or empty.
        edition:             Edition number when ``syntax == "editions"``.
        dependencies:        Imported file names, in declaration order.
        public_dependencies: The subset of ``dependencies`` re-exported.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    package: str = ""
    syntax: str = ""
    edition: int = 0
    dependencies: tuple[str, ...] = ()
    public_dependencies: tuple[str, ...] = ()
    messages: tuple[MessageType, ...] = ()
    enums: tuple[EnumType, ...] = ()
    services: tuple[ServiceType, ...] = ()

    @property
    def effective_syntax(self) -> str:
        """Syntax with protoc's default applied (absent means proto2)."""
        return self.syntax or "proto2"

    @property
    def is_editions(self) -> bool:
        return self.syntax == "editions"

    @property
    def types(self) -> tuple[DeclaredType, ...]:
        """Top-level declarations: messages, then enums, then services."""
        return (*self.messages, *self.enums, *self.services)

    @property
    def uses_proto3_optional(self) -> bool:
        return any(m.uses_proto3_optional for m in self.messages)

    def iter_types(self) -> Iterator[DeclaredType]:
        """Every declaration in the file, nested ones right after their parent."""
        for message in self.messages:
            yield from _walk_message(message)
        yield from self.enums
        yield from self.services

    def relative_name(self, declared: DeclaredType) -> str:
        """Full name of ``declared`` with this file's package stripped."""
        if self.package and declared.full_name.startswith(self.package + "."):
            return declared.full_name[len(self.package) + 1:]
        return declared.full_name


class DescriptorSet(BaseModel):
    """The dependency closure of the requested schema files.

    Build it with :meth:`from_files`, which enforces referential integrity.
    Lookups by file name and by fully-qualified type name are O(1).
    """

    model_config = ConfigDict(frozen=True)

    files: tuple[SchemaFile, ...] = ()
    requested: tuple[str, ...] = ()

    _by_name: dict[str, SchemaFile] = PrivateAttr(default_factory=dict)
    _types: dict[str, DeclaredType] = PrivateAttr(default_factory=dict)
    _type_files: dict[str, str] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        for schema_file in self.files:
            self._by_name[schema_file.name] = schema_file
            for declared in schema_file.iter_types():
                self._types[declared.full_name] = declared
                self._type_files[declared.full_name] = schema_file.name

    @classmethod
    def from_files(
        cls,
        files: Iterable[SchemaFile],
        requested: Iterable[str] = (),
    ) -> DescriptorSet:
        """Validate a closure and freeze it into a DescriptorSet.

        Raises:
            MalformedDescriptor: duplicate file or type names, a dependency
                missing from the set, or a requested file that is absent.
        """
        files = tuple(files)
        requested = tuple(requested)

        names: set[str] = set()
        type_owner: dict[str, str] = {}
        for schema_file in files:
            if schema_file.name in names:
                raise MalformedDescriptor(
                    f"File appears twice in the descriptor set: {schema_file.name}"
                )
            names.add(schema_file.name)
            for declared in schema_file.iter_types():
                owner = type_owner.get(declared.full_name)
                if owner is not None:
                    raise MalformedDescriptor(
                        f'"{declared.full_name}" is already defined in file '
                        f'"{owner}" (redefined in "{schema_file.name}")'
                    )
                type_owner[declared.full_name] = schema_file.name

        for schema_file in files:
            for dep in schema_file.dependencies:
                if dep not in names:
                    raise MalformedDescriptor(
                        f'File "{schema_file.name}" depends on "{dep}", '
                        "which is not in the descriptor set"
                    )

        for name in requested:
            if name not in names:
                raise MalformedDescriptor(
                    "Asked to generate a file but no descriptor was "
                    f"provided for it: {name}"
                )

        return cls(files=files, requested=requested)

    # ── Lookups ──────────────────────────────────────────────────

    @property
    def files_by_name(self) -> Mapping[str, SchemaFile]:
        """Read-only view of the name → file mapping, in received order."""
        return MappingProxyType(self._by_name)

    @property
    def requested_files(self) -> tuple[SchemaFile, ...]:
        return tuple(self._by_name[name] for name in self.requested)

    def file_by_name(self, name: str) -> SchemaFile | None:
        """Look up a file by its name."""
        return self._by_name.get(name)

    def type_by_full_name(self, full_name: str) -> DeclaredType | None:
        """Look up a message, enum or service by fully-qualified name.

        A leading dot (the form used in field type references) is accepted.
        """
        return self._types.get(full_name.lstrip("."))

    def file_for_type(self, full_name: str) -> SchemaFile | None:
        """The file declaring ``full_name``, if any."""
        name = self._type_files.get(full_name.lstrip("."))
        return self._by_name[name] if name is not None else None

    def dependency_closure(self, name: str) -> list[SchemaFile]:
        """Transitive dependencies of ``name``, each before its dependents.

        The file itself is not included.
        """
        if name not in self._by_name:
            raise KeyError(name)

        ordered: list[SchemaFile] = []
        seen: set[str] = {name}

        def visit(file_name: str) -> None:
            for dep in self._by_name[file_name].dependencies:
                if dep in seen:
                    continue
                seen.add(dep)
                visit(dep)
                ordered.append(self._by_name[dep])

        visit(name)
        return ordered
