"""
Tests for the domain models — descriptors, request, response, features.
"""

import pytest
from pydantic import ValidationError

from plugkit.core.errors import MalformedDescriptor
from plugkit.core.models import (
    CompilerVersion,
    DescriptorSet,
    Edition,
    EnumType,
    EnumValueInfo,
    Feature,
    GenerationRequest,
    GenerationResponse,
    MessageField,
    MessageType,
    OutputFile,
    PluginManifest,
    SchemaFile,
    ServiceType,
)
from plugkit.core.models.features import edition_name, feature_names


def _nested_file() -> SchemaFile:
    inner_enum = EnumType(
        name="Kind",
        full_name="p.Outer.Kind",
        values=(EnumValueInfo(name="KIND_UNSPECIFIED", number=0),),
    )
    inner = MessageType(name="Inner", full_name="p.Outer.Inner")
    outer = MessageType(
        name="Outer",
        full_name="p.Outer",
        nested_types=(inner,),
        enum_types=(inner_enum,),
    )
    return SchemaFile(
        name="nested.proto",
        package="p",
        messages=(outer,),
        enums=(EnumType(name="Top", full_name="p.Top"),),
        services=(ServiceType(name="Svc", full_name="p.Svc"),),
    )


# ── SchemaFile ───────────────────────────────────────────────────────


class TestSchemaFile:
    def test_iter_types_puts_nested_after_parent(self):
        names = [t.full_name for t in _nested_file().iter_types()]
        assert names == ["p.Outer", "p.Outer.Inner", "p.Outer.Kind", "p.Top", "p.Svc"]

    def test_types_are_top_level_only(self):
        names = [t.name for t in _nested_file().types]
        assert names == ["Outer", "Top", "Svc"]

    def test_kinds(self):
        kinds = [t.kind for t in _nested_file().types]
        assert kinds == ["message", "enum", "service"]

    def test_relative_name(self):
        f = _nested_file()
        inner = f.messages[0].nested_types[0]
        assert f.relative_name(inner) == "Outer.Inner"

    def test_relative_name_without_package(self):
        f = SchemaFile(name="x.proto", messages=(MessageType(name="M", full_name="M"),))
        assert f.relative_name(f.messages[0]) == "M"

    def test_effective_syntax_defaults_to_proto2(self):
        assert SchemaFile(name="x.proto").effective_syntax == "proto2"
        assert SchemaFile(name="x.proto", syntax="proto3").effective_syntax == "proto3"

    def test_uses_proto3_optional_in_nested_message(self):
        field = MessageField(name="f", number=1, proto3_optional=True)
        inner = MessageType(name="I", full_name="I", fields=(field,))
        outer = MessageType(name="O", full_name="O", nested_types=(inner,))
        assert SchemaFile(name="x.proto", messages=(outer,)).uses_proto3_optional

    def test_frozen(self):
        f = _nested_file()
        with pytest.raises(ValidationError):
            f.name = "other.proto"


# ── DescriptorSet ────────────────────────────────────────────────────


class TestDescriptorSet:
    def test_lookups(self):
        ds = DescriptorSet.from_files([_nested_file()], ["nested.proto"])
        assert ds.file_by_name("nested.proto").package == "p"
        assert ds.file_by_name("missing.proto") is None
        assert ds.type_by_full_name("p.Outer.Inner").name == "Inner"
        assert ds.type_by_full_name(".p.Outer.Kind").kind == "enum"
        assert ds.type_by_full_name("p.Nope") is None
        assert ds.file_for_type(".p.Svc").name == "nested.proto"
        assert ds.file_for_type("p.Nope") is None

    def test_requested_files(self, schema_a):
        b = SchemaFile(name="b.proto")
        ds = DescriptorSet.from_files([schema_a, b], ["b.proto", "a.proto"])
        assert [f.name for f in ds.requested_files] == ["b.proto", "a.proto"]

    def test_files_by_name_is_read_only(self, schema_a):
        ds = DescriptorSet.from_files([schema_a])
        assert list(ds.files_by_name) == ["a.proto"]
        with pytest.raises(TypeError):
            ds.files_by_name["x.proto"] = schema_a

    def test_missing_dependency(self):
        b = SchemaFile(name="b.proto", dependencies=("c.proto",))
        with pytest.raises(MalformedDescriptor, match="c.proto"):
            DescriptorSet.from_files([b], ["b.proto"])

    def test_requested_file_absent(self, schema_a):
        with pytest.raises(MalformedDescriptor, match="z.proto"):
            DescriptorSet.from_files([schema_a], ["z.proto"])

    def test_duplicate_file(self, schema_a):
        with pytest.raises(MalformedDescriptor, match="twice"):
            DescriptorSet.from_files([schema_a, schema_a])

    def test_duplicate_type(self, schema_a):
        clash = SchemaFile(
            name="b.proto",
            package="p",
            messages=(MessageType(name="M", full_name="p.M"),),
        )
        with pytest.raises(MalformedDescriptor, match="already defined"):
            DescriptorSet.from_files([schema_a, clash])

    def test_dependency_closure_order(self):
        c = SchemaFile(name="c.proto")
        b = SchemaFile(name="b.proto", dependencies=("c.proto",))
        d = SchemaFile(name="d.proto", dependencies=("c.proto",))
        a = SchemaFile(name="a.proto", dependencies=("b.proto", "d.proto"))
        ds = DescriptorSet.from_files([c, b, d, a], ["a.proto"])
        assert [f.name for f in ds.dependency_closure("a.proto")] == [
            "c.proto", "b.proto", "d.proto",
        ]
        assert ds.dependency_closure("c.proto") == []

    def test_dependency_closure_unknown(self):
        with pytest.raises(KeyError):
            DescriptorSet().dependency_closure("x.proto")

    def test_equality(self, schema_a):
        assert DescriptorSet.from_files([schema_a], ["a.proto"]) == DescriptorSet.from_files(
            [schema_a], ["a.proto"]
        )


# ── Request ──────────────────────────────────────────────────────────


class TestGenerationRequest:
    def test_build(self, simple_request):
        assert simple_request.files_to_generate == ("a.proto",)
        assert simple_request.parameter == ""
        assert simple_request.compiler_version is None
        assert [f.name for f in simple_request.files] == ["a.proto"]

    def test_files_must_match_descriptor_set(self, schema_a):
        ds = DescriptorSet.from_files([schema_a], ["a.proto"])
        with pytest.raises(ValidationError):
            GenerationRequest(files_to_generate=(), descriptor_set=ds)

    def test_build_rejects_missing_dependency(self):
        b = SchemaFile(name="b.proto", dependencies=("c.proto",))
        with pytest.raises(MalformedDescriptor):
            GenerationRequest.build([b], ["b.proto"])


class TestCompilerVersion:
    def test_str(self):
        assert str(CompilerVersion(major=25, minor=2)) == "25.2.0"
        assert str(CompilerVersion(major=3, minor=21, patch=12, suffix="rc1")) == "3.21.12-rc1"

    def test_at_least(self):
        v = CompilerVersion(major=25, minor=2)
        assert v.at_least(25)
        assert v.at_least(3, 21, 12)
        assert not v.at_least(25, 3)


# ── Response ─────────────────────────────────────────────────────────


class TestGenerationResponse:
    def test_success(self):
        r = GenerationResponse.success(
            [OutputFile(name="a.out", content="x")],
            supported_features=Feature.PROTO3_OPTIONAL,
        )
        assert r.ok
        assert not r.failed
        assert r.features == Feature.PROTO3_OPTIONAL
        assert r.files[0].name == "a.out"

    def test_failure(self):
        r = GenerationResponse.failure("boom", supported_features=3)
        assert r.failed
        assert r.error == "boom"
        assert r.files == ()
        assert r.features == Feature.PROTO3_OPTIONAL | Feature.SUPPORTS_EDITIONS

    def test_failure_never_empty(self):
        assert GenerationResponse.failure("").error == "unknown error"

    def test_error_with_files_rejected(self):
        with pytest.raises(ValidationError):
            GenerationResponse(error="boom", files=(OutputFile(name="a.out"),))

    def test_empty_error_rejected(self):
        with pytest.raises(ValidationError):
            GenerationResponse(error="")


class TestOutputFile:
    def test_kinds(self):
        assert not OutputFile(name="a.out").is_insertion
        assert OutputFile(name="a.out", insertion_point="includes").is_insertion


# ── Features ─────────────────────────────────────────────────────────


class TestFeatures:
    def test_wire_values(self):
        assert Feature.PROTO3_OPTIONAL == 1
        assert Feature.SUPPORTS_EDITIONS == 2
        assert Edition.EDITION_2023 == 1000

    def test_feature_names(self):
        assert feature_names(0) == []
        assert feature_names(3) == ["proto3_optional", "supports_editions"]

    def test_edition_name(self):
        assert edition_name(Edition.EDITION_2023) == "2023"
        assert edition_name(Edition.PROTO3) == "proto3"
        assert edition_name(12345) == "12345"


# ── Manifest ─────────────────────────────────────────────────────────


class TestPluginManifest:
    def test_identity_and_parameter(self):
        m = PluginManifest(
            name="local/outline",
            plugin_version="v1.0.0",
            deps=[{"plugin": "local/base:v0.3.0"}],
            default_options=["insertion_points", "suffix=.txt"],
        )
        assert m.identity == "local/outline:v1.0.0"
        assert str(m) == m.identity
        assert m.default_parameter == "insertion_points,suffix=.txt"
        assert m.deps[0].name == "local/base"
        assert m.deps[0].version == "v0.3.0"

    def test_version_must_be_prefixed(self):
        with pytest.raises(ValidationError):
            PluginManifest(name="x", plugin_version="1.0.0")
