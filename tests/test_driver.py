"""
Tests for the plugin driver — full request → response cycles.
"""

import io

import pytest

from plugkit.core.engine.driver import (
    DriverState,
    PluginDriver,
    check_features,
    plugin_main,
    required_features,
)
from plugkit.core.errors import UnsupportedFeature
from plugkit.core.models import (
    Edition,
    Feature,
    GenerationRequest,
    MessageField,
    MessageType,
    OutputFile,
    SchemaFile,
)
from plugkit.core.protocol import decode_response, encode_request
from plugkit.generators import MockGenerator, OutlineGenerator


def _optional_request() -> GenerationRequest:
    field = MessageField(
        name="note", number=1, label="optional", type="string",
        oneof_index=0, proto3_optional=True,
    )
    f = SchemaFile(
        name="opt.proto",
        package="p",
        syntax="proto3",
        messages=(MessageType(name="M", full_name="p.M", fields=(field,), oneofs=("_note",)),),
    )
    return GenerationRequest.build([f], ["opt.proto"])


def _editions_request(edition: int) -> GenerationRequest:
    f = SchemaFile(
        name="ed.proto",
        package="p",
        syntax="editions",
        edition=edition,
        messages=(MessageType(name="M", full_name="p.M"),),
    )
    return GenerationRequest.build([f], ["ed.proto"])


class _FaultyCapabilities(MockGenerator):
    def supported_features(self) -> Feature:
        raise RuntimeError("feature table broken")


class _BrokenStream:
    def read(self, size=-1):
        raise OSError("broken pipe")

    def write(self, data):
        raise OSError("broken pipe")

    def flush(self):
        pass


# ── End to end ───────────────────────────────────────────────────────


class TestHandle:
    def test_outline_end_to_end(self, simple_request):
        driver = PluginDriver(OutlineGenerator())
        response = driver.handle(encode_request(simple_request))
        assert response.ok
        assert response.files == (
            OutputFile(name="a.out", content="<generated for message M in package p>\n"),
        )
        assert driver.state == DriverState.RESPONDING

    def test_generator_called_once(self, simple_request):
        gen = MockGenerator()
        PluginDriver(gen).handle(encode_request(simple_request))
        assert gen.call_count == 1

    def test_success_advertises_capabilities(self, simple_request):
        response = PluginDriver(OutlineGenerator()).handle(encode_request(simple_request))
        assert response.features == Feature.PROTO3_OPTIONAL | Feature.SUPPORTS_EDITIONS
        assert response.minimum_edition == Edition.PROTO2
        assert response.maximum_edition == Edition.EDITION_2023

    def test_deterministic(self, versioned_request):
        data = encode_request(versioned_request)
        first = PluginDriver(OutlineGenerator()).handle(data)
        second = PluginDriver(OutlineGenerator()).handle(data)
        assert first == second

    def test_malformed_request(self):
        gen = MockGenerator()
        response = PluginDriver(gen).handle(b"\x0a\x05ab")
        assert response.failed
        assert response.error.startswith("Failed to parse CodeGeneratorRequest")
        assert response.files == ()
        assert gen.call_count == 0

    def test_missing_dependency(self, file_proto):
        from google.protobuf.compiler import plugin_pb2

        proto = plugin_pb2.CodeGeneratorRequest(file_to_generate=["b.proto"])
        proto.proto_file.append(file_proto("b.proto", deps=["c.proto"]))
        response = PluginDriver(MockGenerator()).handle(proto.SerializeToString())
        assert response.failed
        assert "c.proto" in response.error

    def test_empty_request(self):
        gen = MockGenerator()
        response = PluginDriver(gen).handle(b"")
        assert response.ok
        assert response.files == ()
        assert gen.call_log[0].files_to_generate == ()


# ── Failure reporting ────────────────────────────────────────────────


class TestFailures:
    def test_generator_error(self, simple_request):
        gen = MockGenerator()
        gen.set_output("a.out", "partial")
        gen.set_failure("cannot generate M")
        response = PluginDriver(gen).generate(simple_request)
        assert response.error == "cannot generate M"
        assert response.files == ()

    def test_unexpected_exception(self, simple_request):
        gen = MockGenerator()
        gen.set_output("a.out", "partial")
        gen.set_exception(RuntimeError("kaboom"))
        response = PluginDriver(gen).generate(simple_request)
        assert response.error == "mock: unexpected RuntimeError: kaboom"
        assert response.files == ()

    def test_duplicate_file(self, simple_request):
        gen = MockGenerator()
        gen.set_output("a.out", "one")
        gen.set_output("a.out", "two")
        response = PluginDriver(gen).generate(simple_request)
        assert response.error == "Tried to write the same file twice: a.out"

    def test_invalid_parameter(self, schema_a):
        request = GenerationRequest.build([schema_a], ["a.proto"], parameter="colour=blue")
        response = PluginDriver(OutlineGenerator()).generate(request)
        assert response.error == "Invalid parameter 'colour=blue': Unknown option: colour"

    def test_rejected_parameter_skips_generation(self, simple_request):
        gen = MockGenerator()
        gen.reject_parameter("no thanks")
        response = PluginDriver(gen).generate(simple_request)
        assert response.failed
        assert "no thanks" in response.error
        assert gen.call_count == 0

    def test_failure_still_advertises_capabilities(self, schema_a):
        request = GenerationRequest.build([schema_a], ["a.proto"], parameter="colour=blue")
        response = PluginDriver(OutlineGenerator()).generate(request)
        assert response.supported_features == 3
        assert response.minimum_edition == Edition.PROTO2

    def test_capability_lookup_failure_still_responds(self, simple_request):
        stdout = io.BytesIO()
        driver = PluginDriver(_FaultyCapabilities())
        code = driver.run(io.BytesIO(encode_request(simple_request)), stdout)
        assert code == 0
        response = decode_response(stdout.getvalue())
        assert response.failed
        assert response.error == "mock: unexpected RuntimeError: feature table broken"
        assert response.supported_features == 0
        assert response.minimum_edition is None


# ── Feature negotiation ──────────────────────────────────────────────


class TestFeatures:
    def test_required_features(self, simple_request):
        assert required_features(simple_request) == Feature.NONE
        assert required_features(_optional_request()) == Feature.PROTO3_OPTIONAL
        assert required_features(_editions_request(Edition.EDITION_2023)) == Feature.SUPPORTS_EDITIONS

    def test_proto3_optional_unsupported(self):
        gen = MockGenerator()
        response = PluginDriver(gen).generate(_optional_request())
        assert response.failed
        assert "optional" in response.error
        assert response.files == ()
        assert gen.call_count == 0

    def test_proto3_optional_supported(self):
        gen = MockGenerator(features=Feature.PROTO3_OPTIONAL)
        response = PluginDriver(gen).generate(_optional_request())
        assert response.ok
        assert response.features == Feature.PROTO3_OPTIONAL

    def test_editions_unsupported(self):
        with pytest.raises(UnsupportedFeature, match="does not support editions"):
            check_features(MockGenerator(), _editions_request(Edition.EDITION_2023))

    def test_edition_in_range(self):
        response = PluginDriver(OutlineGenerator()).generate(_editions_request(Edition.EDITION_2023))
        assert response.ok
        assert response.files[0].name == "ed.out"

    def test_edition_out_of_range(self):
        response = PluginDriver(OutlineGenerator()).generate(_editions_request(Edition.EDITION_2024))
        assert response.failed
        assert "edition 2024" in response.error
        assert "proto2..2023" in response.error

    def test_open_ended_range(self):
        gen = MockGenerator(features=Feature.SUPPORTS_EDITIONS, minimum_edition=Edition.EDITION_2023)
        check_features(gen, _editions_request(Edition.EDITION_2024))
        with pytest.raises(UnsupportedFeature):
            check_features(gen, _editions_request(Edition.PROTO3))

    def test_missing_feature_named_per_offending_file(self):
        plain = SchemaFile(name="plain.proto", package="q", syntax="proto3")
        optional = _optional_request().files[0]
        editions = SchemaFile(name="ed.proto", syntax="editions", edition=Edition.EDITION_2023)
        request = GenerationRequest.build(
            [plain, optional, editions], ["plain.proto", "opt.proto", "ed.proto"],
        )
        assert required_features(request) == Feature.PROTO3_OPTIONAL | Feature.SUPPORTS_EDITIONS

        editions_only = MockGenerator(features=Feature.SUPPORTS_EDITIONS)
        with pytest.raises(UnsupportedFeature, match="opt.proto is a proto3 file"):
            check_features(editions_only, request)

        optional_only = MockGenerator(features=Feature.PROTO3_OPTIONAL)
        with pytest.raises(UnsupportedFeature, match="ed.proto uses editions"):
            check_features(optional_only, request)

        check_features(OutlineGenerator(), request)


# ── Streams ──────────────────────────────────────────────────────────


class TestRun:
    def test_round_trip_over_streams(self, simple_request):
        stdout = io.BytesIO()
        code = PluginDriver(OutlineGenerator()).run(io.BytesIO(encode_request(simple_request)), stdout)
        assert code == 0
        response = decode_response(stdout.getvalue())
        assert [f.name for f in response.files] == ["a.out"]

    def test_failure_still_exits_zero(self):
        stdout = io.BytesIO()
        assert PluginDriver(MockGenerator()).run(io.BytesIO(b"\x0a\x05ab"), stdout) == 0
        assert decode_response(stdout.getvalue()).failed

    def test_truncated_input(self, simple_request):
        data = encode_request(simple_request)
        stdout = io.BytesIO()
        code = PluginDriver(MockGenerator()).run(io.BytesIO(data[:5]), stdout, expected_length=len(data))
        assert code == 0
        response = decode_response(stdout.getvalue())
        assert response.error == f"Input closed after 5 of {len(data)} bytes"

    def test_declared_length_stops_reading(self, simple_request):
        data = encode_request(simple_request)
        driver = PluginDriver(MockGenerator())
        assert driver.read_request(io.BytesIO(data + b"trailing"), len(data)) == data

    def test_unreadable_stdin(self):
        assert PluginDriver(MockGenerator()).run(_BrokenStream(), io.BytesIO()) == 1

    def test_unwritable_stdout(self, simple_request):
        stdin = io.BytesIO(encode_request(simple_request))
        assert PluginDriver(MockGenerator()).run(stdin, _BrokenStream()) == 1

    def test_byte_identical_responses(self, versioned_request):
        data = encode_request(versioned_request)
        outputs = []
        for _ in range(2):
            stdout = io.BytesIO()
            PluginDriver(OutlineGenerator()).run(io.BytesIO(data), stdout)
            outputs.append(stdout.getvalue())
        assert outputs[0] == outputs[1]


class TestPluginMain:
    def test_runs_generator(self, simple_request):
        stdout = io.BytesIO()
        code = plugin_main(
            OutlineGenerator(),
            argv=["protoc-gen-outline"],
            stdin=io.BytesIO(encode_request(simple_request)),
            stdout=stdout,
        )
        assert code == 0
        assert decode_response(stdout.getvalue()).ok

    def test_rejects_arguments(self, capsys):
        stdout = io.BytesIO()
        code = plugin_main(OutlineGenerator(), argv=["protoc-gen-outline", "--help"], stdout=stdout)
        assert code == 1
        assert "Unknown option: --help" in capsys.readouterr().err
        assert stdout.getvalue() == b""
