"""
Plugin driver — one request in, one response out.

The driver is the process-level loop of a plugin. It reads the request
from stdin, calls the generator exactly once, and writes the response to
stdout. Every failure after startup is reported inside the response; the
exit status stays 0 so the orchestrator can tell "the generator said no"
apart from "the generator process broke".

States:
    READING     → consume stdin to EOF (or a declared length)
    GENERATING  → feature checks, parameter check, generator.generate()
    RESPONDING  → encode and flush the response

A decode failure jumps straight from READING to RESPONDING.
"""

from __future__ import annotations

import logging
import sys
from enum import StrEnum
from typing import BinaryIO

from plugkit.core.engine.context import GeneratorContext
from plugkit.core.errors import (
    GeneratorError,
    MalformedRequest,
    PluginError,
    TruncatedInput,
    UnsupportedFeature,
)
from plugkit.core.models.features import Feature, edition_name
from plugkit.core.models.request import GenerationRequest
from plugkit.core.models.response import GenerationResponse
from plugkit.core.protocol.envelope import decode_request, encode_response
from plugkit.generators.base import Generator

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


class DriverState(StrEnum):
    """Where the driver is in its single pass."""

    READING = "reading"
    GENERATING = "generating"
    RESPONDING = "responding"


def required_features(request: GenerationRequest) -> Feature:
    """Capabilities the requested files need from a generator."""
    needed = Feature.NONE
    for schema_file in request.files:
        if schema_file.uses_proto3_optional:
            needed |= Feature.PROTO3_OPTIONAL
        if schema_file.is_editions:
            needed |= Feature.SUPPORTS_EDITIONS
    return needed


def check_features(generator: Generator, request: GenerationRequest) -> None:
    """Reject a request the generator has not declared it can handle.

    Raises:
        UnsupportedFeature: a requested file uses proto3 optional fields or
            editions the generator does not advertise, or an edition outside
            its advertised range.
    """
    missing = required_features(request) & ~Feature(generator.supported_features())
    if missing & Feature.PROTO3_OPTIONAL:
        offender = next(f for f in request.files if f.uses_proto3_optional)
        raise UnsupportedFeature(
            f"{offender.name} is a proto3 file that contains optional fields, "
            f"but code generator {generator.name} does not support optional "
            "fields in proto3."
        )
    if missing & Feature.SUPPORTS_EDITIONS:
        offender = next(f for f in request.files if f.is_editions)
        raise UnsupportedFeature(
            f"{offender.name} uses editions, but code generator "
            f"{generator.name} does not support editions."
        )

    lo, hi = generator.minimum_edition, generator.maximum_edition
    for schema_file in request.files:
        if not schema_file.is_editions:
            continue
        if (lo is not None and schema_file.edition < lo) or (
            hi is not None and schema_file.edition > hi
        ):
            raise UnsupportedFeature(
                f"{schema_file.name} uses edition {edition_name(schema_file.edition)}, "
                f"which code generator {generator.name} does not support "
                f"(supported: {edition_name(lo) if lo is not None else '?'}"
                f"..{edition_name(hi) if hi is not None else '?'})."
            )


class PluginDriver:
    """Runs one generator invocation over a pair of byte streams."""

    def __init__(self, generator: Generator):
        self._generator = generator
        self._state = DriverState.READING
        self._capabilities: dict | None = None

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def generator(self) -> Generator:
        return self._generator

    def _transition(self, state: DriverState) -> None:
        logger.debug("%s: %s → %s", self._generator.name, self._state, state)
        self._state = state

    # ── READING ──────────────────────────────────────────────────

    def read_request(self, stream: BinaryIO, expected_length: int | None = None) -> bytes:
        """Read the serialized request.

        Reads to EOF, or until ``expected_length`` bytes arrived when a
        length was declared.

        Raises:
            TruncatedInput: EOF came before ``expected_length`` bytes.
        """
        chunks: list[bytes] = []
        total = 0
        while expected_length is None or total < expected_length:
            want = _READ_CHUNK if expected_length is None else min(_READ_CHUNK, expected_length - total)
            chunk = stream.read(want)
            if not chunk:
                break
            chunks.append(chunk)
            total += len(chunk)

        if expected_length is not None and total < expected_length:
            raise TruncatedInput(
                f"Input closed after {total} of {expected_length} bytes"
            )
        logger.debug("Read %d request bytes", total)
        return b"".join(chunks)

    # ── GENERATING ───────────────────────────────────────────────

    def handle(self, data: bytes) -> GenerationResponse:
        """Decode ``data``, run the generator once, and build the response.

        Never raises for generator or request problems: they become a
        failure response with no files.
        """
        self._transition(DriverState.READING)
        self._advertised()
        try:
            request = decode_request(data)
        except PluginError as e:
            return self._fail(str(e))
        except Exception as e:
            logger.exception("Unexpected error while decoding the request")
            return self._fail(str(MalformedRequest(f"Cannot decode request: {e}")))

        return self.generate(request)

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run the generator on an already-decoded request."""
        self._transition(DriverState.GENERATING)
        generator = self._generator
        advertised = self._advertised()
        context = GeneratorContext(request.descriptor_set, request.compiler_version)

        try:
            check_features(generator, request)
            is_valid, message = generator.validate_parameter(request.parameter)
            if not is_valid:
                raise GeneratorError(f"Invalid parameter {request.parameter!r}: {message}")
            generator.generate(
                request.descriptor_set,
                request.files_to_generate,
                request.parameter,
                context,
            )
            files = context.finish()
        except PluginError as e:
            context.discard()
            return self._fail(str(e))
        except Exception as e:
            # Generators should raise GeneratorError, but a crash must still
            # produce a well-formed response.
            logger.exception("Generator %s raised during generation", generator.name)
            context.discard()
            return self._fail(f"{generator.name}: unexpected {type(e).__name__}: {e}")

        self._transition(DriverState.RESPONDING)
        logger.info("%s: generated %d output record(s)", generator.name, len(files))
        return GenerationResponse.success(files, **advertised)

    # ── RESPONDING ───────────────────────────────────────────────

    def _advertised(self) -> dict:
        """Capabilities echoed in every response, read from the generator once."""
        if self._capabilities is None:
            generator = self._generator
            try:
                self._capabilities = {
                    "supported_features": int(generator.supported_features()),
                    "minimum_edition": generator.minimum_edition,
                    "maximum_edition": generator.maximum_edition,
                }
            except Exception:
                logger.exception("Generator %s failed to report its capabilities", generator.name)
                self._capabilities = {
                    "supported_features": int(Feature.NONE),
                    "minimum_edition": None,
                    "maximum_edition": None,
                }
        return self._capabilities

    def _fail(self, error: str) -> GenerationResponse:
        self._transition(DriverState.RESPONDING)
        logger.info("%s: reporting failure: %s", self._generator.name, error)
        return GenerationResponse.failure(error, **self._advertised())

    def run(
        self,
        stdin: BinaryIO,
        stdout: BinaryIO,
        expected_length: int | None = None,
    ) -> int:
        """Serve one request.

        Returns:
            0 once a response (success or failure) was written; 1 only when
            a channel fails at the OS level.
        """
        self._transition(DriverState.READING)
        try:
            data = self.read_request(stdin, expected_length)
        except TruncatedInput as e:
            response = self._fail(str(e))
        except OSError as e:
            logger.error("Cannot read request: %s", e)
            return 1
        else:
            response = self.handle(data)

        try:
            stdout.write(encode_response(response))
            stdout.flush()
        except OSError as e:
            logger.error("Cannot write response: %s", e)
            return 1
        return 0


def plugin_main(
    generator: Generator,
    argv: list[str] | None = None,
    stdin: BinaryIO | None = None,
    stdout: BinaryIO | None = None,
) -> int:
    """Entry point for a ``protoc-gen-*`` executable.

    Plugins take no command-line arguments; everything arrives in the
    request. Returns the process exit code.
    """
    argv = sys.argv if argv is None else argv
    if len(argv) > 1:
        sys.stderr.write(f"{argv[0]}: Unknown option: {argv[1]}\n")
        return 1

    driver = PluginDriver(generator)
    return driver.run(
        stdin if stdin is not None else sys.stdin.buffer,
        stdout if stdout is not None else sys.stdout.buffer,
    )
