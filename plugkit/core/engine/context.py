"""
Generator context — where a generator writes its output.

The context records output files during one invocation and hands them to
the driver in a deterministic order. Two kinds of record:

    full file   open_full(name)              creates/replaces ``name``
    insertion   open_insertion(name, tag)    content for marker ``tag``
                                             inside a file emitted earlier

Insertions are not merged here. Whoever writes the final output to disk
splices them in; this context only keeps the (name, tag, content) records
in the order they were first opened. Re-opening the same (name, tag)
appends to the existing record.

Every open and write takes one lock, so generators that render in worker
threads still produce a single, well-defined record order.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from plugkit.core.errors import DuplicateFile, GeneratorError
from plugkit.core.models.descriptor import DescriptorSet, SchemaFile
from plugkit.core.models.request import CompilerVersion
from plugkit.core.models.response import OutputFile

logger = logging.getLogger(__name__)


@dataclass
class _Record:
    """Buffered content for one output record."""

    name: str
    insertion_point: str | None = None
    chunks: list[str] = field(default_factory=list)

    def to_output(self) -> OutputFile:
        return OutputFile(
            name=self.name,
            content="".join(self.chunks),
            insertion_point=self.insertion_point,
        )


class WriteHandle:
    """A text sink for one output record.

    Usable as a context manager; writing after ``close()`` raises
    ``ValueError`` like a closed file would.
    """

    def __init__(self, record: _Record, lock: threading.Lock):
        self._record = record
        self._lock = lock
        self._closed = False

    @property
    def name(self) -> str:
        return self._record.name

    @property
    def insertion_point(self) -> str | None:
        return self._record.insertion_point

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, text: str) -> int:
        if not isinstance(text, str):
            raise TypeError(f"write() argument must be str, not {type(text).__name__}")
        with self._lock:
            if self._closed:
                raise ValueError(f"write to closed handle for {self.name}")
            self._record.chunks.append(text)
        return len(text)

    def writelines(self, lines) -> None:
        for line in lines:
            self.write(line)

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> WriteHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        tag = f" @{self.insertion_point}" if self.insertion_point is not None else ""
        return f"<WriteHandle {self.name}{tag}>"


def _check_output_name(name: str) -> None:
    """Output names are relative, slash-separated, without ``..``."""
    if not name:
        raise GeneratorError("Output file name must not be empty")
    if name.startswith("/") or "\\" in name or ":" in name.split("/", 1)[0]:
        raise GeneratorError(f"Output file name must be a relative path: {name!r}")
    if any(part in ("", ".", "..") for part in name.split("/")):
        raise GeneratorError(f"Output file name is not a clean relative path: {name!r}")


class GeneratorContext:
    """Collects the output of a single generator invocation."""

    def __init__(
        self,
        descriptor_set: DescriptorSet | None = None,
        compiler_version: CompilerVersion | None = None,
    ):
        self._descriptor_set = descriptor_set or DescriptorSet()
        self._compiler_version = compiler_version
        self._lock = threading.Lock()
        self._records: list[_Record] = []
        self._full_files: set[str] = set()
        self._insertions: dict[tuple[str, str], _Record] = {}
        self._handles: list[WriteHandle] = []
        self._finished = False

    # ── What the generator may ask about ─────────────────────────

    @property
    def compiler_version(self) -> CompilerVersion | None:
        """The orchestrator's version, or None when it did not say."""
        return self._compiler_version

    def list_parsed_files(self) -> tuple[SchemaFile, ...]:
        """The files the compiler asked to generate, in request order."""
        return self._descriptor_set.requested_files

    # ── Opening records ──────────────────────────────────────────

    def open_full(self, name: str) -> WriteHandle:
        """Open a full output file.

        Raises:
            DuplicateFile: ``name`` was already opened as a full file.
            GeneratorError: ``name`` is not a clean relative path.
        """
        _check_output_name(name)
        with self._lock:
            self._ensure_open()
            if name in self._full_files:
                raise DuplicateFile(f"Tried to write the same file twice: {name}")
            self._full_files.add(name)
            record = _Record(name=name)
            self._records.append(record)
            return self._handle(record)

    def open_insertion(self, name: str, insertion_point: str) -> WriteHandle:
        """Open content for marker ``insertion_point`` in file ``name``.

        The target may come from an earlier pass, so it need not exist in
        this invocation. A repeated (name, tag) appends to the same record.
        """
        _check_output_name(name)
        with self._lock:
            self._ensure_open()
            key = (name, insertion_point)
            record = self._insertions.get(key)
            if record is None:
                record = _Record(name=name, insertion_point=insertion_point)
                self._insertions[key] = record
                self._records.append(record)
            return self._handle(record)

    def _handle(self, record: _Record) -> WriteHandle:
        handle = WriteHandle(record, self._lock)
        self._handles.append(handle)
        return handle

    def _ensure_open(self) -> None:
        if self._finished:
            raise RuntimeError("GeneratorContext already finished")

    # ── Results ──────────────────────────────────────────────────

    @property
    def record_count(self) -> int:
        return len(self._records)

    def finish(self) -> tuple[OutputFile, ...]:
        """Seal the context and return its records in first-open order."""
        with self._lock:
            self._finished = True
            for handle in self._handles:
                handle.close()
            files = tuple(r.to_output() for r in self._records)
        logger.debug("Context finished with %d output record(s)", len(files))
        return files

    def discard(self) -> None:
        """Drop everything buffered and seal the context."""
        with self._lock:
            if self._records:
                logger.debug("Discarding %d buffered output record(s)", len(self._records))
            self._finished = True
            for handle in self._handles:
                handle.close()
            self._records.clear()
            self._insertions.clear()
            self._full_files.clear()
