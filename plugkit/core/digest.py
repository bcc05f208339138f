"""
Output digest — a stable fingerprint of a generation result.

Uses the "h1" scheme of Go's ``dirhash`` (what buf records in plugin.sum
files): hash each file, list ``<sha256 hex>  <name>`` lines sorted by name,
hash that listing, and base64 it. Insertion records are keyed
``name#insertion_point`` so they cannot collide with full files.
"""

from __future__ import annotations

import base64
import hashlib
from collections.abc import Iterable

from plugkit.core.models.response import OutputFile


def _key(out: OutputFile) -> str:
    if out.insertion_point is None:
        return out.name
    return f"{out.name}#{out.insertion_point}"


def output_digest(files: Iterable[OutputFile]) -> str:
    """Return ``h1:<base64 sha256>`` over the given output files.

    Raises:
        ValueError: two records share a key (or a key contains a newline).
    """
    entries: dict[str, str] = {}
    for out in files:
        key = _key(out)
        if "\n" in key:
            raise ValueError(f"output name contains a newline: {key!r}")
        if key in entries:
            raise ValueError(f"duplicate output record: {key}")
        entries[key] = hashlib.sha256(out.content.encode("utf-8")).hexdigest()

    summary = hashlib.sha256()
    for key in sorted(entries):
        summary.update(f"{entries[key]}  {key}\n".encode("utf-8"))
    return "h1:" + base64.b64encode(summary.digest()).decode("ascii")
