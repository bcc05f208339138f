"""
Generator parameter parsing.

The parameter string is opaque to the protocol. By convention it is a
comma-separated list of ``key=value`` items, where a bare ``key`` means an
empty value. Backends use these helpers to read their options.
"""

from __future__ import annotations


def parse_parameter(parameter: str) -> list[tuple[str, str]]:
    """Split a parameter string into ``(key, value)`` pairs, in order.

    Items are split on the first ``=``; empty items are skipped and no
    whitespace is stripped, matching protoc's own helper.

        >>> parse_parameter("paths=source_relative,lite")
        [('paths', 'source_relative'), ('lite', '')]
    """
    pairs: list[tuple[str, str]] = []
    for item in parameter.split(","):
        if not item:
            continue
        key, _, value = item.partition("=")
        pairs.append((key, value))
    return pairs


def merge_parameters(*parameters: str) -> str:
    """Join parameter strings, skipping empty ones (later ones win on reads)."""
    return ",".join(p for p in parameters if p)
