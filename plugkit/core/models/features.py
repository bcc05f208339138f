"""
Feature flags and editions — the capability vocabulary of the protocol.

Values match ``CodeGeneratorResponse.Feature`` and the ``Edition`` enum in
``descriptor.proto`` so they can be copied to and from the wire unchanged.
"""

from __future__ import annotations

from enum import IntEnum, IntFlag


class Feature(IntFlag):
    """Optional protocol capabilities a generator can advertise."""

    NONE = 0
    PROTO3_OPTIONAL = 1
    SUPPORTS_EDITIONS = 2


class Edition(IntEnum):
    """Schema editions, as numbered by descriptor.proto."""

    UNKNOWN = 0
    LEGACY = 900
    PROTO2 = 998
    PROTO3 = 999
    EDITION_2023 = 1000
    EDITION_2024 = 1001
    MAX = 0x7FFFFFFF


def edition_name(value: int) -> str:
    """Human-readable edition label; unknown numbers are shown raw."""
    try:
        edition = Edition(value)
    except ValueError:
        return str(value)
    if edition.name.startswith("EDITION_"):
        return edition.name.removeprefix("EDITION_")
    return edition.name.lower()


def feature_names(features: int) -> list[str]:
    """List the advertised feature names, lowest bit first."""
    return [
        flag.name.lower()
        for flag in Feature
        if flag is not Feature.NONE and features & flag
    ]
