"""Sortable identifiers for builds and log correlation."""

from __future__ import annotations

import secrets
import time
from collections.abc import Callable
from typing import Final

CROCKFORD_BASE32_ALPHABET: Final[str] = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
ULID_LENGTH: Final[int] = 26
BUILD_ID_PREFIX: Final[str] = "build"

_RANDOM_BYTES: Final[int] = 10
_MAX_TIMESTAMP_MS: Final[int] = (1 << 48) - 1
_SEPARATOR: Final[str] = "-"

_RandBytes = Callable[[int], bytes]


def generate_ulid(
    *,
    timestamp_ms: int | None = None,
    randbytes: _RandBytes | None = None,
) -> str:
    """Return a 26-character Crockford Base32 ULID (time-ordered, then random)."""
    ts_ms = time.time_ns() // 1_000_000 if timestamp_ms is None else timestamp_ms
    if not 0 <= ts_ms <= _MAX_TIMESTAMP_MS:
        raise ValueError(f"timestamp_ms out of range: {ts_ms}")

    raw = (randbytes or secrets.token_bytes)(_RANDOM_BYTES)
    if len(raw) != _RANDOM_BYTES:
        raise ValueError(f"randbytes must return exactly {_RANDOM_BYTES} bytes")

    value = (ts_ms << 80) | int.from_bytes(bytes(raw), "big")
    chars: list[str] = []
    for _ in range(ULID_LENGTH):
        chars.append(CROCKFORD_BASE32_ALPHABET[value & 0b11111])
        value >>= 5
    return "".join(reversed(chars))


def generate_build_id(
    *,
    timestamp_ms: int | None = None,
    randbytes: _RandBytes | None = None,
) -> str:
    """Return a ``build-<ulid>`` identifier used for log directories and correlation."""
    return f"{BUILD_ID_PREFIX}{_SEPARATOR}{generate_ulid(timestamp_ms=timestamp_ms, randbytes=randbytes)}"


def validate_build_id(build_id: str) -> None:
    if not isinstance(build_id, str):
        raise ValueError(f"build id must be a string, got {type(build_id).__name__}")
    lead = f"{BUILD_ID_PREFIX}{_SEPARATOR}"
    if not build_id.startswith(lead):
        raise ValueError(f"build id must start with {lead!r}")
    ulid_part = build_id[len(lead) :]
    if len(ulid_part) != ULID_LENGTH:
        raise ValueError(f"ulid length must be {ULID_LENGTH}, got {len(ulid_part)}")
    invalid = sorted({char for char in ulid_part.upper() if char not in CROCKFORD_BASE32_ALPHABET})
    if invalid:
        raise ValueError(f"invalid ULID characters: {invalid}")


__all__ = [
    "BUILD_ID_PREFIX",
    "CROCKFORD_BASE32_ALPHABET",
    "ULID_LENGTH",
    "generate_build_id",
    "generate_ulid",
    "validate_build_id",
]
