"""Stable, content-derived identifiers for edit records."""

from __future__ import annotations

from typing import Any, Mapping, Optional

ANCHOR_PREFIX = "writersroom-edit-"
ANCHOR_ALIASES: tuple[str, ...] = ("anchor", "anchorId", "anchor_id", "id")
SEED_SEPARATOR = "|"

_FNV_OFFSET_BASIS = 2166136261
_FNV_PRIME = 16777619
_UINT32_MASK = 0xFFFFFFFF
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def normalize_anchor_candidate(value: Any) -> str:
    """Return ``value`` trimmed when it is a non-empty string, else ``""``."""
    if not isinstance(value, str):
        return ""
    return value.strip()


def find_anchor_candidate(record: Mapping[str, Any]) -> str:
    """Return the first caller-supplied anchor found under a known alias."""
    for key in ANCHOR_ALIASES:
        candidate = normalize_anchor_candidate(record.get(key))
        if candidate:
            return candidate
    return ""


def hash_anchor_seed(seed: str) -> str:
    """Hash ``seed`` with 32-bit FNV-1a and return it base-36 encoded.

    The hash walks UTF-16 code units rather than UTF-8 bytes so anchors
    stay identical to the ones written by the editor plugin.
    """
    encoded = seed.encode("utf-16-le", "surrogatepass")
    value = _FNV_OFFSET_BASIS
    for offset in range(0, len(encoded), 2):
        value ^= encoded[offset] | (encoded[offset + 1] << 8)
        value = (value * _FNV_PRIME) & _UINT32_MASK
    return _to_base36(value)


def create_anchor_id(
    *,
    line: Any,
    type: str,
    category: str,
    original_text: str,
    output: Optional[str],
    index: Any,
    anchor: Optional[str] = None,
) -> str:
    """Return the caller anchor when present, otherwise a hashed identifier."""
    existing = normalize_anchor_candidate(anchor)
    if existing:
        return existing

    seed = SEED_SEPARATOR.join(
        [
            original_text or "",
            output or "",
            _token(type),
            _token(category),
            _finite(line),
            _finite(index),
        ]
    )
    return f"{ANCHOR_PREFIX}{hash_anchor_seed(seed)}"


def _token(value: Any) -> str:
    if value is None:
        return ""
    return str(getattr(value, "value", value))


def _finite(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, int):
        return ""
    return str(value)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))
