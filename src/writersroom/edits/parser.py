"""Strict validation of untrusted edit payloads."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, NoReturn, Optional

from .anchors import create_anchor_id, find_anchor_candidate
from .folding import combine_same_line_edits
from .schema import (
    DEFAULT_AGENT,
    EMPTY_OUTPUT_TYPES,
    EditCategory,
    EditEntry,
    EditPayload,
    EditType,
)

__all__ = [
    "EditPayloadError",
    "PayloadFormatError",
    "PayloadValidationError",
    "parse_edit_payload",
    "parse_edit_payload_from_string",
]

_ALLOWED_TYPES = ", ".join(item.value for item in EditType)
_CATEGORY_VALUES = frozenset(item.value for item in EditCategory)
_EXTENSIBLE_AGENTS = frozenset({DEFAULT_AGENT, *_CATEGORY_VALUES})


class EditPayloadError(ValueError):
    """Base error raised when an edit payload cannot be accepted."""


class PayloadValidationError(EditPayloadError):
    """Raised when a payload field violates the edit schema."""

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        suffix = f" at {path}" if path else ""
        super().__init__(f"{message}{suffix}")
        self.message = message
        self.path = path


class PayloadFormatError(EditPayloadError):
    """Raised when raw text is not valid JSON."""


def _fail(message: str, path: Optional[str] = None) -> NoReturn:
    raise PayloadValidationError(message, path)


def _is_record(value: Any) -> bool:
    return isinstance(value, Mapping)


def _parse_agent(value: Any, path: str, *, extensible: bool) -> str:
    if not isinstance(value, str):
        _fail("agent must be a string", path)
    if not extensible:
        if value != DEFAULT_AGENT:
            _fail('agent must be set to "editor"', path)
        return value
    agent = value.strip().lower()
    if agent not in _EXTENSIBLE_AGENTS:
        _fail("agent must be editor or one of: flow, rhythm, sensory, punch", path)
    return agent


def _parse_edit(entry: Any, index: int, *, extensible: bool) -> EditEntry:
    path = f"edits[{index}]"
    if not _is_record(entry):
        _fail("Edit must be an object", path)

    agent = _parse_agent(entry.get("agent"), f"{path}.agent", extensible=extensible)

    line = entry.get("line")
    if isinstance(line, float) and line.is_integer():
        line = int(line)
    if isinstance(line, bool) or not isinstance(line, int):
        _fail("line must be an integer", f"{path}.line")
    if line < 1:
        _fail("line must be at least 1", f"{path}.line")

    raw_type = entry.get("type")
    if not isinstance(raw_type, str):
        _fail("type must be a string", f"{path}.type")
    try:
        edit_type = EditType(raw_type)
    except ValueError:
        _fail(f"type must be one of: {_ALLOWED_TYPES}", f"{path}.type")

    raw_category = entry.get("category")
    if raw_category is None and extensible and agent in _CATEGORY_VALUES:
        raw_category = agent
    if not isinstance(raw_category, str):
        _fail("category must be a string", f"{path}.category")
    if raw_category not in _CATEGORY_VALUES:
        _fail("category must be flow, rhythm, sensory, or punch", f"{path}.category")
    category = EditCategory(raw_category)

    original_text = entry.get("original_text")
    if not isinstance(original_text, str):
        _fail("original_text must be a string", f"{path}.original_text")
    if not original_text:
        _fail("original_text cannot be empty", f"{path}.original_text")

    output = entry.get("output")
    if output is not None and not isinstance(output, str):
        _fail("output must be a string or null", f"{path}.output")
    if output == "" and edit_type not in EMPTY_OUTPUT_TYPES:
        _fail(f"output cannot be empty string for {edit_type.value} edits", f"{path}.output")

    annotation = entry.get("annotation")
    if annotation is not None and not isinstance(annotation, str):
        _fail("annotation must be a string or null", f"{path}.annotation")

    anchor = create_anchor_id(
        line=line,
        type=edit_type.value,
        category=category.value,
        original_text=original_text,
        output=output,
        index=index,
        anchor=find_anchor_candidate(entry),
    )
    return EditEntry(
        agent=agent,
        anchor=anchor,
        line=line,
        type=edit_type,
        category=category,
        original_text=original_text,
        output=output,
        annotation=(annotation or "").strip() or None,
    )


def parse_edit_payload(raw: Any, *, extensible_agents: bool = False, combine: bool = True) -> EditPayload:
    """Validate ``raw`` and return the canonical payload it describes.

    Validation stops at the first violation; no partial payload is ever
    returned. With ``combine`` set, annotations sharing a line with a
    substantive edit are folded into that edit before the payload is built.
    Pass ``combine=False`` when re-checking stored or merged payloads, which
    may legitimately hold several edits per line.
    """
    if not _is_record(raw):
        _fail("Payload must be an object")

    summary = raw.get("summary")
    if not isinstance(summary, str):
        _fail("summary must be a string", "summary")
    if not summary.strip():
        _fail("summary cannot be empty", "summary")

    edits = raw.get("edits")
    if not isinstance(edits, (list, tuple)):
        _fail("edits must be an array", "edits")

    parsed = [
        _parse_edit(entry, index, extensible=extensible_agents)
        for index, entry in enumerate(edits)
    ]
    edits_out = combine_same_line_edits(parsed) if combine else parsed
    return EditPayload(summary=summary.strip(), edits=tuple(edits_out))


def parse_edit_payload_from_string(
    text: str, *, extensible_agents: bool = False, combine: bool = True
) -> EditPayload:
    """Decode JSON ``text`` and validate it as an edit payload."""
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, TypeError) as error:
        raise PayloadFormatError("Invalid JSON provided") from error
    return parse_edit_payload(raw, extensible_agents=extensible_agents, combine=combine)
