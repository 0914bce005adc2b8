"""Lenient coercion of edit payloads returned by language models.

Model responses tend to be almost-but-not-quite valid: JSON wrapped in
Markdown fences, smart quotes, trailing commas, synonyms for edit types,
numeric lines encoded as strings. The helpers below repair what can be
repaired, log every coercion, and hand the result to the strict parser.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from .parser import PayloadFormatError, parse_edit_payload
from .schema import DEFAULT_AGENT, EditPayload

__all__ = [
    "FALLBACK_SUMMARY",
    "extract_json_text",
    "normalize_ai_edit",
    "normalize_ai_payload",
    "parse_ai_response",
]

LOGGER = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Editors provided automated revision suggestions."

TYPE_ALIASES: Dict[str, str] = {
    "addition": "addition",
    "add": "addition",
    "suggestion": "addition",
    "subtraction": "subtraction",
    "remove": "subtraction",
    "deletion": "subtraction",
    "annotation": "annotation",
    "comment": "annotation",
    "note": "annotation",
    "replacement": "replacement",
    "replace": "replacement",
    "rewrite": "replacement",
    "reword": "replacement",
    "revision": "replacement",
    "star": "star",
    "highlight": "star",
    "stellar": "star",
    "shoutout": "star",
    "praise": "star",
}

CATEGORY_ALIASES: Dict[str, str] = {
    "flow": "flow",
    "pacing": "flow",
    "rhythm": "rhythm",
    "cadence": "rhythm",
    "sensory": "sensory",
    "imagery": "sensory",
    "punch": "punch",
    "impact": "punch",
}

_JSON_FENCE = re.compile(r"```json\s*(.*?)```", re.IGNORECASE | re.DOTALL)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")

# Dashes and ellipses are not mapped; original_text must match the
# document verbatim.
_QUOTE_REPAIRS = str.maketrans(
    {
        0x201C: '"',
        0x201D: '"',
        0x2018: "'",
        0x2019: "'",
        0xFF07: "'",
        0x00A0: " ",
        0xFEFF: "",
    }
)


def _straighten_quotes(candidate: str) -> str:
    """Swap curly quote delimiters, nbsp and BOM for their JSON-safe forms."""
    return candidate.translate(_QUOTE_REPAIRS)


def _drop_trailing_commas(candidate: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", candidate)


def _decodes(candidate: str) -> bool:
    try:
        json.loads(candidate)
    except json.JSONDecodeError:
        return False
    return True


def extract_json_text(content: str) -> Optional[str]:
    """Return the JSON object embedded in a model response, if any.

    Text that already decodes is returned untouched, so typographic quotes
    inside edit text survive. Otherwise quote and trailing-comma repairs
    are applied in turn until the candidate decodes.
    """
    if not content:
        return None

    fenced = _JSON_FENCE.search(content)
    if fenced and fenced.group(1).strip():
        candidate = fenced.group(1).strip()
    else:
        start = content.find("{")
        end = content.rfind("}")
        if start == -1 or end <= start:
            return None
        candidate = content[start : end + 1].strip()

    if _decodes(candidate):
        return candidate
    for repair, label in (
        (_straighten_quotes, "typographic quotes"),
        (_drop_trailing_commas, "trailing commas"),
    ):
        repaired = repair(candidate)
        if repaired == candidate:
            continue
        LOGGER.warning("Repaired %s in model JSON.", label)
        candidate = repaired
        if _decodes(candidate):
            break
    return candidate


def _coerce_line(value: Any) -> Optional[int]:
    """Return a usable 1-based line number, or ``None`` to drop the edit.

    Integral numbers are taken as-is and rejected below 1; strings and
    fractional numbers are truncated and clamped to 1.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return max(1, math.trunc(number))


def _coerce_output(value: Any, index: int) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        LOGGER.warning("Flattening array output into string (edit %d).", index)
        return "\n".join(item if isinstance(item, str) else str(item if item is not None else "") for item in value)
    if isinstance(value, Mapping) and "text" in value:
        text = value.get("text")
        return text if isinstance(text, str) else str(text if text is not None else "")
    LOGGER.warning("Coercing non-string output to string (edit %d): %r", index, value)
    return str(value)


def normalize_ai_edit(entry: Any, index: int, *, extensible_agents: bool = False) -> Optional[Dict[str, Any]]:
    """Coerce one model-emitted edit, or return ``None`` to drop it."""
    if not isinstance(entry, Mapping):
        LOGGER.warning("Dropping malformed edit entry %d: %r", index, entry)
        return None

    record = dict(entry)

    agent = record.get("agent")
    if not isinstance(agent, str) or not agent.strip():
        LOGGER.warning("Setting missing agent to %r (edit %d).", DEFAULT_AGENT, index)
        record["agent"] = DEFAULT_AGENT
    elif extensible_agents:
        record["agent"] = agent.strip().lower()
    elif agent.strip().lower() != DEFAULT_AGENT:
        LOGGER.warning("Normalizing agent %r to %r (edit %d).", agent, DEFAULT_AGENT, index)
        record["agent"] = DEFAULT_AGENT
    else:
        record["agent"] = DEFAULT_AGENT

    edit_type = record.get("type")
    if isinstance(edit_type, str):
        lowered = edit_type.strip().lower()
        record["type"] = TYPE_ALIASES.get(lowered, lowered)

    category = record.get("category")
    if isinstance(category, str):
        lowered = category.strip().lower()
        record["category"] = CATEGORY_ALIASES.get(lowered, lowered)

    original_text = record.get("original_text")
    if original_text is None:
        LOGGER.warning("Dropping edit %d without original_text.", index)
        return None
    if not isinstance(original_text, str):
        LOGGER.warning("Coercing original_text to string (edit %d).", index)
        original_text = str(original_text)
    record["original_text"] = original_text.rstrip()

    output = _coerce_output(record.get("output"), index)
    record["output"] = output.rstrip() if isinstance(output, str) else None

    line = record.get("line")
    coerced_line = _coerce_line(line)
    if coerced_line is None:
        LOGGER.warning("Dropping edit %d with invalid line number %r.", index, line)
        return None
    if coerced_line != line:
        LOGGER.warning("Coercing line value %r to %d (edit %d).", line, coerced_line, index)
    record["line"] = coerced_line

    return record


def normalize_ai_payload(raw: Any, *, extensible_agents: bool = False) -> Any:
    """Repair the top-level shape of a decoded model response."""
    if isinstance(raw, list):
        LOGGER.warning("Payload wrapped in array of %d; using first element.", len(raw))
        raw = raw[0] if raw else {}

    if not isinstance(raw, Mapping):
        return raw

    record = dict(raw)

    summary = record.get("summary")
    if "summary" in record and not isinstance(summary, str):
        LOGGER.warning("Coercing summary to string.")
        summary = "" if summary is None else str(summary)
    if not isinstance(summary, str) or not summary.strip():
        LOGGER.warning("Applying fallback summary.")
        summary = FALLBACK_SUMMARY
    record["summary"] = summary

    edits_raw = record.get("edits")
    entries: List[Any] = []
    if isinstance(edits_raw, (list, tuple)):
        entries = list(edits_raw)
    elif isinstance(edits_raw, Mapping):
        LOGGER.warning("Coercing edits object into array.")
        entries = list(edits_raw.values())
    elif edits_raw is not None:
        LOGGER.warning("Ignoring non-array edits value %r.", edits_raw)

    normalized = (
        normalize_ai_edit(entry, index, extensible_agents=extensible_agents)
        for index, entry in enumerate(entries)
    )
    record["edits"] = [entry for entry in normalized if entry is not None]
    return record


def parse_ai_response(content: str, *, extensible_agents: bool = False) -> EditPayload:
    """Extract, repair and strictly validate a model's edit response."""
    text = extract_json_text(content)
    if text is None:
        raise PayloadFormatError("Response did not include a JSON payload")
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as error:
        LOGGER.error("Failed to parse model JSON: %s", text[:500])
        raise PayloadFormatError("Invalid JSON provided") from error
    normalized = normalize_ai_payload(raw, extensible_agents=extensible_agents)
    return parse_edit_payload(normalized, extensible_agents=extensible_agents)
