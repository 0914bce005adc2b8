"""Edit suggestion records, their validation and merging."""

from .anchors import ANCHOR_PREFIX, create_anchor_id, find_anchor_candidate, hash_anchor_seed
from .folding import combine_same_line_edits
from .merge import find_edit, merge_edit_payloads, resolve_edit
from .normalize import extract_json_text, normalize_ai_payload, parse_ai_response
from .parser import (
    EditPayloadError,
    PayloadFormatError,
    PayloadValidationError,
    parse_edit_payload,
    parse_edit_payload_from_string,
)
from .schema import DEFAULT_AGENT, EditCategory, EditEntry, EditPayload, EditType

__all__ = [
    "ANCHOR_PREFIX",
    "DEFAULT_AGENT",
    "EditCategory",
    "EditEntry",
    "EditPayload",
    "EditPayloadError",
    "EditType",
    "PayloadFormatError",
    "PayloadValidationError",
    "combine_same_line_edits",
    "create_anchor_id",
    "extract_json_text",
    "find_anchor_candidate",
    "find_edit",
    "hash_anchor_seed",
    "merge_edit_payloads",
    "normalize_ai_payload",
    "parse_ai_response",
    "parse_edit_payload",
    "parse_edit_payload_from_string",
    "resolve_edit",
]
