"""Writers Room: structured edit suggestions for prose documents."""

from .edits import (
    EditCategory,
    EditEntry,
    EditPayload,
    EditPayloadError,
    EditType,
    PayloadFormatError,
    PayloadValidationError,
    merge_edit_payloads,
    parse_ai_response,
    parse_edit_payload,
    parse_edit_payload_from_string,
    resolve_edit,
)
from .markup import transform_inline_markup
from .store import EditStore

__version__ = "0.3.0"

__all__ = [
    "EditCategory",
    "EditEntry",
    "EditPayload",
    "EditPayloadError",
    "EditStore",
    "EditType",
    "PayloadFormatError",
    "PayloadValidationError",
    "__version__",
    "merge_edit_payloads",
    "parse_ai_response",
    "parse_edit_payload",
    "parse_edit_payload_from_string",
    "resolve_edit",
    "transform_inline_markup",
]
