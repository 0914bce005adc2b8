"""Typed records describing edit suggestions attached to a document."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_AGENT = "editor"


class RecordModel(BaseModel):
    """Base Pydantic model for immutable edit records."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class EditType(str, Enum):
    """Kinds of change an edit suggests."""

    ADDITION = "addition"
    SUBTRACTION = "subtraction"
    ANNOTATION = "annotation"
    REPLACEMENT = "replacement"
    STAR = "star"


class EditCategory(str, Enum):
    """Editorial concern an edit addresses."""

    FLOW = "flow"
    RHYTHM = "rhythm"
    SENSORY = "sensory"
    PUNCH = "punch"


EMPTY_OUTPUT_TYPES = frozenset({EditType.SUBTRACTION, EditType.REPLACEMENT})


class EditEntry(RecordModel):
    """Single suggested change to one line of a document."""

    agent: str = DEFAULT_AGENT
    anchor: str
    line: int = Field(ge=1)
    type: EditType
    category: EditCategory
    original_text: str = Field(min_length=1)
    output: Optional[str] = None
    annotation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "agent": self.agent,
            "anchor": self.anchor,
            "line": self.line,
            "type": self.type.value,
            "category": self.category.value,
            "original_text": self.original_text,
            "output": self.output,
        }
        if self.annotation is not None:
            data["annotation"] = self.annotation
        return data


class EditPayload(RecordModel):
    """Summary plus the ordered edits produced by one edit run."""

    summary: str = Field(min_length=1)
    edits: Tuple[EditEntry, ...] = ()

    def anchors(self) -> list[str]:
        """Return the anchors of every edit in payload order."""
        return [edit.anchor for edit in self.edits]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "edits": [edit.to_dict() for edit in self.edits],
        }

    def to_json(self) -> str:
        """Render the payload the way edit files are written to disk."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"
