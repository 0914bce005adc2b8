from __future__ import annotations

import copy
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


THREE_LITTLE_PIGS: Dict[str, Any] = {
    "summary": "  The pacing is strong, but the wolf's arrival could land harder.  ",
    "edits": [
        {
            "agent": "editor",
            "line": 2,
            "type": "addition",
            "category": "flow",
            "original_text": "The first pig built a house of straw.",
            "output": " in a single lazy afternoon",
        },
        {
            "agent": "editor",
            "line": 4,
            "type": "replacement",
            "category": "sensory",
            "original_text": "The wolf came.",
            "output": "The wolf came, breath steaming in the cold.",
        },
        {
            "agent": "editor",
            "line": 9,
            "type": "star",
            "category": "punch",
            "original_text": "And the wolf never came back.",
            "output": "[STAR: a clean, final beat.]",
        },
    ],
}


@pytest.fixture()
def pigs_payload() -> Dict[str, Any]:
    """Fresh copy of a valid three-edit payload."""

    return copy.deepcopy(THREE_LITTLE_PIGS)


@pytest.fixture()
def make_edit() -> Callable[..., Dict[str, Any]]:
    """Factory for raw edit records with sensible defaults."""

    def _make(**overrides: Any) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "agent": "editor",
            "line": 1,
            "type": "addition",
            "category": "flow",
            "original_text": "text",
            "output": "out",
        }
        record.update(overrides)
        return record

    return _make


@pytest.fixture()
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write ``data`` as JSON under ``tmp_path`` and return the file path."""

    def _write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write
