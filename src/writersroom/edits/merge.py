"""Combine and prune edit payloads across edit runs."""

from __future__ import annotations

import logging
from typing import Optional

from .schema import EditEntry, EditPayload

LOGGER = logging.getLogger(__name__)


def merge_edit_payloads(existing: EditPayload, incoming: EditPayload) -> EditPayload:
    """Append the new edits from ``incoming`` after those in ``existing``.

    Edits are matched by anchor, so re-validating the same input never
    duplicates records. The summary of the most recent run wins.
    """
    known = set(existing.anchors())
    appended = []
    for edit in incoming.edits:
        if edit.anchor in known:
            continue
        known.add(edit.anchor)
        appended.append(edit)
    return EditPayload(summary=incoming.summary, edits=(*existing.edits, *appended))


def find_edit(payload: EditPayload, anchor: str) -> Optional[EditEntry]:
    for edit in payload.edits:
        if edit.anchor == anchor:
            return edit
    return None


def resolve_edit(payload: EditPayload, anchor: str) -> EditPayload:
    """Return ``payload`` without the edit identified by ``anchor``."""
    remaining = tuple(edit for edit in payload.edits if edit.anchor != anchor)
    if len(remaining) == len(payload.edits):
        LOGGER.warning("Ignoring resolve request for unknown anchor %s", anchor)
        return payload
    return EditPayload(summary=payload.summary, edits=remaining)
