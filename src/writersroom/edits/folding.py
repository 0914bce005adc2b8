"""Fold annotation edits into the substantive edit sharing their line."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from .schema import EditEntry, EditType

LOGGER = logging.getLogger(__name__)


def combine_same_line_edits(edits: Iterable[EditEntry]) -> List[EditEntry]:
    """Collapse each line's edits into a single record.

    Lines keep the order in which they first appear. When a line carries
    annotations and at least one substantive edit, the first substantive
    edit absorbs the annotation text. Any other duplicates are dropped,
    keeping the first record seen.
    """
    groups: Dict[int, List[EditEntry]] = {}
    for edit in edits:
        groups.setdefault(edit.line, []).append(edit)

    combined: List[EditEntry] = []
    for line, group in groups.items():
        if len(group) == 1:
            combined.append(group[0])
            continue

        annotations = [edit for edit in group if edit.type is EditType.ANNOTATION]
        substantive = [edit for edit in group if edit.type is not EditType.ANNOTATION]

        if not substantive:
            primary = annotations[0]
        elif not annotations:
            primary = substantive[0]
        else:
            primary = substantive[0]
            notes = [primary.annotation] if primary.annotation else []
            notes.extend(edit.output.strip() for edit in annotations if edit.output)
            joined = " ".join(note for note in notes if note)
            if joined:
                primary = primary.model_copy(update={"annotation": joined})

        folded = len(annotations) if substantive else 0
        dropped = len(group) - 1 - folded
        if dropped:
            LOGGER.debug("Dropped %d duplicate edit(s) on line %d", dropped, line)
        combined.append(primary)
    return combined
