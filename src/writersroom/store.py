"""Persistence of edit payloads keyed by source document."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

from .edits.merge import merge_edit_payloads, resolve_edit
from .edits.parser import EditPayloadError, parse_edit_payload
from .edits.schema import EditPayload

LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def compute_payload_hash(payload: EditPayload) -> str:
    """Return a content digest used to detect payload changes."""
    canonical = json.dumps(payload.to_dict(), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class PersistedEdits:
    """Edit payload stored for one source document."""

    payload: EditPayload
    edits_path: Optional[str] = None
    updated_at: int = 0
    hash: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payload": self.payload.to_dict(),
            "editsPath": self.edits_path,
            "updatedAt": self.updated_at,
            "hash": self.hash,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any], *, extensible_agents: bool = False) -> "PersistedEdits":
        """Re-validate a stored record; raises ``EditPayloadError`` when invalid.

        Stored payloads are not re-combined: a merged payload may keep several
        edits on one line.
        """
        payload = parse_edit_payload(record.get("payload"), extensible_agents=extensible_agents, combine=False)
        stored_hash = record.get("hash")
        edits_path = record.get("editsPath")
        updated_at = record.get("updatedAt")
        return cls(
            payload=payload,
            edits_path=edits_path if isinstance(edits_path, str) and edits_path else None,
            updated_at=updated_at if isinstance(updated_at, int) and not isinstance(updated_at, bool) else _now_ms(),
            hash=stored_hash if isinstance(stored_hash, str) and stored_hash else compute_payload_hash(payload),
        )


class EditStore:
    """In-memory edit payloads per source path with JSON file persistence."""

    def __init__(self) -> None:
        self._entries: Dict[str, PersistedEdits] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, source_path: object) -> bool:
        return source_path in self._entries

    def sources(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def get(self, source_path: str) -> Optional[PersistedEdits]:
        return self._entries.get(source_path)

    def put(
        self,
        source_path: str,
        payload: EditPayload,
        *,
        edits_path: Optional[str] = None,
        merge: bool = False,
    ) -> bool:
        """Store ``payload`` for ``source_path``; return True when anything changed."""
        existing = self._entries.get(source_path)
        if merge and existing is not None:
            payload = merge_edit_payloads(existing.payload, payload)
        if edits_path is None and existing is not None:
            edits_path = existing.edits_path

        digest = compute_payload_hash(payload)
        changed = existing is None or existing.hash != digest or existing.edits_path != edits_path
        self._entries[source_path] = PersistedEdits(
            payload=payload,
            edits_path=edits_path,
            updated_at=_now_ms(),
            hash=digest,
        )
        return changed

    def remove(self, source_path: str) -> bool:
        return self._entries.pop(source_path, None) is not None

    def rename(self, old_path: str, new_path: str) -> bool:
        entry = self._entries.pop(old_path, None)
        if entry is None:
            return False
        entry.updated_at = _now_ms()
        self._entries[new_path] = entry
        return True

    def resolve(self, source_path: str, anchor: str) -> Optional[EditPayload]:
        """Drop the edit ``anchor`` from a stored payload and return the result."""
        entry = self._entries.get(source_path)
        if entry is None:
            LOGGER.warning("Resolve requested but no payload is stored for %s", source_path)
            return None
        updated = resolve_edit(entry.payload, anchor)
        self.put(source_path, updated, edits_path=entry.edits_path)
        return updated

    def to_dict(self) -> Dict[str, Any]:
        return {"edits": {source: self._entries[source].to_dict() for source in sorted(self._entries)}}

    @classmethod
    def from_dict(cls, raw: Any, *, extensible_agents: bool = False) -> "EditStore":
        """Rebuild a store from persisted data, skipping invalid records."""
        store = cls()
        if not isinstance(raw, Mapping):
            return store
        records = raw.get("edits")
        if not isinstance(records, Mapping):
            return store
        for source_path, record in records.items():
            if not isinstance(record, Mapping):
                LOGGER.warning("Skipping persisted edits for %s: record is not an object", source_path)
                continue
            try:
                store._entries[str(source_path)] = PersistedEdits.from_record(
                    record, extensible_agents=extensible_agents
                )
            except EditPayloadError as error:
                LOGGER.warning("Skipping persisted edits for %s due to invalid payload: %s", source_path, error)
        return store

    @classmethod
    def load(cls, path: Path | str, *, extensible_agents: bool = False) -> "EditStore":
        """Load a store from ``path``; a missing file yields an empty store."""
        store_path = Path(path)
        if not store_path.exists():
            return cls()
        with store_path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        return cls.from_dict(raw, extensible_agents=extensible_agents)

    def save(self, path: Path | str) -> None:
        """Persist the store to ``path`` through a sibling temporary file."""
        store_path = Path(path)
        store_path.parent.mkdir(parents=True, exist_ok=True)
        handle = tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=store_path.parent,
            prefix=f".{store_path.name}.",
            suffix=".tmp",
            delete=False,
        )
        temp_path = Path(handle.name)
        try:
            with handle:
                json.dump(self.to_dict(), handle, indent=2, ensure_ascii=False)
                handle.write("\n")
            os.replace(temp_path, store_path)
        finally:
            temp_path.unlink(missing_ok=True)
