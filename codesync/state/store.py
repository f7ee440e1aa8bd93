# codesync/state/store.py
"""
Sync state persistence.

JsonSyncStateStore keeps one JSON document per codebase under a directory.
Writes go to a temporary file that is then renamed over the target, so a
crash never leaves a half-written record behind.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union, runtime_checkable

from pydantic import ValidationError as PydanticValidationError

from codesync.core.exceptions import StateStoreError
from codesync.logging.logger import get_logger
from codesync.logging.tags import STATE
from codesync.state.schema import RepositorySyncRecord, WebhookEventLog

logger = get_logger(__name__)

MAX_EVENTS_PER_CODEBASE = 100

_SAFE_NAME = re.compile(r"[^A-Za-z0-9_.-]")


@runtime_checkable
class SyncStateStore(Protocol):
    async def get_sync_record(self, codebase_id: str) -> Optional[RepositorySyncRecord]: ...

    async def put_sync_record(self, codebase_id: str, record: RepositorySyncRecord) -> None: ...

    async def delete_sync_record(self, codebase_id: str) -> bool: ...

    async def list_sync_records(self) -> List[RepositorySyncRecord]: ...

    async def log_webhook_event(self, event: WebhookEventLog) -> None: ...

    async def get_webhook_events(self, codebase_id: str, limit: int = 20) -> List[WebhookEventLog]: ...


# =============================================================================
# In-memory
# =============================================================================


class InMemorySyncStateStore:
    """Process-local store. Records are copied in and out."""

    def __init__(self) -> None:
        self._records: Dict[str, RepositorySyncRecord] = {}
        self._events: Dict[str, List[WebhookEventLog]] = {}
        self.writes = 0

    async def get_sync_record(self, codebase_id: str) -> Optional[RepositorySyncRecord]:
        record = self._records.get(codebase_id)
        return record.model_copy(deep=True) if record is not None else None

    async def put_sync_record(self, codebase_id: str, record: RepositorySyncRecord) -> None:
        self._records[codebase_id] = record.model_copy(deep=True)
        self.writes += 1

    async def delete_sync_record(self, codebase_id: str) -> bool:
        return self._records.pop(codebase_id, None) is not None

    async def list_sync_records(self) -> List[RepositorySyncRecord]:
        return [r.model_copy(deep=True) for _, r in sorted(self._records.items())]

    async def log_webhook_event(self, event: WebhookEventLog) -> None:
        events = [e for e in self._events.get(event.codebase_id, []) if e.id != event.id]
        events.append(event.model_copy(deep=True))
        self._events[event.codebase_id] = events[-MAX_EVENTS_PER_CODEBASE:]

    async def get_webhook_events(self, codebase_id: str, limit: int = 20) -> List[WebhookEventLog]:
        events = self._events.get(codebase_id, [])
        return [e.model_copy(deep=True) for e in reversed(events[-limit:])]


# =============================================================================
# JSON files
# =============================================================================


class JsonSyncStateStore:
    """
    Layout:
        {directory}/records/{codebase_id}.json
        {directory}/events/{codebase_id}.json
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    def _path(self, kind: str, codebase_id: str) -> Path:
        return self.directory / kind / f"{_SAFE_NAME.sub('_', codebase_id)}.json"

    @staticmethod
    def _atomic_write(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _read(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateStoreError(f"Cannot read {path}: {e}") from e

    # -------------------------------------------------------------------------
    # Sync records
    # -------------------------------------------------------------------------

    async def get_sync_record(self, codebase_id: str) -> Optional[RepositorySyncRecord]:
        path = self._path("records", codebase_id)
        raw = self._read(path)
        if raw is None:
            return None
        try:
            return RepositorySyncRecord.model_validate_json(raw)
        except PydanticValidationError as e:
            raise StateStoreError(f"Corrupt sync record {path}: {e}") from e

    async def put_sync_record(self, codebase_id: str, record: RepositorySyncRecord) -> None:
        path = self._path("records", codebase_id)
        try:
            self._atomic_write(path, record.model_dump_json(indent=2))
        except OSError as e:
            raise StateStoreError(f"Cannot write {path}: {e}") from e
        logger.debug(f"{STATE} Saved sync record for {codebase_id} -> {path}")

    async def delete_sync_record(self, codebase_id: str) -> bool:
        path = self._path("records", codebase_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    async def list_sync_records(self) -> List[RepositorySyncRecord]:
        records_dir = self.directory / "records"
        if not records_dir.is_dir():
            return []
        records = []
        for path in sorted(records_dir.glob("*.json")):
            raw = self._read(path)
            if raw is not None:
                records.append(RepositorySyncRecord.model_validate_json(raw))
        return records

    # -------------------------------------------------------------------------
    # Webhook log
    # -------------------------------------------------------------------------

    def _load_events(self, codebase_id: str) -> List[WebhookEventLog]:
        raw = self._read(self._path("events", codebase_id))
        if raw is None:
            return []
        try:
            return [WebhookEventLog.model_validate(item) for item in json.loads(raw)]
        except (ValueError, PydanticValidationError) as e:
            raise StateStoreError(f"Corrupt webhook log for {codebase_id}: {e}") from e

    async def log_webhook_event(self, event: WebhookEventLog) -> None:
        events = [e for e in self._load_events(event.codebase_id) if e.id != event.id]
        events.append(event)
        events = events[-MAX_EVENTS_PER_CODEBASE:]
        payload = json.dumps([e.model_dump(mode="json") for e in events], indent=2)
        try:
            self._atomic_write(self._path("events", event.codebase_id), payload)
        except OSError as e:
            raise StateStoreError(f"Cannot write webhook log for {event.codebase_id}: {e}") from e

    async def get_webhook_events(self, codebase_id: str, limit: int = 20) -> List[WebhookEventLog]:
        return list(reversed(self._load_events(codebase_id)[-limit:]))


__all__ = [
    "InMemorySyncStateStore",
    "JsonSyncStateStore",
    "MAX_EVENTS_PER_CODEBASE",
    "SyncStateStore",
]
