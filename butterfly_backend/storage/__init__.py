"""
Record Storage Layer

RESPONSIBILITY: Own the butterflies/users collections, load once, flush on write
ALLOWED INPUTS: Butterfly and User records from the engine and merge layers
OUTPUTS: Records by id, full collections, commit outcome

WHAT THIS LAYER MUST NOT DO:
============================
- Validate request payloads
- Decide rating order (that's the order policy's job)
- Roll back in-memory state after a failed commit
- Delete records

BOUNDARY ENFORCEMENT:
=====================
- The whole document is written on every commit (last write wins)
- A commit either completes or raises PersistenceFailure
- Read-modify-write-commit sequences run inside transaction()
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Iterator, List, Optional
from collections import deque
import copy
import hashlib
import json
import logging
import os
import threading

from ..contracts.base import ErrorCode, PersistenceFailure, RecordKind
from ..contracts.records import (
    Butterfly, User, AuditEventType, AuditLogEntry
)
from ..domain.serialization import dump_document

logger = logging.getLogger(__name__)


def empty_document() -> Dict[str, List[Dict[str, Any]]]:
    return {RecordKind.BUTTERFLY.collection: [], RecordKind.USER.collection: []}


# =============================================================================
# DOCUMENT BACKENDS (Dependency Inversion)
# =============================================================================

class DocumentBackend:
    """
    Abstract document backend interface.

    A backend reads and writes the whole record document at once.
    Implementations differ only in where the document lives.
    """

    def read(self) -> Dict[str, Any]:
        """Return the last written document (or an empty one)."""
        raise NotImplementedError

    def write(self, document: Dict[str, Any]) -> None:
        """Replace the stored document."""
        raise NotImplementedError


class InMemoryDocumentBackend(DocumentBackend):
    """
    In-memory implementation of the document backend.

    Writes still go through JSON serialization so that an unserializable
    document fails here the same way it would on disk.
    Suitable for testing and ephemeral runs.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._document = copy.deepcopy(initial) if initial is not None else empty_document()
        self._write_count: int = 0

    def read(self) -> Dict[str, Any]:
        return copy.deepcopy(self._document)

    def write(self, document: Dict[str, Any]) -> None:
        self._document = json.loads(dump_document(document))
        self._write_count += 1

    @property
    def write_count(self) -> int:
        return self._write_count


class JsonFileDocumentBackend(DocumentBackend):
    """
    File-based implementation of the document backend.

    The document is a single JSON file. Each write goes to a sibling
    temp file which then replaces the original, so a crash mid-write
    leaves the previous document intact.
    """

    def __init__(self, db_path: str):
        self._db_path = db_path

    @property
    def db_path(self) -> str:
        return self._db_path

    def read(self) -> Dict[str, Any]:
        if not os.path.exists(self._db_path):
            logger.warning(f"No record document at {self._db_path}, starting empty")
            return empty_document()

        with open(self._db_path, 'r', encoding='utf-8') as f:
            document = json.load(f)

        if not isinstance(document, dict):
            raise ValueError(f"Record document at {self._db_path} is not a JSON object")
        return document

    def write(self, document: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self._db_path))
        os.makedirs(directory, exist_ok=True)

        payload = dump_document(document)
        tmp_path = f"{self._db_path}.tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            f.write(payload)
        os.replace(tmp_path, self._db_path)


# =============================================================================
# RECORD STORE (Orchestrates the in-memory collections)
# =============================================================================

@dataclass
class RecordStoreConfig:
    """Configuration for the record store."""
    backend_type: str = "memory"  # "memory" or "file"
    db_path: Optional[str] = None
    audit_log_size: int = 1000  # most recent entries kept


class RecordStore:
    """
    Process-wide record store.

    Holds both collections in memory, keyed by id in insertion order.
    The document is loaded once by load() and written back by commit().
    """

    def __init__(
        self,
        config: Optional[RecordStoreConfig] = None,
        backend: Optional[DocumentBackend] = None
    ):
        self._config = config or RecordStoreConfig()
        self._backend = backend or self._create_backend()
        self._lock = threading.RLock()
        self._butterflies: Dict[str, Butterfly] = {}
        self._users: Dict[str, User] = {}
        self._loaded = False
        self._audit_log: Deque[AuditLogEntry] = deque(maxlen=self._config.audit_log_size)
        self._audit_seq = 0

    def _create_backend(self) -> DocumentBackend:
        """Create document backend based on configuration."""
        if self._config.backend_type == "file" and self._config.db_path:
            return JsonFileDocumentBackend(self._config.db_path)
        return InMemoryDocumentBackend()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def load(self) -> None:
        """Read the document into memory. Later calls are no-ops."""
        with self._lock:
            if self._loaded:
                return

            try:
                document = self._backend.read()
                butterflies = [
                    Butterfly.from_dict(item)
                    for item in document.get(RecordKind.BUTTERFLY.collection) or []
                ]
                users = [
                    User.from_dict(item)
                    for item in document.get(RecordKind.USER.collection) or []
                ]
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.error(f"Failed to load record document: {e}")
                raise PersistenceFailure(
                    f"Failed to load record document: {e}", code=ErrorCode.LOAD_FAILED
                ) from e

            self._butterflies = {b.id: b for b in butterflies}
            self._users = {u.id: u for u in users}
            self._loaded = True

            self._log_audit(
                action="loaded",
                metadata=(
                    ("butterflies", str(len(self._butterflies))),
                    ("users", str(len(self._users))),
                )
            )
            logger.info(
                f"Loaded {len(self._butterflies)} butterflies and {len(self._users)} users"
            )

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @contextmanager
    def transaction(self) -> Iterator['RecordStore']:
        """Exclusive access for a read-modify-write-commit sequence."""
        with self._lock:
            yield self

    def commit(self) -> None:
        """
        Persist the current in-memory state.

        On failure the in-memory state is left as is; it may now
        disagree with what is on disk until the next successful commit.
        """
        with self._lock:
            try:
                self._backend.write(self.to_document())
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"Failed to commit record document: {e}")
                self._log_audit(
                    action="commit_failed",
                    event_type=AuditEventType.ERROR,
                    metadata=(("error", str(e)),)
                )
                raise PersistenceFailure(f"Failed to commit record document: {e}") from e

            self._log_audit(action="committed")

    def to_document(self) -> Dict[str, List[Any]]:
        """Current state in persisted shape (records serialize via to_dict)."""
        return {
            RecordKind.BUTTERFLY.collection: list(self._butterflies.values()),
            RecordKind.USER.collection: list(self._users.values()),
        }

    # =========================================================================
    # COLLECTION ACCESS
    # =========================================================================

    def get_butterfly(self, butterfly_id: str) -> Optional[Butterfly]:
        return self._butterflies.get(butterfly_id)

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def get_all_butterflies(self) -> List[Butterfly]:
        return list(self._butterflies.values())

    def get_all_users(self) -> List[User]:
        return list(self._users.values())

    def butterfly_ids(self) -> frozenset:
        return frozenset(self._butterflies)

    def user_ids(self) -> frozenset:
        return frozenset(self._users)

    def append_butterfly(self, butterfly: Butterfly) -> None:
        """Append a butterfly. Caller commits."""
        with self._lock:
            if butterfly.id in self._butterflies:
                raise ValueError(f"Butterfly id {butterfly.id} is already taken")
            self._butterflies[butterfly.id] = butterfly
            self._log_audit(action="record_appended", entity_id=butterfly.id,
                            metadata=(("kind", RecordKind.BUTTERFLY.value),))

    def append_user(self, user: User) -> None:
        """Append a user. Caller commits."""
        with self._lock:
            if user.id in self._users:
                raise ValueError(f"User id {user.id} is already taken")
            self._users[user.id] = user
            self._log_audit(action="record_appended", entity_id=user.id,
                            metadata=(("kind", RecordKind.USER.value),))

    # =========================================================================
    # AUDIT
    # =========================================================================

    def _log_audit(
        self,
        action: str,
        entity_id: Optional[str] = None,
        metadata: tuple = (),
        event_type: AuditEventType = AuditEventType.STORAGE
    ):
        """Add entry to internal audit log (oldest entries drop past audit_log_size)."""
        self._audit_seq += 1
        now = datetime.now(timezone.utc)
        entry_id = hashlib.sha256(
            f"storage_{action}|{self._audit_seq}|{now.timestamp()}".encode()
        ).hexdigest()[:16]

        self._audit_log.append(AuditLogEntry(
            entry_id=f"audit_{entry_id}",
            event_type=event_type,
            timestamp=now,
            action=action,
            entity_id=entity_id,
            metadata=metadata
        ))

    def get_audit_log(self) -> List[AuditLogEntry]:
        """Return copy of audit log entries."""
        return list(self._audit_log)

    @property
    def backend(self) -> DocumentBackend:
        """Access to the underlying document backend."""
        return self._backend
