"""
Audit Log

Append-only, capacity-bounded record of policy lifecycle and validation
actions. When the log is full the oldest entries are evicted first.
"""

import copy
import json
import logging
import threading
import time
import uuid
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import ConfigDict, Field

from .models import CamelModel, utc_now

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 10000


class AuditAction(str, Enum):
    """Kinds of audited actions."""

    VALIDATE = "validate"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ResourceType(str, Enum):
    """Kinds of audited resources."""

    POLICY = "policy"
    RULE = "rule"
    REPORT = "report"


def _generate_entry_id() -> str:
    return f"audit_{time.time_ns() // 1_000_000}_{uuid.uuid4().hex[:12]}"


class AuditEntry(CamelModel):
    """
    Single audit log entry.

    Entries are frozen once written. ``AuditLog.log`` copies ``details``
    when storing; ``log`` and the queries hand back copies of stored entries.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_generate_entry_id)
    timestamp: datetime = Field(default_factory=utc_now)
    action: AuditAction
    resource_type: ResourceType
    resource_id: str
    user_id: str
    details: dict[str, Any] = Field(default_factory=dict)


class AuditLog:
    """
    Bounded in-memory audit log.

    Features:
    - FIFO eviction beyond ``max_entries``
    - Time range, resource and user queries
    - JSON export in insertion order

    Args:
        max_entries: Capacity of the log. Must be at least 1.
        clock: Zero-argument callable returning the current aware datetime.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self._max_entries = max_entries
        self._clock = clock or utc_now
        self._entries: deque[AuditEntry] = deque()
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def log(
        self,
        action: AuditAction,
        resource_type: ResourceType,
        resource_id: str,
        user_id: str,
        details: Optional[dict[str, Any]] = None,
    ) -> AuditEntry:
        """Append an audit entry and evict the oldest ones beyond capacity.

        Args:
            action: What was done (create, update, delete, validate).
            resource_type: Kind of resource acted upon.
            resource_id: Identifier of the resource.
            user_id: Who performed the action.
            details: Free-form context; deep-copied before storing.

        Returns:
            A copy of the stored ``AuditEntry``.
        """
        entry = AuditEntry(
            timestamp=self._clock(),
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            user_id=user_id,
            details=copy.deepcopy(details) if details else {},
        )

        with self._lock:
            self._entries.append(entry)
            evicted = 0
            while len(self._entries) > self._max_entries:
                self._entries.popleft()
                evicted += 1

        if evicted:
            logger.debug("Evicted %d audit entries (capacity %d)", evicted, self._max_entries)

        return entry.model_copy(deep=True)

    def _snapshot(self) -> list[AuditEntry]:
        with self._lock:
            return list(self._entries)

    @staticmethod
    def _detached(entries: list[AuditEntry]) -> list[AuditEntry]:
        return [e.model_copy(deep=True) for e in entries]

    @staticmethod
    def _as_utc(value: datetime) -> datetime:
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    def get_logs(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[AuditEntry]:
        """Entries whose timestamp lies within the inclusive bounds.

        An omitted bound leaves that side open. Naive bounds are read as UTC.
        """
        results = self._snapshot()

        if start is not None:
            results = [e for e in results if e.timestamp >= self._as_utc(start)]

        if end is not None:
            results = [e for e in results if e.timestamp <= self._as_utc(end)]

        return self._detached(results)

    def get_logs_for_resource(
        self,
        resource_type: ResourceType,
        resource_id: str,
    ) -> list[AuditEntry]:
        """Entries matching both the resource type and the resource ID."""
        return self._detached([
            e for e in self._snapshot()
            if e.resource_type == resource_type and e.resource_id == resource_id
        ])

    def get_logs_for_user(self, user_id: str) -> list[AuditEntry]:
        """Entries recorded for a user."""
        return self._detached([e for e in self._snapshot() if e.user_id == user_id])

    def get_action_counts(self) -> dict[AuditAction, int]:
        """Number of retained entries per action, zero counts included."""
        counts = {action: 0 for action in AuditAction}
        for entry in self._snapshot():
            counts[entry.action] += 1
        return counts

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def export(self) -> str:
        """Serialize all entries to a JSON array in stored order."""
        data = [e.to_dict() for e in self._snapshot()]
        return json.dumps(data, indent=2, ensure_ascii=False)
