"""Best-effort audit trail.

Services hand entries to ``AuditTrail.record``, which only enqueues them.
``flush`` writes the queue to the database; an entry that cannot be written
is logged and dropped so the business operation that produced it is never
affected.
"""

import logging
import math
import queue
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from tutordesk.database.base import Database
from tutordesk.domain.entities import AuditTarget
from tutordesk.domain.validation import validate_audit_log
from tutordesk.utils.serialization import to_jsonable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEntry:
    """An audit record waiting to be written."""

    action: str
    target_type: AuditTarget
    target_id: Optional[int]
    user_id: Optional[int] = None
    previous_values: dict[str, Any] = field(default_factory=dict)
    new_values: dict[str, Any] = field(default_factory=dict)
    details: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AuditTrail:
    """Fire-and-forget queue of audit entries in front of the audit_logs table."""

    def __init__(self, db: Database):
        """Initialize audit trail.

        Args:
            db: Database instance entries are flushed to
        """
        self.db = db
        self._pending: "queue.SimpleQueue[AuditEntry]" = queue.SimpleQueue()

    def record(
        self,
        action: str,
        target_type: AuditTarget,
        target_id: Optional[int],
        user_id: Optional[int] = None,
        previous: Optional[dict[str, Any]] = None,
        new: Optional[dict[str, Any]] = None,
        details: Optional[str] = None,
    ) -> None:
        """Enqueue an audit entry. Never raises."""
        try:
            entry = AuditEntry(
                action=action,
                target_type=target_type,
                target_id=target_id,
                user_id=user_id,
                previous_values=to_jsonable(previous or {}),
                new_values=to_jsonable(new or {}),
                details=details,
            )
            self._pending.put_nowait(entry)
        except Exception:
            logger.exception("Could not queue audit entry %s for %s %s", action, target_type, target_id)

    def pending_count(self) -> int:
        return self._pending.qsize()

    def flush(self) -> int:
        """Write all queued entries.

        Returns:
            Number of entries written; failed entries are logged and dropped
        """
        written = 0
        while True:
            try:
                entry = self._pending.get_nowait()
            except queue.Empty:
                break
            try:
                fields = {
                    "user_id": entry.user_id,
                    "action": entry.action,
                    "target_type": entry.target_type,
                    "target_id": entry.target_id,
                    "previous_values": entry.previous_values,
                    "new_values": entry.new_values,
                    "details": entry.details,
                    "ip_address": entry.ip_address,
                    "user_agent": entry.user_agent,
                }
                validate_audit_log(fields)
                self.db.create_audit_log(**fields)
                written += 1
            except Exception:
                logger.exception(
                    "Dropping audit entry %s for %s %s",
                    entry.action,
                    entry.target_type,
                    entry.target_id,
                )
                self.db.rollback()
        return written

    def list_audit_logs(
        self,
        user_id: Optional[int] = None,
        target_type: Optional[str] = None,
        target_id: Optional[int] = None,
        action: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        """List audit logs, newest first, with pagination.

        Args:
            user_id: Optional acting user filter
            target_type: Optional target type filter
            target_id: Optional target ID filter
            action: Optional action name filter
            start_date: Optional start of the creation date range (inclusive)
            end_date: Optional end of the creation date range (inclusive)
            page: 1-based page number
            limit: Page size

        Returns:
            Dict with ``logs`` and ``pagination`` {current, pages, total}
        """
        page = max(page, 1)
        filters = {
            "user_id": user_id,
            "target_type": target_type,
            "target_id": target_id,
            "action": action,
            "start_date": start_date,
            "end_date": end_date,
        }
        logs = self.db.list_audit_logs(**filters, limit=limit, offset=(page - 1) * limit)
        total = self.db.count_audit_logs(**filters)
        return {"logs": logs, "pagination": paginate(page, limit, total)}


def paginate(page: int, limit: int, total: int) -> dict[str, int]:
    """Pagination block {current, pages, total}."""
    pages = math.ceil(total / limit) if limit > 0 else 0
    return {"current": page, "pages": pages, "total": total}
