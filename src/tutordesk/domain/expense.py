"""General expense domain service."""

import logging
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Any, Optional, Sequence

from dateutil.relativedelta import relativedelta

from tutordesk import config
from tutordesk.database.base import Database
from tutordesk.domain.audit import AuditTrail, paginate
from tutordesk.domain.entities import (
    AuditTarget,
    Expense,
    ExpenseCategory,
    ExpenseStatus,
    RecurringFrequency,
)
from tutordesk.domain.errors import NotFoundError, PreconditionError, ValidationError, not_found
from tutordesk.domain.validation import validate_expense
from tutordesk.utils.money import to_decimal

logger = logging.getLogger(__name__)

RECURRENCE_STEPS = {
    RecurringFrequency.WEEKLY: relativedelta(weeks=1),
    RecurringFrequency.MONTHLY: relativedelta(months=1),
    RecurringFrequency.QUARTERLY: relativedelta(months=3),
}


def next_recurring_date(expense_date: date, frequency: Optional[RecurringFrequency]) -> Optional[date]:
    """Date of the next occurrence of a recurring expense, or None."""
    if frequency is None:
        return None
    return expense_date + RECURRENCE_STEPS[RecurringFrequency(frequency)]


class ExpenseService:
    """Service for submitting and approving general expenses.

    Expenses move pending -> approved or pending -> rejected. The stored
    status vocabulary is pending/paid/rejected, so an approved expense is
    persisted as ``paid`` with its approver stamped.
    """

    def __init__(self, db: Database, audit: Optional[AuditTrail] = None):
        """Initialize expense service.

        Args:
            db: Database instance
            audit: Optional audit trail for state changes
        """
        self.db = db
        self.audit = audit

    def create_expense(
        self,
        submitted_by: int,
        category: ExpenseCategory,
        amount: Decimal,
        description: str,
        expense_date: Optional[date] = None,
        currency: Optional[str] = None,
        subcategory: Optional[str] = None,
        receipt_url: Optional[str] = None,
        is_recurring: bool = False,
        recurring_frequency: Optional[RecurringFrequency] = None,
        next_recurring: Optional[date] = None,
        tags: Sequence[str] = (),
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> int:
        """Submit a pending expense.

        Args:
            submitted_by: Submitting user ID
            category: Expense category
            amount: Amount (>= 0, at most 2 decimals)
            description: Required description
            expense_date: Defaults to today; at most 30 days ahead
            currency: Defaults to the configured currency
            subcategory: Optional free-text subcategory
            receipt_url: Optional http(s) URL of the receipt
            is_recurring: Whether the expense repeats
            recurring_frequency: weekly, monthly or quarterly (required when recurring)
            next_recurring: Next occurrence; derived from the frequency when omitted
            tags: Optional tags
            notes: Optional notes
            today: Reference date for validation

        Returns:
            Expense ID

        Raises:
            NotFoundError: If the submitting user doesn't exist
            ValidationError: If the record is invalid
        """
        if self.db.get_user(submitted_by) is None:
            raise NotFoundError(not_found("User", submitted_by))

        expense_date = expense_date or date.today()
        record: dict[str, Any] = {
            "submitted_by": submitted_by,
            "category": category,
            "subcategory": subcategory,
            "amount": to_decimal(amount),
            "currency": (currency or config.default_currency()).upper(),
            "description": description,
            "receipt_url": receipt_url,
            "date": expense_date,
            "status": ExpenseStatus.PENDING,
            "is_recurring": is_recurring,
            "recurring_frequency": recurring_frequency if is_recurring else None,
            "next_recurring_date": None,
            "tags": [tag.strip() for tag in tags if tag.strip()],
            "notes": notes,
        }
        validate_expense(record, today)
        if is_recurring:
            record["next_recurring_date"] = next_recurring or next_recurring_date(expense_date, recurring_frequency)

        expense_id = self.db.create_expense(**record)
        logger.info("Created expense %s (%s %s)", expense_id, record["category"], record["amount"])
        if self.audit:
            self.audit.record("expense_created", AuditTarget.EXPENSE, expense_id, user_id=submitted_by, new=record)
        return expense_id

    def get_expense(self, expense_id: int) -> Optional[Expense]:
        """Get expense by ID."""
        return self.db.get_expense(expense_id)

    def require_expense(self, expense_id: int) -> Expense:
        expense = self.db.get_expense(expense_id)
        if expense is None:
            raise NotFoundError(not_found("Expense", expense_id))
        return expense

    def _save(self, expense: Expense, changes: dict[str, Any]) -> Expense:
        candidate = {name: getattr(expense, name) for name in expense.__dataclass_fields__}
        candidate.update(changes)
        validate_expense(candidate)
        self.db.update_expense(expense.id, **changes)
        return self.require_expense(expense.id)

    def approve_expense(self, expense_id: int, approved_by: int) -> Expense:
        """Approve a pending expense; it is stored as ``paid``.

        Raises:
            NotFoundError: If the expense doesn't exist
            PreconditionError: If the expense is not pending
        """
        expense = self.require_expense(expense_id)
        if expense.status != ExpenseStatus.PENDING:
            raise PreconditionError("Expense is not in pending status")

        changes = {
            "status": ExpenseStatus.PAID,
            "approved_by": approved_by,
            "approved_at": datetime.now(UTC),
            "rejected_by": None,
            "rejected_at": None,
            "rejection_reason": None,
        }
        updated = self._save(expense, changes)
        logger.info("Expense %s approved by %s", expense_id, approved_by)
        if self.audit:
            self.audit.record(
                "expense_approved",
                AuditTarget.EXPENSE,
                expense_id,
                user_id=approved_by,
                previous={"status": expense.status},
                new=changes,
            )
        return updated

    def reject_expense(self, expense_id: int, rejected_by: int, reason: str) -> Expense:
        """Reject a pending expense.

        Raises:
            NotFoundError: If the expense doesn't exist
            PreconditionError: If the expense is not pending
            ValidationError: If no reason is given
        """
        expense = self.require_expense(expense_id)
        if expense.status != ExpenseStatus.PENDING:
            raise PreconditionError("Expense is not in pending status")
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")

        changes = {
            "status": ExpenseStatus.REJECTED,
            "rejected_by": rejected_by,
            "rejected_at": datetime.now(UTC),
            "rejection_reason": reason,
            "approved_by": None,
            "approved_at": None,
        }
        updated = self._save(expense, changes)
        logger.info("Expense %s rejected by %s", expense_id, rejected_by)
        if self.audit:
            self.audit.record(
                "expense_rejected",
                AuditTarget.EXPENSE,
                expense_id,
                user_id=rejected_by,
                previous={"status": expense.status},
                new=changes,
            )
        return updated

    def list_expenses(
        self,
        submitted_by: Optional[int] = None,
        status: Optional[str] = None,
        category: Optional[ExpenseCategory] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        """Paged expenses, newest first.

        Returns:
            Dict with ``expenses`` and ``pagination`` {current, pages, total}
        """
        page = max(page, 1)
        filters = {
            "submitted_by": submitted_by,
            "status": status,
            "category": category,
            "start_date": start_date,
            "end_date": end_date,
        }
        expenses = self.db.list_expenses(**filters, limit=limit, offset=(page - 1) * limit)
        total = self.db.count_expenses(**filters)
        return {"expenses": expenses, "pagination": paginate(page, limit, total)}

    def get_pending_expenses(self, category: Optional[ExpenseCategory] = None) -> list[Expense]:
        """Expenses awaiting approval."""
        return self.db.list_expenses(status=ExpenseStatus.PENDING, category=category)

    def get_expense_stats(
        self,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        """Count and total plus per-status counts and amounts; zero-valued when empty."""
        return self.db.get_expense_stats(user_id, status, start_date, end_date)

    def get_expenses_by_category(
        self,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        category: Optional[ExpenseCategory] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[dict[str, Any]]:
        """Per-category total, count and average, largest total first."""
        return self.db.get_expenses_by_category(
            start_date=start_date, end_date=end_date, status=status, category=category, user_id=user_id
        )
