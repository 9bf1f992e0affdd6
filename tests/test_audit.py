"""Tests for the audit trail."""

import logging
from datetime import date
from decimal import Decimal

from tutordesk.domain.entities import AuditTarget, UserStatus


def test_record_only_queues(audit, temp_db):
    audit.record("maintenance", AuditTarget.SYSTEM, None, details="Nightly backup")

    assert audit.pending_count() == 1
    assert temp_db.count_audit_logs() == 0


def test_flush_writes_service_actions(audit, sample_teacher, sample_admin):
    assert audit.flush() == 3
    assert audit.pending_count() == 0

    result = audit.list_audit_logs(action="teacher_approved")
    assert result["pagination"]["total"] == 1
    log = result["logs"][0]
    assert log.target_type == AuditTarget.USER
    assert log.target_id == sample_teacher.id
    assert log.user_id == sample_admin.id

    changes = {change["field"]: change for change in log.changes_summary()}
    assert changes["status"]["from"] == UserStatus.PENDING.value
    assert changes["status"]["to"] == UserStatus.APPROVED.value
    assert changes["approved_by"]["to"] == sample_admin.id


def test_invalid_entry_is_dropped(audit, caplog):
    audit.record("payment_created", AuditTarget.PAYMENT, None)
    audit.record("maintenance", AuditTarget.SYSTEM, None)

    with caplog.at_level(logging.ERROR):
        assert audit.flush() == 1

    assert "Dropping audit entry payment_created" in caplog.text
    assert [log.action for log in audit.list_audit_logs()["logs"]] == ["maintenance"]


def test_values_are_stored_as_json(audit, temp_db):
    audit.record(
        "expense_created",
        AuditTarget.EXPENSE,
        4,
        user_id=1,
        new={"amount": Decimal("12.50"), "date": date(2024, 3, 1)},
    )
    audit.flush()

    log = audit.list_audit_logs(target_type="expense", target_id=4)["logs"][0]
    assert log.new_values == {"amount": 12.5, "date": "2024-03-01"}
    assert log.previous_values == {}


def test_list_audit_logs_newest_first_with_pages(audit):
    for n in range(3):
        audit.record(f"step_{n}", AuditTarget.SYSTEM, None)
    audit.flush()

    first_page = audit.list_audit_logs(page=1, limit=2)
    assert [log.action for log in first_page["logs"]] == ["step_2", "step_1"]
    assert first_page["pagination"] == {"current": 1, "pages": 2, "total": 3}
    assert [log.action for log in audit.list_audit_logs(page=2, limit=2)["logs"]] == ["step_0"]


def test_filter_by_date_range(audit):
    audit.record("maintenance", AuditTarget.SYSTEM, None)
    audit.flush()

    assert audit.list_audit_logs(start_date=date(2000, 1, 1), end_date=date(2000, 12, 31))["logs"] == []
