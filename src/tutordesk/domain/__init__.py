"""Domain layer for tutordesk.

Services are resolved lazily so that ``tutordesk.database`` can import
``tutordesk.domain.entities`` without pulling in the services, which import
the database layer in turn.
"""

import importlib

_SERVICES = {
    "AccountingService": "accounting",
    "AttendanceService": "attendance",
    "AuditTrail": "audit",
    "DashboardService": "dashboard",
    "ExpenseService": "expense",
    "LessonTypeService": "lesson_type",
    "PaymentService": "payment",
    "ReportingService": "reporting",
    "StudentService": "student",
    "TeacherService": "teacher",
    "TimeEntryService": "time_entry",
}

__all__ = sorted(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        module = importlib.import_module(f"tutordesk.domain.{_SERVICES[name]}")
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
