"""Receipt number formats and counter scopes."""

from datetime import date

STUDENT_RECEIPT_PREFIX = "RCP"
TEACHER_RECEIPT_PREFIX = "TPY"


def student_receipt_scope(teacher_id: int) -> str:
    """Student payment receipts are numbered per teacher."""
    return f"{STUDENT_RECEIPT_PREFIX}:teacher:{teacher_id}"


def teacher_receipt_scope(payment_date: date) -> str:
    """Teacher payment receipts are numbered per calendar month."""
    return f"{TEACHER_RECEIPT_PREFIX}:month:{payment_date:%Y%m}"


def format_receipt_number(prefix: str, payment_date: date, sequence: int) -> str:
    """Format ``PREFIX-YYYYMM-NNNN``."""
    return f"{prefix}-{payment_date:%Y%m}-{sequence:04d}"
