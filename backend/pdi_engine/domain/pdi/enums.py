# backend/pdi_engine/domain/pdi/enums.py
from __future__ import annotations

from enum import Enum


class InspectionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    APPROVED = "approved"
    REJECTED = "rejected"


class ItemStatus(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"
    NA = "na"


class ResponseType(str, Enum):
    PASS_FAIL = "pass_fail"
    PASS_FAIL_NA = "pass_fail_na"
    TEXT = "text"


class DefectSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DefectStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class SignoffOutcome(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    ACKNOWLEDGE = "acknowledge"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


OPEN_DEFECT_STATUSES = frozenset({DefectStatus.OPEN, DefectStatus.IN_PROGRESS})
