from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    SUPER_ADMIN = "super-admin"
    ADMIN = "admin"
    HR = "hr"
    MANAGER = "manager"
    USER = "user"

    @property
    def is_privileged(self) -> bool:
        return self in PRIVILEGED_ROLES


PRIVILEGED_ROLES = frozenset({Role.SUPER_ADMIN, Role.ADMIN, Role.HR, Role.MANAGER})


class TaskStatus(str, Enum):
    """Per-assignee (and overall) task status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    APPROVED = "approved"
    REJECTED = "rejected"
    REOPEN = "reopen"
    ONHOLD = "onhold"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


OPEN_TASK_STATUSES = frozenset({TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.REOPEN, TaskStatus.ONHOLD})


class NotificationType(str, Enum):
    TASK_ASSIGNED = "task_assigned"
    TASK_STATUS_UPDATED = "task_status_updated"
    TASK_OVERDUE = "task_overdue"


class LeadStatus(str, Enum):
    NEW = "new"
    FOLLOW_UP = "follow-up"
    INTERESTED = "interested"
    NOT_INTERESTED = "not interested"
    CONVERTED = "converted"


class FollowUpStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"


class CallStatus(str, Enum):
    ANSWERED = "answered"
    MISSED = "missed"
    NOT_REACHABLE = "not reachable"
    REJECTED = "rejected"


class MeetingType(str, Enum):
    ONLINE = "Online"
    DEMO = "Demo"
    DISCUSSION = "Discussion"
    SALES = "Sales"
    REVIEW = "Review"


class MeetingPriority(str, Enum):
    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"


class MeetingStatus(str, Enum):
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    RESCHEDULED = "Rescheduled"


class YesNo(str, Enum):
    YES = "Yes"
    NO = "No"


class AssetCategory(str, Enum):
    ELECTRONICS = "electronics"
    FURNITURE = "furniture"
    VEHICLES = "vehicles"
    MACHINERY = "machinery"
    SOFTWARE = "software"
    OFFICE_EQUIPMENT = "office_equipment"
    IT_EQUIPMENT = "it_equipment"
    OTHER = "other"


class AssetCondition(str, Enum):
    NEW = "new"
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DAMAGED = "damaged"


class AssetStatus(str, Enum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    MAINTENANCE = "maintenance"
    DAMAGED = "damaged"
    RETIRED = "retired"
    RESERVED = "reserved"


class MenuSection(str, Enum):
    MAIN = "main"
    TASKS = "tasks"
    COMMUNICATION = "communication"
    ADMIN = "admin"
    CUSTOM = "custom"


class DashboardRange(str, Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    LATE = "LATE"
    HALFDAY = "HALFDAY"
    ABSENT = "ABSENT"
    WEEKEND = "WEEKEND"


class LeaveType(str, Enum):
    CASUAL = "Casual"
    SICK = "Sick"
    PAID = "Paid"
    UNPAID = "Unpaid"
    OTHER = "Other"


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"


ACTIVE_LEAVE_STATUSES = frozenset({LeaveStatus.PENDING, LeaveStatus.APPROVED})
