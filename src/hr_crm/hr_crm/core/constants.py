"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TOKEN_DAYS = 30
DEFAULT_SUBSCRIPTION_DAYS = 30
LOGIN_MAX_ATTEMPTS = 5
LOGIN_LOCK_MINUTES = 15
RESET_TOKEN_HOURS = 1
MIN_PASSWORD_LENGTH = 8
MIN_OWNER_PASSWORD_LENGTH = 6

FOLLOWUP_DEFAULT_HOUR = 10
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

SHIFT_START = (9, 0)
SHIFT_END = (19, 0)
LATE_FROM = (9, 10)
HALF_DAY_FROM = (9, 30)
ABSENT_CUTOFF = (10, 0)
FULL_DAY_HOURS = 9
HALF_DAY_HOURS = 5
ABSENCE_LOOKBACK_DAYS = 30
AUTO_ABSENT_NOTE = "Auto-marked absent (no attendance recorded)"

LEAVE_REASON_MAX = 500
LEAVE_POLICIES = {"Casual": 12, "Sick": 10, "Paid": 20, "Unpaid": 30, "Other": 5}
DEFAULT_LEAVE_PAGE_SIZE = 20

DEFAULT_MENU_ICON = "FaCog"
OWNER_DEPARTMENT = "Management"
OWNER_JOB_ROLE = "owner"

DEFAULT_MENU_ACCESS = {
    "admin": [
        "dashboard", "attendance", "my-leaves", "my-assets", "emp-details",
        "emp-attendance", "emp-leaves", "emp-assets", "create-user",
    ],
    "user": [
        "dashboard", "attendance", "my-leaves", "my-assets", "create-task",
        "employee-project", "alerts", "employee-meeting",
    ],
    "hr": [
        "dashboard", "attendance", "my-leaves", "my-assets", "emp-details",
        "emp-attendance", "emp-leaves", "emp-assets", "create-user",
    ],
    "manager": [
        "dashboard", "attendance", "my-leaves", "my-assets", "create-task",
        "employee-project", "alerts", "employee-meeting", "emp-details",
        "emp-attendance", "emp-leaves", "emp-assets", "admin-task-create",
        "emp-client", "emp-all-task", "admin-meeting",
    ],
    "superadmin": ["*"],
}
