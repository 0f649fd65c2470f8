from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Vai trò nhân sự dùng cho phân quyền."""

    STAFF = "Staff"
    INTERN = "Intern"
    MANAGER = "Manager"
    PROJECT_MANAGER = "Project Manager"
    HR = "HR"
    FINANCE = "Finance"


class WorkLocation(str, Enum):
    """Where the employee works from for one session."""

    OFFICE = "Office"
    HOME = "Home"


# Roles included in the HR monthly work-hours rollup.
WORK_HOURS_ROLES = (Role.STAFF, Role.INTERN, Role.MANAGER, Role.PROJECT_MANAGER)

# Roles whose checkout notes appear in the daily stand-up.
STANDUP_ROLES = (Role.STAFF, Role.INTERN)
