from __future__ import annotations

from dataclasses import dataclass

from .assets.mysql_asset_repository import MySQLAssetRepository
from .assets.service import AssetService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .auth.login_attempts import LoginAttemptTracker
from .auth.tokens import TokenService
from .calls.mysql_call_repository import MySQLCallLogRepository
from .calls.service import CallService
from .client_meetings.mysql_client_meeting_repository import MySQLClientMeetingRepository
from .client_meetings.service import ClientMeetingService
from .companies.mysql_company_repository import MySQLCompanyRepository
from .companies.service import CompanyService
from .core.constants import DEFAULT_TOKEN_DAYS, LOGIN_LOCK_MINUTES, LOGIN_MAX_ATTEMPTS
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .departments.mysql_department_repository import MySQLDepartmentRepository
from .departments.service import DepartmentService
from .followups.mysql_followup_repository import MySQLFollowUpRepository
from .followups.service import FollowUpService
from .job_roles.mysql_job_role_repository import MySQLJobRoleRepository
from .job_roles.service import JobRoleService
from .leads.mysql_lead_repository import MySQLLeadRepository
from .leads.service import LeadService
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .menus.mysql_menu_repository import (
    MySQLMenuAccessRepository,
    MySQLMenuItemRepository,
    MySQLSidebarConfigRepository,
)
from .menus.service import MenuAccessService, MenuItemService, SidebarConfigService
from .tasks.mysql_task_repository import MySQLNotificationRepository, MySQLTaskRepository
from .tasks.service import TaskService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    companies_repo: MySQLCompanyRepository
    users_repo: MySQLUserRepository
    departments_repo: MySQLDepartmentRepository
    job_roles_repo: MySQLJobRoleRepository
    tasks_repo: MySQLTaskRepository
    notifications_repo: MySQLNotificationRepository
    meetings_repo: MySQLClientMeetingRepository
    leads_repo: MySQLLeadRepository
    followups_repo: MySQLFollowUpRepository
    calls_repo: MySQLCallLogRepository
    assets_repo: MySQLAssetRepository
    menu_items_repo: MySQLMenuItemRepository
    menu_access_repo: MySQLMenuAccessRepository
    sidebar_configs_repo: MySQLSidebarConfigRepository
    attendance_repo: MySQLAttendanceRepository
    leaves_repo: MySQLLeaveRepository

    auth_service: AuthService
    user_service: UserService
    company_service: CompanyService
    department_service: DepartmentService
    job_role_service: JobRoleService
    task_service: TaskService
    client_meeting_service: ClientMeetingService
    lead_service: LeadService
    followup_service: FollowUpService
    call_service: CallService
    dashboard_service: DashboardService
    asset_service: AssetService
    menu_item_service: MenuItemService
    menu_access_service: MenuAccessService
    sidebar_config_service: SidebarConfigService
    attendance_service: AttendanceService
    leave_service: LeaveService

    expose_reset_token: bool = False


def build_container(
    *,
    db_config: dict,
    jwt_secret: str,
    jwt_expires_days: int = DEFAULT_TOKEN_DAYS,
    login_max_attempts: int = LOGIN_MAX_ATTEMPTS,
    login_lock_minutes: int = LOGIN_LOCK_MINUTES,
    expose_reset_token: bool = False,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    companies_repo = MySQLCompanyRepository(conn)
    users_repo = MySQLUserRepository(conn)
    departments_repo = MySQLDepartmentRepository(conn)
    job_roles_repo = MySQLJobRoleRepository(conn)
    tasks_repo = MySQLTaskRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)
    meetings_repo = MySQLClientMeetingRepository(conn)
    leads_repo = MySQLLeadRepository(conn)
    followups_repo = MySQLFollowUpRepository(conn)
    calls_repo = MySQLCallLogRepository(conn)
    assets_repo = MySQLAssetRepository(conn)
    menu_items_repo = MySQLMenuItemRepository(conn)
    menu_access_repo = MySQLMenuAccessRepository(conn)
    sidebar_configs_repo = MySQLSidebarConfigRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)

    tokens = TokenService(jwt_secret, expires_days=jwt_expires_days)
    attempts = LoginAttemptTracker(max_attempts=login_max_attempts, lock_minutes=login_lock_minutes)

    return Container(
        conn=conn,
        companies_repo=companies_repo,
        users_repo=users_repo,
        departments_repo=departments_repo,
        job_roles_repo=job_roles_repo,
        tasks_repo=tasks_repo,
        notifications_repo=notifications_repo,
        meetings_repo=meetings_repo,
        leads_repo=leads_repo,
        followups_repo=followups_repo,
        calls_repo=calls_repo,
        assets_repo=assets_repo,
        menu_items_repo=menu_items_repo,
        menu_access_repo=menu_access_repo,
        sidebar_configs_repo=sidebar_configs_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        auth_service=AuthService(users_repo, companies_repo, tokens, attempts),
        user_service=UserService(users_repo, departments_repo, job_roles_repo),
        company_service=CompanyService(companies_repo, users_repo, departments_repo),
        department_service=DepartmentService(departments_repo, users_repo),
        job_role_service=JobRoleService(job_roles_repo, departments_repo, users_repo),
        task_service=TaskService(tasks_repo, notifications_repo, users_repo),
        client_meeting_service=ClientMeetingService(meetings_repo),
        lead_service=LeadService(leads_repo, users_repo),
        followup_service=FollowUpService(followups_repo, leads_repo),
        call_service=CallService(calls_repo, leads_repo),
        dashboard_service=DashboardService(leads_repo, calls_repo, followups_repo, tasks_repo),
        asset_service=AssetService(assets_repo, users_repo, departments_repo),
        menu_item_service=MenuItemService(menu_items_repo),
        menu_access_service=MenuAccessService(menu_access_repo),
        sidebar_config_service=SidebarConfigService(sidebar_configs_repo, departments_repo),
        attendance_service=AttendanceService(attendance_repo, users_repo, companies_repo),
        leave_service=LeaveService(leaves_repo),
        expose_reset_token=expose_reset_token,
    )
