from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..auth.context import AuthContext
from ..common.validators import optional_int, optional_str, require_length_between, require_max_length
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..departments.model import Department
from ..departments.repository import DepartmentRepository
from ..users.repository import UserRepository
from .model import JobRole
from .repository import JobRoleRepository

logger = logging.getLogger(__name__)


class JobRoleService:
    def __init__(self, job_roles: JobRoleRepository, departments: DepartmentRepository, users: UserRepository):
        self._job_roles = job_roles
        self._departments = departments
        self._users = users

    def _department_for(self, actor: AuthContext, department_id, company_id: Optional[int]) -> Department:
        dept_id = optional_int(department_id, "Department")
        if dept_id is None:
            raise ValidationError("Department is required")
        dept = self._departments.get_by_id(dept_id)
        if not dept or not dept.is_active or (company_id is not None and dept.company_id != company_id):
            raise NotFoundError("Department not found or access denied")
        if not actor.can_access_company(dept.company_id):
            raise NotFoundError("Department not found or access denied")
        return dept

    def _get(self, job_role_id: int) -> JobRole:
        job_role = self._job_roles.get_by_id(int(job_role_id))
        if not job_role or not job_role.is_active:
            raise NotFoundError("Job role not found")
        return job_role

    def create(
        self,
        *,
        actor: AuthContext,
        name: str,
        department_id,
        description: Optional[str] = None,
    ) -> JobRole:
        actor.require_role(Role.ADMIN, Role.HR, Role.MANAGER)
        name = require_length_between(name, "Job role name", 1, 50)
        description = require_max_length(optional_str(description), "Description", 200)

        company_id = None if actor.is_super_admin else actor.company_id
        dept = self._department_for(actor, department_id, company_id)

        if self._job_roles.find_active_by_name(company_id=dept.company_id, department_id=dept.department_id, name=name):
            raise ConflictError("Job role already exists in this department")

        job_role_id = self._job_roles.create(
            company_id=dept.company_id,
            department_id=dept.department_id,
            name=name,
            description=description,
            created_by=actor.user_id,
        )
        logger.info("Job role %s created in department %s", job_role_id, dept.department_id)
        return self._job_roles.get_by_id(job_role_id)

    def list(self, *, actor: AuthContext, department_id=None, company_id=None) -> Sequence[JobRole]:
        scope = optional_int(company_id, "Company") if actor.is_super_admin else actor.company_id
        return self._job_roles.list_active(company_id=scope, department_id=optional_int(department_id, "Department"))

    def get(self, *, actor: AuthContext, job_role_id: int) -> JobRole:
        job_role = self._get(job_role_id)
        actor.require_company(job_role.company_id)
        return job_role

    def list_by_department(self, *, actor: AuthContext, department_id: int) -> Sequence[JobRole]:
        dept = self._departments.get_by_id(int(department_id))
        if not dept:
            raise NotFoundError("Department not found")
        actor.require_company(dept.company_id)
        return self._job_roles.list_active(company_id=dept.company_id, department_id=dept.department_id)

    def update(self, *, actor: AuthContext, job_role_id: int, changes: dict) -> JobRole:
        actor.require_role(Role.ADMIN, Role.HR, Role.MANAGER)
        job_role = self._get(job_role_id)
        if not actor.can_access_company(job_role.company_id):
            raise AuthorizationError("You can only update job roles from your company")

        clean: dict = {}
        target_department_id = job_role.department_id
        if changes.get("department_id") not in (None, ""):
            company_id = None if actor.is_super_admin else actor.company_id
            dept = self._department_for(actor, changes["department_id"], company_id)
            clean["department_id"] = dept.department_id
            target_department_id = dept.department_id
        if "name" in changes and changes["name"] is not None:
            clean["name"] = require_length_between(changes["name"], "Job role name", 1, 50)
        if "description" in changes:
            clean["description"] = require_max_length(optional_str(changes["description"]), "Description", 200)
        if actor.is_super_admin and changes.get("company_id") not in (None, ""):
            clean["company_id"] = optional_int(changes["company_id"], "Company")

        if "name" in clean or "department_id" in clean:
            duplicate = self._job_roles.find_active_by_name(
                company_id=clean.get("company_id", job_role.company_id),
                department_id=target_department_id,
                name=clean.get("name", job_role.name),
                exclude_id=job_role.job_role_id,
            )
            if duplicate:
                raise ConflictError("Job role already exists in this department")

        if clean:
            self._job_roles.update(job_role.job_role_id, clean)
        return self._job_roles.get_by_id(job_role.job_role_id)

    def delete(self, *, actor: AuthContext, job_role_id: int) -> None:
        actor.require_role(Role.ADMIN, Role.HR, Role.MANAGER)
        job_role = self._get(job_role_id)
        if not actor.can_access_company(job_role.company_id):
            raise AuthorizationError("You can only delete job roles from your company")
        if self._users.count_active_with_job_role(job_role.job_role_id) > 0:
            raise ValidationError("Cannot delete job role assigned to active users")
        self._job_roles.set_active(job_role.job_role_id, is_active=False)
