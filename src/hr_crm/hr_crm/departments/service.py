from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..auth.context import AuthContext
from ..common.validators import optional_str, require_length_between, require_max_length
from ..core.enums import Role
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import Department
from .repository import DepartmentRepository

logger = logging.getLogger(__name__)


class DepartmentService:
    def __init__(self, departments: DepartmentRepository, users: UserRepository):
        self._departments = departments
        self._users = users

    @staticmethod
    def _clean_description(value) -> Optional[str]:
        return require_max_length(optional_str(value), "Description", 200)

    def _get_owned(self, actor: AuthContext, department_id: int) -> Department:
        dept = self._departments.get_by_id(int(department_id))
        if not dept or not dept.is_active:
            raise NotFoundError("Department not found")
        actor.require_company(dept.company_id)
        return dept

    def create(self, *, actor: AuthContext, name: str, description: Optional[str] = None) -> Department:
        actor.require_role(Role.ADMIN, Role.HR, Role.MANAGER)
        if actor.company_id is None:
            raise ValidationError("Company is required")
        name = require_length_between(name, "Department name", 1, 50)
        description = self._clean_description(description)

        if self._departments.find_active_by_name(actor.company_id, name):
            raise ConflictError("Department already exists")

        department_id = self._departments.create(
            company_id=actor.company_id,
            name=name,
            description=description,
            created_by=actor.user_id,
        )
        logger.info("Department %s created in company %s", department_id, actor.company_id)
        return self._departments.get_by_id(department_id)

    def list(self, *, actor: AuthContext) -> Sequence[Department]:
        return self._departments.list_active(None if actor.is_super_admin else actor.company_id)

    def get(self, *, actor: AuthContext, department_id: int) -> Department:
        return self._get_owned(actor, department_id)

    def update(
        self,
        *,
        actor: AuthContext,
        department_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Department:
        actor.require_role(Role.ADMIN, Role.HR, Role.MANAGER)
        dept = self._get_owned(actor, department_id)

        changes: dict = {}
        if name is not None:
            changes["name"] = require_length_between(name, "Department name", 1, 50)
            if self._departments.find_active_by_name(dept.company_id, changes["name"], exclude_id=dept.department_id):
                raise ConflictError("Department already exists")
        if description is not None:
            changes["description"] = self._clean_description(description)
        if changes:
            self._departments.update(dept.department_id, changes)
        return self._departments.get_by_id(dept.department_id)

    def delete(self, *, actor: AuthContext, department_id: int) -> None:
        actor.require_role(Role.ADMIN)
        dept = self._get_owned(actor, department_id)
        if self._users.count_active_in_department(dept.department_id) > 0:
            raise ValidationError("Cannot delete department with active users")
        self._departments.set_active(dept.department_id, is_active=False)
        logger.info("Department %s deactivated by user %s", dept.department_id, actor.user_id)
