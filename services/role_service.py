"""Role orchestration.

Roles are managed by administrators only. The system roles (ADMIN and
MEMBER unless configured otherwise) can never be deleted or renamed, and a
role still held by users cannot be deleted either.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from database import atomic
from models.role import ADMIN_ROLE, MEMBER_ROLE, ROLE_NAME_PATTERN, SYSTEM_ROLE_NAMES, Role
from repositories.role_repository import RoleRepository
from services.authorization import Actor, can_manage_roles, ensure
from services.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    check_update_fields,
    storage_errors,
)

logger = logging.getLogger(__name__)

DEFAULT_ROLES = (
    (ADMIN_ROLE, "Administrator. May perform every operation."),
    (MEMBER_ROLE, "Regular user. May operate on their own resources."),
)

_ROLE_NAME_RE = re.compile(ROLE_NAME_PATTERN)


@dataclass(frozen=True)
class RoleDetails:
    """A role together with the number of users holding it."""

    role: Role
    user_count: int

    def to_dict(self) -> dict[str, object]:
        data = self.role.to_dict()
        data["user_count"] = self.user_count
        return data


def _name_taken(name: str) -> ConflictError:
    return ConflictError("role", name, f"Role with name '{name}' already exists")


def _validate_name(name: str | None) -> None:
    if not name or len(name) > 50 or not _ROLE_NAME_RE.match(name):
        raise ValidationError(
            "Role name must be upper case letters and underscores, starting with a letter"
        )


class RoleService:
    def __init__(
        self,
        roles: RoleRepository | None = None,
        system_roles: Iterable[str] = SYSTEM_ROLE_NAMES,
    ):
        self.roles = roles or RoleRepository()
        self.system_roles = frozenset(system_roles)

    def is_system_role(self, role: Role) -> bool:
        return role.name in self.system_roles

    def list_roles(self) -> list[Role]:
        with storage_errors("list roles"):
            return self.roles.find_all()

    def get_role(self, role_id: int) -> RoleDetails:
        with storage_errors("load role"):
            role = self.roles.find_by_id(role_id)
            if role is None:
                raise NotFoundError("role", role_id)
            return RoleDetails(role, self.roles.count_users(role_id))

    def create_role(self, actor: Actor, *, name: str, description: str | None = None) -> Role:
        ensure(can_manage_roles(actor), "Administrator role required to manage roles")
        _validate_name(name)
        with storage_errors("create role", on_conflict=lambda: _name_taken(name)), atomic():
            if self.roles.find_by_name(name) is not None:
                raise _name_taken(name)
            role = self.roles.create(name=name, description=description)
        logger.info("User %s created role %s", actor.id, name)
        return role

    def update_role(self, actor: Actor, role_id: int, fields: Mapping[str, Any]) -> Role:
        """Rename or redescribe a role; its own current name is never a conflict."""
        name = fields.get("name")
        with storage_errors("update role", on_conflict=lambda: _name_taken(name)), atomic():
            role = self.roles.find_by_id(role_id)
            if role is None:
                raise NotFoundError("role", role_id)
            ensure(can_manage_roles(actor), "Administrator role required to manage roles")
            check_update_fields("role", fields, self.roles.updatable_fields)
            if "name" in fields and name != role.name:
                _validate_name(name)
                if self.is_system_role(role):
                    raise ForbiddenError(
                        f"System role '{role.name}' cannot be renamed",
                        code="ROLE_SYSTEM_PROTECTED",
                    )
                existing = self.roles.find_by_name(name)
                if existing is not None and existing.id != role_id:
                    raise _name_taken(name)
            role = self.roles.update(role_id, fields)
        return role

    def delete_role(self, actor: Actor, role_id: int) -> None:
        with storage_errors("delete role"), atomic():
            role = self.roles.find_by_id(role_id)
            if role is None:
                raise NotFoundError("role", role_id)
            ensure(can_manage_roles(actor), "Administrator role required to manage roles")
            if self.is_system_role(role):
                raise ForbiddenError(
                    f"System role '{role.name}' cannot be deleted",
                    code="ROLE_SYSTEM_PROTECTED",
                )
            user_count = self.roles.count_users(role_id)
            if user_count:
                raise ConflictError(
                    "role",
                    role.name,
                    f"Role '{role.name}' is still assigned to {user_count} user(s)",
                    code="ROLE_HAS_USERS",
                )
            self.roles.delete(role_id)
        logger.info("User %s deleted role %s", actor.id, role_id)

    def seed_default_roles(self) -> list[Role]:
        """Create the default roles that do not exist yet; returns those created."""
        created = []
        logger.info("Starting role seed")
        for name, description in DEFAULT_ROLES:
            with storage_errors("seed roles"):
                if self.roles.find_by_name(name) is not None:
                    logger.info("Role %s already exists, skipping", name)
                    continue
            try:
                with storage_errors("seed roles", on_conflict=lambda: _name_taken(name)), atomic():
                    role = self.roles.create(name=name, description=description)
            except ConflictError as exc:
                # Another process seeded the same role first.
                logger.warning("Failed to create role %s: %s", name, exc.message)
                continue
            logger.info("Role %s created", name)
            created.append(role)
        logger.info("Role seed completed")
        return created


__all__ = ["DEFAULT_ROLES", "RoleDetails", "RoleService"]
