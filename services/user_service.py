"""User accounts: registration, profiles, passwords, roles and status."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from database import atomic
from models.role import MEMBER_ROLE
from models.user import User, UserProfile
from repositories.role_repository import RoleRepository
from repositories.user_repository import PROFILE_FIELDS, UserRepository
from services.authorization import (
    Actor,
    can_change_password,
    can_manage_users,
    can_update_profile,
    can_view_user,
    ensure,
)
from services.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
    check_update_fields,
    storage_errors,
)
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, Page

logger = logging.getLogger(__name__)


def _email_taken(email: str) -> ConflictError:
    return ConflictError("user", email, f"A user with email '{email}' already exists")


class UserService:
    def __init__(
        self,
        users: UserRepository | None = None,
        roles: RoleRepository | None = None,
        default_role: str = MEMBER_ROLE,
    ):
        self.users = users or UserRepository()
        self.roles = roles or RoleRepository()
        self.default_role = default_role

    def _load(self, user_id: int) -> User:
        user = self.users.find_with_roles(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    def register_user(self, *, email: str, password: str, display_name: str) -> User:
        """Create an active account holding the default role."""
        with storage_errors("register user", on_conflict=lambda: _email_taken(email)), atomic():
            if self.users.exists_by_email(email):
                raise _email_taken(email)
            role = self.roles.find_by_name(self.default_role)
            if role is None:
                logger.error("Default role %s is missing; run 'flask seed-roles'", self.default_role)
                raise InternalError()
            user = self.users.create(
                email=email,
                password=password,
                display_name=display_name,
                roles=[role],
            )
            user_id = user.id
        logger.info("Registered user %s", user_id)
        return self.get_user_by_id(user_id)

    def get_user_by_id(self, user_id: int) -> User:
        """Load a user with roles and profile, without any access check."""
        with storage_errors("load user"):
            return self._load(user_id)

    def list_users(
        self,
        actor: Actor,
        email: str | None = None,
        is_active: bool | None = None,
        role_id: int | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Page[User]:
        ensure(can_manage_users(actor), "Administrator role required to list users")
        with storage_errors("list users"):
            items, total = self.users.find_many(email, is_active, role_id, page=page, limit=limit)
        return Page(items, total, page, limit)

    def get_user(self, actor: Actor, user_id: int) -> User:
        with storage_errors("load user"):
            user = self._load(user_id)
        ensure(can_view_user(actor, user), "You cannot access another user's account")
        return user

    def update_profile(self, actor: Actor, user_id: int, fields: Mapping[str, Any]) -> UserProfile:
        with storage_errors("update profile"), atomic():
            user = self._load(user_id)
            ensure(can_update_profile(actor, user), "You cannot update another user's profile")
            check_update_fields("profile", fields, PROFILE_FIELDS)
            if "display_name" in fields and not fields["display_name"]:
                raise ValidationError("Display name cannot be empty")
            profile = self.users.update_profile(user_id, fields)
            if profile is None:
                raise NotFoundError("user", user_id)
        return profile

    def change_password(self, actor: Actor, user_id: int, *, current_password: str, new_password: str) -> None:
        """Change the actor's own password after verifying the current one."""
        with storage_errors("change password"), atomic():
            user = self._load(user_id)
            ensure(can_change_password(actor, user), "Only the account holder can change the password")
            if not user.check_password(current_password):
                raise ValidationError("Current password is incorrect", code="INVALID_PASSWORD")
            self.users.update_password(user, new_password)
        logger.info("User %s changed their password", user_id)

    def update_roles(self, actor: Actor, user_id: int, role_ids: Iterable[int]) -> User:
        """Replace the user's roles with exactly ``role_ids``."""
        role_ids = list(dict.fromkeys(role_ids))
        with storage_errors("update user roles"), atomic():
            user = self._load(user_id)
            ensure(can_manage_users(actor), "Administrator role required to change roles")
            roles = self.roles.find_by_ids(role_ids)
            found = {role.id for role in roles}
            missing = [role_id for role_id in role_ids if role_id not in found]
            if missing:
                raise NotFoundError("role", missing[0])
            self.users.replace_roles(user, roles)
        logger.info("User %s set roles of user %s to %s", actor.id, user_id, sorted(found))
        return self.get_user_by_id(user_id)

    def update_status(self, actor: Actor, user_id: int, *, is_active: bool) -> User:
        with storage_errors("update user status"), atomic():
            self._load(user_id)
            ensure(can_manage_users(actor), "Administrator role required to change user status")
            self.users.update(user_id, {"is_active": bool(is_active)})
        logger.info("User %s set user %s active=%s", actor.id, user_id, bool(is_active))
        return self.get_user_by_id(user_id)

    def delete_user(self, actor: Actor, user_id: int) -> None:
        with storage_errors("delete user"), atomic():
            self._load(user_id)
            ensure(can_manage_users(actor), "Administrator role required to delete users")
            self.users.delete(user_id)
        logger.info("User %s deleted user %s", actor.id, user_id)


__all__ = ["UserService"]
