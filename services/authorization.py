"""Ownership and role rules deciding what an actor may do.

Every function here is a pure decision over already-loaded rows. Ownership
is always strict equality on the row's own owner/author column; it is never
inherited from a parent (a project owner gets no rights over comments on
the project's tasks).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from models.comment import Comment
from models.project import Project
from models.role import ADMIN_ROLE
from models.user import User
from services.errors import ForbiddenError


@dataclass(frozen=True)
class Actor:
    """Authenticated caller: user id plus role names, trusted as given."""

    id: int
    roles: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, actor_id: int, roles: Iterable[str] = ()) -> "Actor":
        return cls(id=int(actor_id), roles=frozenset(roles))

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


def can_create_task(actor: Actor | None) -> bool:
    """Any authenticated actor may create tasks."""
    return actor is not None


def actor_owns_project(actor: Actor | None, project: Project | None) -> bool:
    """Return True if the project was created by the actor."""
    return bool(actor and project and project.owner_id == actor.id)


def can_update_project(actor: Actor | None, project: Project | None) -> bool:
    return actor_owns_project(actor, project)


def can_delete_project(actor: Actor | None, project: Project | None) -> bool:
    # No admin override for projects.
    return actor_owns_project(actor, project)


def actor_wrote_comment(actor: Actor | None, comment: Comment | None) -> bool:
    return bool(actor and comment and comment.author_id == actor.id)


def can_update_comment(actor: Actor | None, comment: Comment | None) -> bool:
    return actor_wrote_comment(actor, comment)


def can_delete_comment(actor: Actor | None, comment: Comment | None) -> bool:
    if comment is None or actor is None:
        return False
    return actor_wrote_comment(actor, comment) or actor.is_admin


def can_manage_roles(actor: Actor | None) -> bool:
    return bool(actor and actor.is_admin)


def can_manage_users(actor: Actor | None) -> bool:
    return bool(actor and actor.is_admin)


def can_view_user(actor: Actor | None, user: User | None) -> bool:
    if actor is None or user is None:
        return False
    return user.id == actor.id or actor.is_admin


def can_update_profile(actor: Actor | None, user: User | None) -> bool:
    return can_view_user(actor, user)


def can_change_password(actor: Actor | None, user: User | None) -> bool:
    """Only the account holder may change a password, admins included."""
    return bool(actor and user and user.id == actor.id)


def ensure(allowed: bool, reason: str, *, code: str | None = None) -> None:
    """Raise :class:`ForbiddenError` with ``reason`` unless ``allowed``."""
    if not allowed:
        raise ForbiddenError(reason, code=code)


__all__ = [
    "Actor",
    "actor_owns_project",
    "actor_wrote_comment",
    "can_change_password",
    "can_create_task",
    "can_delete_comment",
    "can_delete_project",
    "can_manage_roles",
    "can_manage_users",
    "can_update_comment",
    "can_update_profile",
    "can_update_project",
    "can_view_user",
    "ensure",
]
