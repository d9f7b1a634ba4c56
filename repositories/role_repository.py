"""Role persistence."""
from __future__ import annotations

from typing import Iterable

from sqlalchemy import func, select

from models.role import Role, user_roles
from repositories.base import Repository


class RoleRepository(Repository[Role]):
    model = Role
    updatable_fields = frozenset({"name", "description"})

    def default_order(self):
        return (Role.created_at.asc(), Role.id.asc())

    def create(self, *, name: str, description: str | None = None) -> Role:
        return super().create(name=name, description=description)

    def find_all(self) -> list[Role]:
        return list(self.session.scalars(select(Role).order_by(*self.default_order())))

    def find_by_name(self, name: str) -> Role | None:
        return self.session.scalars(select(Role).where(Role.name == name).limit(1)).first()

    def find_by_ids(self, role_ids: Iterable[int]) -> list[Role]:
        ids = list(role_ids)
        if not ids:
            return []
        return list(self.session.scalars(select(Role).where(Role.id.in_(ids))))

    def count_users(self, role_id: int) -> int:
        stmt = select(func.count()).select_from(user_roles).where(user_roles.c.role_id == role_id)
        return int(self.session.scalar(stmt) or 0)


__all__ = ["RoleRepository"]
