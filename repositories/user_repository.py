"""User and profile persistence."""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from sqlalchemy import delete, func, select
from sqlalchemy.orm import selectinload

from models.role import Role, user_roles
from models.user import User, UserProfile
from repositories.base import Repository, escape_like
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, paginate

PROFILE_FIELDS = frozenset({"display_name", "first_name", "last_name", "avatar_url", "bio"})


class UserRepository(Repository[User]):
    model = User
    updatable_fields = frozenset({"email", "is_active"})

    def create(
        self,
        *,
        email: str,
        password: str,
        display_name: str,
        roles: Iterable[Role] = (),
    ) -> User:
        user = User(email=email, is_active=True)
        user.set_password(password)
        user.profile = UserProfile(display_name=display_name)
        user.roles = list(roles)
        self.session.add(user)
        self.session.flush()
        return user

    def find_with_roles(self, user_id: int) -> User | None:
        stmt = (
            select(User)
            .where(User.id == user_id)
            .options(selectinload(User.roles), selectinload(User.profile))
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def find_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email).options(selectinload(User.roles)).limit(1)
        return self.session.scalars(stmt).first()

    def exists_by_email(self, email: str, exclude_user_id: int | None = None) -> bool:
        stmt = select(func.count()).select_from(User).where(User.email == email)
        if exclude_user_id is not None:
            stmt = stmt.where(User.id != exclude_user_id)
        return bool(self.session.scalar(stmt))

    def find_many(
        self,
        email: str | None = None,
        is_active: bool | None = None,
        role_id: int | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> tuple[list[User], int]:
        stmt = select(User)
        if email:
            pattern = escape_like(email.lower())
            stmt = stmt.where(func.lower(User.email).like(f"%{pattern}%", escape="\\"))
        if is_active is not None:
            stmt = stmt.where(User.is_active == is_active)
        if role_id is not None:
            stmt = stmt.where(
                User.id.in_(select(user_roles.c.user_id).where(user_roles.c.role_id == role_id))
            )

        total = self.session.scalar(select(func.count()).select_from(stmt.subquery()))
        skip, take = paginate(page, limit)
        rows = self.session.scalars(
            stmt.options(selectinload(User.roles))
            .order_by(*self.default_order())
            .offset(skip)
            .limit(take)
        ).all()
        return list(rows), int(total or 0)

    def update_profile(self, user_id: int, fields: Mapping[str, Any]) -> UserProfile | None:
        profile = self.session.scalars(select(UserProfile).where(UserProfile.user_id == user_id)).first()
        if profile is None:
            return None
        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Profile fields cannot be updated: {', '.join(sorted(unknown))}")
        for key, value in fields.items():
            setattr(profile, key, value)
        self.session.flush()
        return profile

    def update_password(self, user: User, password: str) -> None:
        user.set_password(password)
        self.session.flush()

    def replace_roles(self, user: User, roles: Iterable[Role]) -> User:
        """Replace the user's roles; ``user`` must come from :meth:`find_with_roles`."""
        user.roles = list(roles)
        self.session.flush()
        return user

    def delete(self, user_id: int) -> bool:
        """Delete the user with its profile and role assignments."""
        self.session.execute(delete(user_roles).where(user_roles.c.user_id == user_id))
        self.session.execute(delete(UserProfile).where(UserProfile.user_id == user_id))
        return super().delete(user_id)


__all__ = ["UserRepository"]
