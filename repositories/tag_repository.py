"""Tag persistence."""
from __future__ import annotations

from sqlalchemy import func, select

from models.tag import Tag
from repositories.base import Repository, escape_like
from repositories.task_tag_repository import TaskTagRepository
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE


class TagRepository(Repository[Tag]):
    model = Tag
    updatable_fields = frozenset({"name", "color"})

    def __init__(self, session=None):
        super().__init__(session)
        self.task_tags = TaskTagRepository(session)

    def default_order(self):
        return (func.lower(Tag.name).asc(), Tag.id.asc())

    def create(self, *, name: str, color: str | None = None) -> Tag:
        return super().create(name=name, color=color)

    def find_by_name(self, name: str) -> Tag | None:
        """Exact, case-sensitive lookup used for uniqueness checks."""
        return self.session.scalars(select(Tag).where(Tag.name == name).limit(1)).first()

    def find_many(
        self,
        search: str | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> tuple[list[Tag], int]:
        criteria = []
        if search:
            pattern = escape_like(search.lower())
            criteria.append(func.lower(Tag.name).like(f"%{pattern}%", escape="\\"))
        return super().find_many(criteria, page=page, limit=limit)

    def delete(self, tag_id: int) -> bool:
        """Detach the tag from every task, then delete it. Tasks are kept."""
        self.task_tags.delete_for_tag(tag_id)
        return super().delete(tag_id)


__all__ = ["TagRepository"]
