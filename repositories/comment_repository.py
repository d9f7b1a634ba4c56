"""Comment persistence."""
from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete

from models.comment import Comment
from repositories.base import Repository
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE


class CommentRepository(Repository[Comment]):
    model = Comment
    updatable_fields = frozenset({"content"})

    def find_many(
        self,
        task_id: int | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> tuple[list[Comment], int]:
        criteria = []
        if task_id is not None:
            criteria.append(Comment.task_id == task_id)
        return super().find_many(criteria, page=page, limit=limit)

    def delete_for_tasks(self, task_ids: Iterable[int]) -> int:
        ids = list(task_ids)
        if not ids:
            return 0
        result = self.session.execute(delete(Comment).where(Comment.task_id.in_(ids)))
        return result.rowcount or 0


__all__ = ["CommentRepository"]
