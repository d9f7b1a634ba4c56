"""Explicit store for the task <-> tag association table."""
from __future__ import annotations

from typing import Iterable

from sqlalchemy import and_, delete, func, insert, select
from sqlalchemy.orm import Session

from database import db
from models.tag import task_tags


class TaskTagRepository:
    """Rows of ``task_tags`` managed directly, one (task_id, tag_id) pair each."""

    def __init__(self, session: Session | None = None):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else db.session

    @staticmethod
    def _pair(task_id: int, tag_id: int):
        return and_(task_tags.c.task_id == task_id, task_tags.c.tag_id == tag_id)

    def exists(self, task_id: int, tag_id: int) -> bool:
        stmt = select(task_tags.c.task_id).where(self._pair(task_id, tag_id)).limit(1)
        return self.session.execute(stmt).first() is not None

    def attach(self, task_id: int, tag_id: int) -> bool:
        """Create the association; attaching an existing pair changes nothing."""
        if self.exists(task_id, tag_id):
            return False
        self.session.execute(insert(task_tags).values(task_id=task_id, tag_id=tag_id))
        return True

    def detach(self, task_id: int, tag_id: int) -> bool:
        result = self.session.execute(delete(task_tags).where(self._pair(task_id, tag_id)))
        return (result.rowcount or 0) > 0

    def tag_ids_for_task(self, task_id: int) -> list[int]:
        stmt = select(task_tags.c.tag_id).where(task_tags.c.task_id == task_id).order_by(task_tags.c.tag_id)
        return list(self.session.scalars(stmt))

    def count_for_tag(self, tag_id: int) -> int:
        stmt = select(func.count()).select_from(task_tags).where(task_tags.c.tag_id == tag_id)
        return int(self.session.scalar(stmt) or 0)

    def delete_for_tasks(self, task_ids: Iterable[int]) -> int:
        ids = list(task_ids)
        if not ids:
            return 0
        result = self.session.execute(delete(task_tags).where(task_tags.c.task_id.in_(ids)))
        return result.rowcount or 0

    def delete_for_tag(self, tag_id: int) -> int:
        result = self.session.execute(delete(task_tags).where(task_tags.c.tag_id == tag_id))
        return result.rowcount or 0


__all__ = ["TaskTagRepository"]
