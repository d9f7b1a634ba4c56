"""Task persistence, including the Task -> {Comment, task_tags} cascade."""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from models.tag import task_tags
from models.task import Task, TaskPriority, TaskStatus
from repositories.base import Repository
from repositories.comment_repository import CommentRepository
from repositories.task_tag_repository import TaskTagRepository
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE

logger = logging.getLogger(__name__)


class TaskRepository(Repository[Task]):
    model = Task
    # project_id is deliberately absent: a task never changes project.
    updatable_fields = frozenset({"title", "description", "status", "priority", "due_date", "assignee_id"})

    def __init__(self, session=None):
        super().__init__(session)
        self.comments = CommentRepository(session)
        self.task_tags = TaskTagRepository(session)

    def create(
        self,
        *,
        title: str,
        project_id: int,
        description: str | None = None,
        status: str | None = None,
        priority: str | None = None,
        due_date: datetime | None = None,
        assignee_id: int | None = None,
    ) -> Task:
        return super().create(
            title=title,
            project_id=project_id,
            description=description,
            status=status or TaskStatus.TODO.value,
            priority=priority or TaskPriority.MEDIUM.value,
            due_date=due_date,
            assignee_id=assignee_id,
        )

    def find_many(
        self,
        project_id: int | None = None,
        status: str | None = None,
        priority: str | None = None,
        assignee_id: int | None = None,
        tag_id: int | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> tuple[list[Task], int]:
        statement = select(Task)
        criteria = []
        if project_id is not None:
            criteria.append(Task.project_id == project_id)
        if status is not None:
            criteria.append(Task.status == str(status))
        if priority is not None:
            criteria.append(Task.priority == str(priority))
        if assignee_id is not None:
            criteria.append(Task.assignee_id == assignee_id)
        if tag_id is not None:
            statement = statement.join(task_tags, task_tags.c.task_id == Task.id)
            criteria.append(task_tags.c.tag_id == tag_id)
        return super().find_many(criteria, page=page, limit=limit, statement=statement)

    def find_with_tags(self, task_id: int) -> Task | None:
        stmt = (
            select(Task)
            .where(Task.id == task_id)
            .options(selectinload(Task.tags))
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def ids_for_project(self, project_id: int) -> list[int]:
        return list(self.session.scalars(select(Task.id).where(Task.project_id == project_id)))

    def delete(self, task_id: int) -> bool:
        """Delete the task after its comments and tag associations."""
        self.comments.delete_for_tasks([task_id])
        self.task_tags.delete_for_tasks([task_id])
        return super().delete(task_id)

    def delete_for_project(self, project_id: int) -> int:
        """Delete every task of the project together with its dependents."""
        task_ids = self.ids_for_project(project_id)
        if not task_ids:
            return 0
        comment_count = self.comments.delete_for_tasks(task_ids)
        self.task_tags.delete_for_tasks(task_ids)
        result = self.session.execute(delete(Task).where(Task.id.in_(task_ids)))
        logger.info(
            "Cascade for project %s removed %s tasks and %s comments",
            project_id,
            len(task_ids),
            comment_count,
        )
        return result.rowcount or 0


__all__ = ["TaskRepository"]
