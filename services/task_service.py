"""Task orchestration.

Tasks are created inside an existing project and never move to another one.
Creation is gated by a pluggable policy which, by default, admits every
authenticated actor; updates and deletes carry no ownership rule.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping

from database import atomic
from models.task import Task, TaskPriority, TaskStatus
from repositories.project_repository import ProjectRepository
from repositories.task_repository import TaskRepository
from services.authorization import Actor, can_create_task, ensure
from services.errors import NotFoundError, ValidationError, check_update_fields, storage_errors
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, Page

logger = logging.getLogger(__name__)

CreatePolicy = Callable[[Actor], bool]


def _coerce_choice(enum_cls, value, field_name: str) -> str | None:
    if value is None:
        return None
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field_name} '{value}'. Expected one of: {allowed}") from None


def _normalize_task_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    normalized = dict(fields)
    if "status" in normalized:
        normalized["status"] = _coerce_choice(TaskStatus, normalized["status"], "status")
        if normalized["status"] is None:
            raise ValidationError("Task status cannot be cleared")
    if "priority" in normalized:
        normalized["priority"] = _coerce_choice(TaskPriority, normalized["priority"], "priority")
        if normalized["priority"] is None:
            raise ValidationError("Task priority cannot be cleared")
    if "title" in normalized and not normalized["title"]:
        raise ValidationError("Task title cannot be empty")
    return normalized


class TaskService:
    def __init__(
        self,
        tasks: TaskRepository | None = None,
        projects: ProjectRepository | None = None,
        create_policy: CreatePolicy = can_create_task,
    ):
        self.tasks = tasks or TaskRepository()
        self.projects = projects or ProjectRepository()
        self.create_policy = create_policy

    def create_task(
        self,
        actor: Actor,
        *,
        title: str,
        project_id: int,
        description: str | None = None,
        status: str | None = None,
        priority: str | None = None,
        due_date: datetime | None = None,
        assignee_id: int | None = None,
    ) -> Task:
        """Create a task in ``project_id``; the project must exist."""
        status = _coerce_choice(TaskStatus, status, "status")
        priority = _coerce_choice(TaskPriority, priority, "priority")
        with storage_errors("create task"), atomic():
            if self.projects.find_by_id(project_id) is None:
                raise NotFoundError("project", project_id)
            ensure(self.create_policy(actor), "You are not allowed to create tasks")
            task = self.tasks.create(
                title=title,
                project_id=project_id,
                description=description,
                status=status,
                priority=priority,
                due_date=due_date,
                assignee_id=assignee_id,
            )
        logger.info("User %s created task %s in project %s", actor.id, task.id, project_id)
        return task

    def list_tasks(
        self,
        project_id: int | None = None,
        status: str | None = None,
        priority: str | None = None,
        assignee_id: int | None = None,
        tag_id: int | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Page[Task]:
        status = _coerce_choice(TaskStatus, status, "status")
        priority = _coerce_choice(TaskPriority, priority, "priority")
        with storage_errors("list tasks"):
            items, total = self.tasks.find_many(
                project_id,
                status,
                priority,
                assignee_id,
                tag_id,
                page=page,
                limit=limit,
            )
        return Page(items, total, page, limit)

    def get_task(self, task_id: int) -> Task:
        with storage_errors("load task"):
            task = self.tasks.find_by_id(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def get_task_with_tags(self, task_id: int) -> Task:
        with storage_errors("load task tags"):
            task = self.tasks.find_with_tags(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def update_task(self, actor: Actor, task_id: int, fields: Mapping[str, Any]) -> Task:
        """Apply a partial update. Moving a task to another project is refused."""
        with storage_errors("update task"), atomic():
            if self.tasks.find_by_id(task_id) is None:
                raise NotFoundError("task", task_id)
            if "project_id" in fields:
                raise ValidationError("A task cannot be moved to another project")
            check_update_fields("task", fields, self.tasks.updatable_fields)
            task = self.tasks.update(task_id, _normalize_task_fields(fields))
        logger.debug("User %s updated task %s (%s)", actor.id, task_id, ", ".join(sorted(fields)))
        return task

    def delete_task(self, actor: Actor, task_id: int) -> None:
        """Delete the task together with its comments and tag links."""
        with storage_errors("delete task"), atomic():
            if self.tasks.find_by_id(task_id) is None:
                raise NotFoundError("task", task_id)
            self.tasks.delete(task_id)
        logger.info("User %s deleted task %s", actor.id, task_id)


__all__ = ["CreatePolicy", "TaskService"]
