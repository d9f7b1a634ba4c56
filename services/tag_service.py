"""Tag orchestration: unique names and task attachment."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from database import atomic
from models.tag import Tag
from models.task import Task
from repositories.tag_repository import TagRepository
from repositories.task_repository import TaskRepository
from services.authorization import Actor
from services.errors import ConflictError, NotFoundError, ValidationError, check_update_fields, storage_errors
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, Page

logger = logging.getLogger(__name__)


def _name_taken(name: str) -> ConflictError:
    return ConflictError("tag", name, f"Tag with name '{name}' already exists")


class TagService:
    def __init__(self, tags: TagRepository | None = None, tasks: TaskRepository | None = None):
        self.tags = tags or TagRepository()
        self.tasks = tasks or TaskRepository()

    def _ensure_name_free(self, name: str, *, exclude_id: int | None = None) -> None:
        existing = self.tags.find_by_name(name)
        if existing is not None and existing.id != exclude_id:
            raise _name_taken(name)

    def create_tag(self, actor: Actor, *, name: str, color: str | None = None) -> Tag:
        with storage_errors("create tag", on_conflict=lambda: _name_taken(name)), atomic():
            self._ensure_name_free(name)
            tag = self.tags.create(name=name, color=color)
        logger.info("User %s created tag %r", actor.id, name)
        return tag

    def list_tags(
        self,
        search: str | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Page[Tag]:
        """List tags by name, optionally filtered by a case-insensitive substring."""
        with storage_errors("list tags"):
            items, total = self.tags.find_many(search, page=page, limit=limit)
        return Page(items, total, page, limit)

    def get_tag(self, tag_id: int) -> Tag:
        with storage_errors("load tag"):
            tag = self.tags.find_by_id(tag_id)
        if tag is None:
            raise NotFoundError("tag", tag_id)
        return tag

    def update_tag(self, actor: Actor, tag_id: int, fields: Mapping[str, Any]) -> Tag:
        """Rename or recolor a tag. Keeping the current name is never a conflict."""
        name = fields.get("name")
        with storage_errors("update tag", on_conflict=lambda: _name_taken(name)), atomic():
            if self.tags.find_by_id(tag_id) is None:
                raise NotFoundError("tag", tag_id)
            check_update_fields("tag", fields, self.tags.updatable_fields)
            if "name" in fields:
                if not name:
                    raise ValidationError("Tag name cannot be empty")
                self._ensure_name_free(name, exclude_id=tag_id)
            tag = self.tags.update(tag_id, fields)
        return tag

    def delete_tag(self, actor: Actor, tag_id: int) -> None:
        """Delete a tag; tasks carrying it lose the tag but are kept."""
        with storage_errors("delete tag"), atomic():
            if self.tags.find_by_id(tag_id) is None:
                raise NotFoundError("tag", tag_id)
            detached = self.tags.task_tags.count_for_tag(tag_id)
            self.tags.delete(tag_id)
        logger.info("User %s deleted tag %s (detached from %s tasks)", actor.id, tag_id, detached)

    def add_tag_to_task(self, actor: Actor, task_id: int, tag_id: int) -> Task:
        """Attach the tag and return the task with its tags loaded."""
        with storage_errors(
            "attach tag",
            on_conflict=lambda: self._already_attached(task_id, tag_id),
        ), atomic():
            if self.tasks.find_by_id(task_id) is None:
                raise NotFoundError("task", task_id)
            if self.tags.find_by_id(tag_id) is None:
                raise NotFoundError("tag", tag_id)
            if not self.tasks.task_tags.attach(task_id, tag_id):
                raise self._already_attached(task_id, tag_id)
        return self._task_with_tags(task_id)

    def remove_tag_from_task(self, actor: Actor, task_id: int, tag_id: int) -> Task:
        """Detach the tag; a tag that was not attached is not an error."""
        with storage_errors("detach tag"), atomic():
            if self.tasks.find_by_id(task_id) is None:
                raise NotFoundError("task", task_id)
            if self.tags.find_by_id(tag_id) is None:
                raise NotFoundError("tag", tag_id)
            self.tasks.task_tags.detach(task_id, tag_id)
        return self._task_with_tags(task_id)

    def _task_with_tags(self, task_id: int) -> Task:
        with storage_errors("load task tags"):
            return self.tasks.find_with_tags(task_id)

    @staticmethod
    def _already_attached(task_id: int, tag_id: int) -> ConflictError:
        return ConflictError(
            "task tag",
            (task_id, tag_id),
            f"Tag {tag_id} is already attached to task {task_id}",
            code="TASK_TAG_ALREADY_ATTACHED",
        )


__all__ = ["TagService"]
