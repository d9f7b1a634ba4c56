"""Comment orchestration."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from database import atomic
from models.comment import Comment
from repositories.comment_repository import CommentRepository
from repositories.task_repository import TaskRepository
from services.authorization import Actor, can_delete_comment, can_update_comment, ensure
from services.errors import NotFoundError, ValidationError, check_update_fields, storage_errors
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, Page

logger = logging.getLogger(__name__)


class CommentService:
    def __init__(self, comments: CommentRepository | None = None, tasks: TaskRepository | None = None):
        self.comments = comments or CommentRepository()
        self.tasks = tasks or TaskRepository()

    def create_comment(self, actor: Actor, *, task_id: int, content: str) -> Comment:
        """Add a comment by ``actor`` to an existing task."""
        with storage_errors("create comment"), atomic():
            if self.tasks.find_by_id(task_id) is None:
                raise NotFoundError("task", task_id)
            comment = self.comments.create(task_id=task_id, content=content, author_id=actor.id)
        return comment

    def list_comments(
        self,
        task_id: int | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Page[Comment]:
        with storage_errors("list comments"):
            if task_id is not None and self.tasks.find_by_id(task_id) is None:
                raise NotFoundError("task", task_id)
            items, total = self.comments.find_many(task_id, page=page, limit=limit)
        return Page(items, total, page, limit)

    def get_comment(self, comment_id: int) -> Comment:
        with storage_errors("load comment"):
            comment = self.comments.find_by_id(comment_id)
        if comment is None:
            raise NotFoundError("comment", comment_id)
        return comment

    def update_comment(self, actor: Actor, comment_id: int, fields: Mapping[str, Any]) -> Comment:
        """Edit a comment. Only its author may, administrators included."""
        with storage_errors("update comment"), atomic():
            comment = self.comments.find_by_id(comment_id)
            if comment is None:
                raise NotFoundError("comment", comment_id)
            ensure(can_update_comment(actor, comment), "Only the author can edit this comment")
            check_update_fields("comment", fields, self.comments.updatable_fields)
            if "content" in fields and not fields["content"]:
                raise ValidationError("Comment content cannot be empty")
            comment = self.comments.update(comment_id, fields)
        return comment

    def delete_comment(self, actor: Actor, comment_id: int) -> None:
        with storage_errors("delete comment"), atomic():
            comment = self.comments.find_by_id(comment_id)
            if comment is None:
                raise NotFoundError("comment", comment_id)
            ensure(
                can_delete_comment(actor, comment),
                "Only the author or an administrator can delete this comment",
            )
            self.comments.delete(comment_id)
        logger.info("User %s deleted comment %s", actor.id, comment_id)


__all__ = ["CommentService"]
