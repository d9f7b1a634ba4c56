"""A task represent an objective that needs to be completed

A Task always belongs to exactly one Project
A Task cannot be moved to another Project once created
Any authenticated User can create Tasks in an existing Project
A Task can carry multiple Tags, and a Tag can be on multiple Tasks
A Task can have multiple Comments
Deleting a Task deletes its Comments and its Tag associations

"""
from __future__ import annotations
from enum import StrEnum

from database import db, utcnow
from .tag import task_tags


class TaskStatus(StrEnum):
    """Workflow states for a task."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class TaskPriority(StrEnum):
    """Relative urgency of a task."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Task(db.Model):
    __tablename__ = "task"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.String(2000), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=TaskStatus.TODO.value)
    priority = db.Column(db.String(20), nullable=False, default=TaskPriority.MEDIUM.value)
    due_date = db.Column(db.DateTime, nullable=True)
    project_id = db.Column(
        db.Integer,
        db.ForeignKey("project.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assignee_id = db.Column(db.Integer, nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Loaded only through TaskRepository.find_with_tags; writes go through
    # TaskTagRepository.
    tags = db.relationship(
        "Tag",
        secondary=task_tags,
        lazy="raise",
        viewonly=True,
        order_by="Tag.name",
    )
    comments = db.relationship(
        "Comment",
        lazy="raise",
        passive_deletes=True,
    )

    @property
    def status_enum(self) -> TaskStatus:
        """Return the status as an enum value."""

        return TaskStatus(self.status)

    @property
    def priority_enum(self) -> TaskPriority:
        """Return the priority as an enum value."""

        return TaskPriority(self.priority)

    def to_dict(self, *, include_tags: bool = False) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "project_id": self.project_id,
            "assignee_id": self.assignee_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_tags:
            payload["tags"] = [tag.to_dict() for tag in self.tags or []]
        return payload

    def __repr__(self):
        return f"<Task {self.title}>"
