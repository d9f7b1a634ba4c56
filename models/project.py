"""A Project is the parent element of Tasks.

A User can create multiple Projects
A User is the owner of every Project it creates
Only the owner can edit or delete a Project (there is no admin override)
Deleting a Project deletes all its Tasks and their Comments

"""
from database import db, utcnow


class Project(db.Model):
    __tablename__ = "project"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(1000), nullable=True)
    # Opaque reference to the creating user; not a foreign key.
    owner_id = db.Column(db.Integer, nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Loaded only through ProjectRepository.find_with_tasks.
    tasks = db.relationship(
        "Task",
        lazy="raise",
        order_by="Task.created_at.desc()",
        passive_deletes=True,
    )

    def to_dict(self, *, include_tasks: bool = False) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_tasks:
            payload["tasks"] = [task.to_dict() for task in self.tasks or []]
        return payload

    def __repr__(self):
        return f"<Project {self.name}>"
