"""A Tag is a global label that can be attached to any number of Tasks.

Tag names are unique across the system (case-sensitive storage)
Searching tags by name is case-insensitive
Deleting a Tag detaches it from every Task but never deletes a Task

"""
from database import db, utcnow


# Association table linking tasks and tags.
# Rows are managed through repositories.task_tag_repository, never through
# an in-memory collection on Task.
task_tags = db.Table(
    "task_tags",
    db.Column("task_id", db.Integer, db.ForeignKey("task.id", ondelete="CASCADE"), primary_key=True),
    db.Column("tag_id", db.Integer, db.ForeignKey("tag.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(db.Model):
    __tablename__ = "tag"

    __table_args__ = (
        db.UniqueConstraint("name", name="uq_tag_name"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    color = db.Column(db.String(7), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Tag #{self.name}>"
