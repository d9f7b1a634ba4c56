"""A Role is a named permission group assigned to Users.

Role names are unique and written in upper case (e.g. ADMIN, PROJECT_LEAD)
ADMIN and MEMBER are system roles: they are seeded at startup and can never be deleted
A Role still held by Users cannot be deleted

"""
from database import db, utcnow

ADMIN_ROLE = "ADMIN"
MEMBER_ROLE = "MEMBER"
SYSTEM_ROLE_NAMES = frozenset({ADMIN_ROLE, MEMBER_ROLE})
ROLE_NAME_PATTERN = r"^[A-Z][A-Z_]*$"


# Association table
user_roles = db.Table(
    "user_roles",
    db.Column("user_id", db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), primary_key=True),
    db.Column("role_id", db.Integer, db.ForeignKey("role.id", ondelete="CASCADE"), primary_key=True),
)


class Role(db.Model):
    __tablename__ = "role"

    __table_args__ = (
        db.UniqueConstraint("name", name="uq_role_name"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Role {self.name}>"
