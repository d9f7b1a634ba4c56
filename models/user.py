""" Represents a user in the system.

A User is identified by a unique email address
A User has exactly one profile (display name, names, avatar, bio)
A User holds one or more Roles; new Users receive the MEMBER role
A User can edit its own profile and change its own password
Only an ADMIN can list Users, change their Roles, (de)activate or delete them

"""

from werkzeug.security import generate_password_hash, check_password_hash
from database import db, utcnow
from models.role import user_roles


class User(db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.Text)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    profile = db.relationship(
        "UserProfile",
        back_populates="user",
        uselist=False,
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    # Loaded only through UserRepository.find_with_roles.
    roles = db.relationship(
        "Role",
        secondary=user_roles,
        lazy="raise",
        order_by="Role.name",
    )

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def role_names(self) -> frozenset[str]:
        """Names of the roles held by the user (roles must be loaded)."""

        return frozenset(role.name for role in self.roles)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "email": self.email,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "profile": self.profile.to_dict() if self.profile else None,
            "roles": [{"id": role.id, "name": role.name} for role in self.roles],
        }

    def __repr__(self):
        return f"<User {self.id}>"


class UserProfile(db.Model):
    __tablename__ = "user_profile"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("user.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    display_name = db.Column(db.String(100), nullable=False)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    avatar_url = db.Column(db.String(500), nullable=True)
    bio = db.Column(db.String(1000), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="profile")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "avatar_url": self.avatar_url,
            "bio": self.bio,
        }

    def __repr__(self):
        return f"<UserProfile {self.display_name}>"
