import logging
import os

import click
from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_migrate import Migrate

from database import db
from models.role import MEMBER_ROLE, SYSTEM_ROLE_NAMES
from utils.pagination import DEFAULT_LIMIT, MAX_LIMIT

load_dotenv()


def _env_list(name, default):
    raw = os.environ.get(name)
    if not raw:
        return frozenset(default)
    return frozenset(item.strip().upper() for item in raw.split(",") if item.strip())


# Initialize Flask app
app = Flask(__name__)
app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///taskboard.db")
app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-key")
app.config["WTF_CSRF_ENABLED"] = False
app.config["DEFAULT_PAGE_LIMIT"] = int(os.environ.get("DEFAULT_PAGE_LIMIT", DEFAULT_LIMIT))
app.config["MAX_PAGE_LIMIT"] = int(os.environ.get("MAX_PAGE_LIMIT", MAX_LIMIT))
app.config["SYSTEM_ROLE_NAMES"] = _env_list("SYSTEM_ROLE_NAMES", SYSTEM_ROLE_NAMES)
app.config["DEFAULT_ROLE_NAME"] = os.environ.get("DEFAULT_ROLE_NAME", MEMBER_ROLE)

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

db.init_app(app)

# Models import should be after initializing db
from models.comment import Comment  # noqa: E402,F401
from models.project import Project  # noqa: E402,F401
from models.role import Role  # noqa: E402,F401
from models.tag import Tag  # noqa: E402,F401
from models.task import Task  # noqa: E402,F401
from models.user import User, UserProfile  # noqa: E402,F401

from routes.comments import comments_bp  # noqa: E402
from routes.projects import projects_bp  # noqa: E402
from routes.roles import roles_bp  # noqa: E402
from routes.tags import tags_bp  # noqa: E402
from routes.tasks import tasks_bp  # noqa: E402
from routes.users import users_bp  # noqa: E402
from services.role_service import RoleService  # noqa: E402

# Create flask command lines to update the db based on the model
# Useage:
# Create a migration script in ./migrations/versions
# > flask db migrate -m "Add column"
# Run the update
# > flask db upgrade
migrate = Migrate(app, db)
app.register_blueprint(projects_bp)
app.register_blueprint(tasks_bp)
app.register_blueprint(tags_bp)
app.register_blueprint(comments_bp)
app.register_blueprint(roles_bp)
app.register_blueprint(users_bp)


@app.errorhandler(404)
def not_found(error):
    return jsonify({"error": {"code": "NOT_FOUND", "message": "The requested URL was not found."}}), 404


@app.errorhandler(405)
def method_not_allowed(error):
    return (
        jsonify({"error": {"code": "METHOD_NOT_ALLOWED", "message": "The method is not allowed for this URL."}}),
        405,
    )


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"})


# Command line
# ------------------------------
@app.cli.command("seed-roles")
def seed_roles_command():
    """Create the default ADMIN and MEMBER roles if they are missing."""
    created = RoleService(system_roles=app.config["SYSTEM_ROLE_NAMES"]).seed_default_roles()
    click.echo(f"Created {len(created)} role(s).")


# Application Execution
# ------------------------------
if __name__ == "__main__":
    app.run(debug=True)
