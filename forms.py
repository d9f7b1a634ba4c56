from flask import current_app
from flask_wtf import FlaskForm
from wtforms import (
    BooleanField,
    DateTimeField,
    IntegerField,
    PasswordField,
    SelectMultipleField,
    StringField,
    TextAreaField,
)
from wtforms.validators import (
    AnyOf,
    DataRequired,
    Email,
    InputRequired,
    Length,
    NumberRange,
    Optional,
    Regexp,
    ValidationError,
)

from models.role import ROLE_NAME_PATTERN
from models.task import TaskPriority, TaskStatus
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT

STATUS_CHOICES = [status.value for status in TaskStatus]
PRIORITY_CHOICES = [priority.value for priority in TaskPriority]
DATETIME_FORMATS = ["%Y-%m-%dT%H:%M:%S.%f", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M", "%Y-%m-%d"]


def strip_value(value):
    return value.strip() if isinstance(value, str) else value


class JSONForm(FlaskForm):
    """Base for forms fed from JSON bodies or query strings, never from HTML."""

    class Meta:
        csrf = False


# Pagination & filters
# ------------------------------
class ListQueryForm(JSONForm):
    page = IntegerField(
        "Page",
        validators=[Optional(), NumberRange(min=1, message="page must be at least 1")],
        default=DEFAULT_PAGE,
    )
    limit = IntegerField(
        "Limit",
        validators=[
            Optional(),
            NumberRange(min=1, message="limit must be at least 1"),
        ],
    )

    def validate_limit(self, field):
        max_limit = current_app.config.get("MAX_PAGE_LIMIT", MAX_LIMIT)
        if field.data is not None and field.data > max_limit:
            raise ValidationError(f"limit must be between 1 and {max_limit}")

    def pagination(self):
        limit = self.limit.data or current_app.config.get("DEFAULT_PAGE_LIMIT", DEFAULT_LIMIT)
        return {"page": self.page.data or DEFAULT_PAGE, "limit": limit}


class ProjectQueryForm(ListQueryForm):
    owner_id = IntegerField("Owner", [Optional(), NumberRange(min=1)])


class TaskQueryForm(ListQueryForm):
    project_id = IntegerField("Project", [Optional(), NumberRange(min=1)])
    status = StringField(
        "Status",
        [Optional(), AnyOf(STATUS_CHOICES, message="status must be one of: %(values)s")],
    )
    priority = StringField(
        "Priority",
        [Optional(), AnyOf(PRIORITY_CHOICES, message="priority must be one of: %(values)s")],
    )
    assignee_id = IntegerField("Assignee", [Optional(), NumberRange(min=1)])
    tag_id = IntegerField("Tag", [Optional(), NumberRange(min=1)])


class TagQueryForm(ListQueryForm):
    search = StringField("Search", [Optional(), Length(max=50)], filters=[strip_value])


class CommentQueryForm(ListQueryForm):
    task_id = IntegerField("Task", [Optional(), NumberRange(min=1)])


class UserQueryForm(ListQueryForm):
    email = StringField("Email", [Optional(), Length(max=255)], filters=[strip_value])
    is_active = StringField("Active", [Optional(), AnyOf(["true", "false"])])
    role_id = IntegerField("Role", [Optional(), NumberRange(min=1)])


# Projects
# ------------------------------
class ProjectForm(JSONForm):
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Project name is required."),
            Length(max=100, message="Project name must be 100 characters or fewer."),
        ],
        filters=[strip_value],
    )
    description = TextAreaField(
        "Description",
        [Optional(), Length(max=1000, message="Description must be 1000 characters or fewer.")],
    )


class ProjectUpdateForm(ProjectForm):
    name = StringField(
        "Name",
        validators=[
            Optional(),
            Length(min=1, max=100, message="Project name must be between 1 and 100 characters."),
        ],
        filters=[strip_value],
    )


# Tasks
# ------------------------------
class TaskForm(JSONForm):
    title = StringField(
        "Title",
        validators=[
            DataRequired(message="Task title is required."),
            Length(max=200, message="Task title must be 200 characters or fewer."),
        ],
        filters=[strip_value],
    )
    description = TextAreaField(
        "Description",
        [Optional(), Length(max=2000, message="Description must be 2000 characters or fewer.")],
    )
    status = StringField(
        "Status",
        [Optional(), AnyOf(STATUS_CHOICES, message="status must be one of: %(values)s")],
    )
    priority = StringField(
        "Priority",
        [Optional(), AnyOf(PRIORITY_CHOICES, message="priority must be one of: %(values)s")],
    )
    due_date = DateTimeField("Due Date", format=DATETIME_FORMATS, validators=[Optional()])
    project_id = IntegerField(
        "Project",
        [InputRequired(message="project_id is required."), NumberRange(min=1)],
    )
    assignee_id = IntegerField("Assignee", [Optional(), NumberRange(min=1)])


class TaskUpdateForm(TaskForm):
    title = StringField(
        "Title",
        validators=[
            Optional(),
            Length(min=1, max=200, message="Task title must be between 1 and 200 characters."),
        ],
        filters=[strip_value],
    )
    project_id = IntegerField("Project", [Optional(), NumberRange(min=1)])


# Tags
# ------------------------------
class TagForm(JSONForm):
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Tag name is required."),
            Length(max=50, message="Tag name must be 50 characters or fewer."),
        ],
        filters=[strip_value],
    )
    color = StringField(
        "Color",
        [
            Optional(),
            Regexp(r"^#[0-9A-Fa-f]{6}$", message="color must be a hex color such as #FF5733"),
        ],
    )


class TagUpdateForm(TagForm):
    name = StringField(
        "Name",
        validators=[
            Optional(),
            Length(min=1, max=50, message="Tag name must be between 1 and 50 characters."),
        ],
        filters=[strip_value],
    )


class TaskTagForm(JSONForm):
    tag_id = IntegerField("Tag", [InputRequired(message="tag_id is required."), NumberRange(min=1)])


# Comments
# ------------------------------
class CommentForm(JSONForm):
    content = TextAreaField(
        "Content",
        validators=[
            DataRequired(message="Comment content is required."),
            Length(max=2000, message="Comment must be 2000 characters or fewer."),
        ],
    )


class TaskCommentForm(CommentForm):
    task_id = IntegerField("Task", [InputRequired(message="task_id is required."), NumberRange(min=1)])


# Roles
# ------------------------------
class RoleForm(JSONForm):
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Role name is required."),
            Length(max=50, message="Role name must be 50 characters or fewer."),
            Regexp(
                ROLE_NAME_PATTERN,
                message="Role name may only include upper case letters and underscores, starting with a letter.",
            ),
        ],
        filters=[strip_value],
    )
    description = TextAreaField(
        "Description",
        [Optional(), Length(max=500, message="Description must be 500 characters or fewer.")],
    )


class RoleUpdateForm(RoleForm):
    name = StringField(
        "Name",
        validators=[
            Optional(),
            Length(max=50, message="Role name must be 50 characters or fewer."),
            Regexp(
                ROLE_NAME_PATTERN,
                message="Role name may only include upper case letters and underscores, starting with a letter.",
            ),
        ],
        filters=[strip_value],
    )


# Users
# ------------------------------
class SignupForm(JSONForm):
    email = StringField(
        "Email",
        [DataRequired(), Email(), Length(max=255)],
        filters=[strip_value],
    )
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(message="Password is required."),
            Length(min=8, message="Password must be at least 8 characters."),
            Regexp(
                r"^(?=.*[A-Za-z])(?=.*\d).+$",
                message="Password must include at least one letter and one number.",
            ),
        ],
    )
    display_name = StringField(
        "Display Name",
        [DataRequired(), Length(max=100)],
        filters=[strip_value],
    )


class ProfileForm(JSONForm):
    display_name = StringField("Display Name", [Optional(), Length(min=1, max=100)], filters=[strip_value])
    first_name = StringField("First Name", [Optional(), Length(max=100)], filters=[strip_value])
    last_name = StringField("Last Name", [Optional(), Length(max=100)], filters=[strip_value])
    avatar_url = StringField("Avatar URL", [Optional(), Length(max=500)], filters=[strip_value])
    bio = TextAreaField("Bio", [Optional(), Length(max=1000)])


class PasswordChangeForm(JSONForm):
    current_password = PasswordField(
        "Current Password",
        validators=[DataRequired(message="Current password is required.")],
    )
    new_password = PasswordField(
        "New Password",
        validators=[
            DataRequired(message="New password is required."),
            Length(min=8, message="Password must be at least 8 characters."),
            Regexp(
                r"^(?=.*[A-Za-z])(?=.*\d).+$",
                message="Password must include at least one letter and one number.",
            ),
        ],
    )


class UserRolesForm(JSONForm):
    role_ids = SelectMultipleField("Roles", choices=[], coerce=int, validate_choice=False)


class UserStatusForm(JSONForm):
    is_active = BooleanField("Active", [InputRequired(message="is_active is required.")])
