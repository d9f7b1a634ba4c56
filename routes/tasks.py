"""Task endpoints, including task tags and task comments."""
from __future__ import annotations

from flask import Blueprint, g, jsonify

from forms import CommentForm, CommentQueryForm, TaskForm, TaskQueryForm, TaskTagForm, TaskUpdateForm
from routes import (
    cleaned_fields,
    filters_from,
    json_form,
    json_payload,
    page_response,
    query_form,
    register_error_handlers,
    requires_actor,
)
from services.comment_service import CommentService
from services.tag_service import TagService
from services.task_service import TaskService

tasks_bp = Blueprint("tasks", __name__, url_prefix="/tasks")
register_error_handlers(tasks_bp)

TASK_FILTERS = ["project_id", "status", "priority", "assignee_id", "tag_id"]


@tasks_bp.route("", methods=["GET"])
def list_tasks():
    form = query_form(TaskQueryForm)
    page = TaskService().list_tasks(**filters_from(form, TASK_FILTERS), **form.pagination())
    return page_response(page)


@tasks_bp.route("", methods=["POST"])
@requires_actor
def create_task():
    form = json_form(TaskForm, json_payload())
    task = TaskService().create_task(
        g.actor,
        title=form.title.data,
        project_id=form.project_id.data,
        description=form.description.data or None,
        status=form.status.data or None,
        priority=form.priority.data or None,
        due_date=form.due_date.data,
        assignee_id=form.assignee_id.data,
    )
    return jsonify({"data": task.to_dict()}), 201


@tasks_bp.route("/<int:task_id>", methods=["GET"])
def get_task(task_id):
    task = TaskService().get_task_with_tags(task_id)
    return jsonify({"data": task.to_dict(include_tags=True)})


@tasks_bp.route("/<int:task_id>", methods=["PATCH", "PUT"])
@requires_actor
def update_task(task_id):
    payload = json_payload()
    form = json_form(TaskUpdateForm, payload)
    task = TaskService().update_task(g.actor, task_id, cleaned_fields(form, payload))
    return jsonify({"data": task.to_dict()})


@tasks_bp.route("/<int:task_id>", methods=["DELETE"])
@requires_actor
def delete_task(task_id):
    TaskService().delete_task(g.actor, task_id)
    return "", 204


# Task tags
# ------------------------------
@tasks_bp.route("/<int:task_id>/tags", methods=["GET"])
def get_task_tags(task_id):
    task = TaskService().get_task_with_tags(task_id)
    return jsonify({"data": [tag.to_dict() for tag in task.tags]})


@tasks_bp.route("/<int:task_id>/tags", methods=["POST"])
@requires_actor
def add_tag_to_task(task_id):
    form = json_form(TaskTagForm, json_payload())
    task = TagService().add_tag_to_task(g.actor, task_id, form.tag_id.data)
    return jsonify({"data": task.to_dict(include_tags=True)}), 201


@tasks_bp.route("/<int:task_id>/tags/<int:tag_id>", methods=["DELETE"])
@requires_actor
def remove_tag_from_task(task_id, tag_id):
    task = TagService().remove_tag_from_task(g.actor, task_id, tag_id)
    return jsonify({"data": task.to_dict(include_tags=True)})


# Task comments
# ------------------------------
@tasks_bp.route("/<int:task_id>/comments", methods=["GET"])
def list_task_comments(task_id):
    form = query_form(CommentQueryForm)
    page = CommentService().list_comments(task_id, **form.pagination())
    return page_response(page)


@tasks_bp.route("/<int:task_id>/comments", methods=["POST"])
@requires_actor
def create_task_comment(task_id):
    form = json_form(CommentForm, json_payload())
    comment = CommentService().create_comment(g.actor, task_id=task_id, content=form.content.data)
    return jsonify({"data": comment.to_dict()}), 201
