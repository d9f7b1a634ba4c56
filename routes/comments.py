"""Comment endpoints."""
from __future__ import annotations

from flask import Blueprint, g, jsonify

from forms import CommentForm, CommentQueryForm, TaskCommentForm
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

comments_bp = Blueprint("comments", __name__, url_prefix="/comments")
register_error_handlers(comments_bp)


@comments_bp.route("", methods=["GET"])
def list_comments():
    form = query_form(CommentQueryForm)
    page = CommentService().list_comments(**filters_from(form, ["task_id"]), **form.pagination())
    return page_response(page)


@comments_bp.route("", methods=["POST"])
@requires_actor
def create_comment():
    form = json_form(TaskCommentForm, json_payload())
    comment = CommentService().create_comment(g.actor, task_id=form.task_id.data, content=form.content.data)
    return jsonify({"data": comment.to_dict()}), 201


@comments_bp.route("/<int:comment_id>", methods=["GET"])
def get_comment(comment_id):
    return jsonify({"data": CommentService().get_comment(comment_id).to_dict()})


@comments_bp.route("/<int:comment_id>", methods=["PATCH", "PUT"])
@requires_actor
def update_comment(comment_id):
    payload = json_payload()
    form = json_form(CommentForm, payload)
    comment = CommentService().update_comment(g.actor, comment_id, cleaned_fields(form, payload))
    return jsonify({"data": comment.to_dict()})


@comments_bp.route("/<int:comment_id>", methods=["DELETE"])
@requires_actor
def delete_comment(comment_id):
    CommentService().delete_comment(g.actor, comment_id)
    return "", 204
