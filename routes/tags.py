"""Tag endpoints."""
from __future__ import annotations

from flask import Blueprint, g, jsonify

from forms import TagForm, TagQueryForm, TagUpdateForm
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
from services.tag_service import TagService

tags_bp = Blueprint("tags", __name__, url_prefix="/tags")
register_error_handlers(tags_bp)


@tags_bp.route("", methods=["GET"])
def list_tags():
    form = query_form(TagQueryForm)
    return page_response(TagService().list_tags(**filters_from(form, ["search"]), **form.pagination()))


@tags_bp.route("", methods=["POST"])
@requires_actor
def create_tag():
    form = json_form(TagForm, json_payload())
    tag = TagService().create_tag(g.actor, name=form.name.data, color=form.color.data or None)
    return jsonify({"data": tag.to_dict()}), 201


@tags_bp.route("/<int:tag_id>", methods=["GET"])
def get_tag(tag_id):
    return jsonify({"data": TagService().get_tag(tag_id).to_dict()})


@tags_bp.route("/<int:tag_id>", methods=["PATCH", "PUT"])
@requires_actor
def update_tag(tag_id):
    payload = json_payload()
    form = json_form(TagUpdateForm, payload)
    tag = TagService().update_tag(g.actor, tag_id, cleaned_fields(form, payload))
    return jsonify({"data": tag.to_dict()})


@tags_bp.route("/<int:tag_id>", methods=["DELETE"])
@requires_actor
def delete_tag(tag_id):
    TagService().delete_tag(g.actor, tag_id)
    return "", 204
