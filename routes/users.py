"""User account endpoints."""
from __future__ import annotations

from flask import Blueprint, abort, current_app, g, jsonify

from forms import (
    PasswordChangeForm,
    ProfileForm,
    SignupForm,
    UserQueryForm,
    UserRolesForm,
    UserStatusForm,
)
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
from services.user_service import UserService

users_bp = Blueprint("users", __name__, url_prefix="/users")
register_error_handlers(users_bp)


def _service() -> UserService:
    return UserService(default_role=current_app.config["DEFAULT_ROLE_NAME"])


@users_bp.route("", methods=["POST"])
def register():
    form = json_form(SignupForm, json_payload())
    user = _service().register_user(
        email=form.email.data,
        password=form.password.data,
        display_name=form.display_name.data,
    )
    return jsonify({"data": user.to_dict()}), 201


@users_bp.route("", methods=["GET"])
@requires_actor
def list_users():
    form = query_form(UserQueryForm)
    filters = filters_from(form, ["email", "is_active", "role_id"])
    if "is_active" in filters:
        filters["is_active"] = filters["is_active"] == "true"
    page = _service().list_users(g.actor, **filters, **form.pagination())
    return page_response(page)


@users_bp.route("/me", methods=["GET"])
@requires_actor
def get_current_user():
    return jsonify({"data": _service().get_user(g.actor, g.actor.id).to_dict()})


@users_bp.route("/<int:user_id>", methods=["GET"])
@requires_actor
def get_user(user_id):
    return jsonify({"data": _service().get_user(g.actor, user_id).to_dict()})


@users_bp.route("/<int:user_id>/profile", methods=["PATCH", "PUT"])
@requires_actor
def update_profile(user_id):
    payload = json_payload()
    form = json_form(ProfileForm, payload)
    profile = _service().update_profile(g.actor, user_id, cleaned_fields(form, payload))
    return jsonify({"data": profile.to_dict()})


@users_bp.route("/<int:user_id>/password", methods=["PUT"])
@requires_actor
def change_password(user_id):
    form = json_form(PasswordChangeForm, json_payload())
    _service().change_password(
        g.actor,
        user_id,
        current_password=form.current_password.data,
        new_password=form.new_password.data,
    )
    return "", 204


@users_bp.route("/<int:user_id>/roles", methods=["PUT"])
@requires_actor
def update_roles(user_id):
    payload = json_payload()
    if not isinstance(payload.get("role_ids"), list):
        abort(400, description={"role_ids": ["role_ids must be a list of role ids."]})
    form = json_form(UserRolesForm, payload)
    user = _service().update_roles(g.actor, user_id, form.role_ids.data or [])
    return jsonify({"data": user.to_dict()})


@users_bp.route("/<int:user_id>/status", methods=["PATCH", "PUT"])
@requires_actor
def update_status(user_id):
    form = json_form(UserStatusForm, json_payload())
    user = _service().update_status(g.actor, user_id, is_active=form.is_active.data)
    return jsonify({"data": user.to_dict()})


@users_bp.route("/<int:user_id>", methods=["DELETE"])
@requires_actor
def delete_user(user_id):
    _service().delete_user(g.actor, user_id)
    return "", 204
