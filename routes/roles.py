"""Role administration endpoints."""
from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify

from forms import RoleForm, RoleUpdateForm
from routes import cleaned_fields, json_form, json_payload, register_error_handlers, requires_actor
from services.role_service import RoleService

roles_bp = Blueprint("roles", __name__, url_prefix="/roles")
register_error_handlers(roles_bp)


def _service() -> RoleService:
    return RoleService(system_roles=current_app.config["SYSTEM_ROLE_NAMES"])


@roles_bp.route("", methods=["GET"])
def list_roles():
    roles = _service().list_roles()
    return jsonify({"data": [role.to_dict() for role in roles]})


@roles_bp.route("", methods=["POST"])
@requires_actor
def create_role():
    form = json_form(RoleForm, json_payload())
    role = _service().create_role(g.actor, name=form.name.data, description=form.description.data or None)
    return jsonify({"data": role.to_dict()}), 201


@roles_bp.route("/<int:role_id>", methods=["GET"])
def get_role(role_id):
    return jsonify({"data": _service().get_role(role_id).to_dict()})


@roles_bp.route("/<int:role_id>", methods=["PATCH", "PUT"])
@requires_actor
def update_role(role_id):
    payload = json_payload()
    form = json_form(RoleUpdateForm, payload)
    role = _service().update_role(g.actor, role_id, cleaned_fields(form, payload))
    return jsonify({"data": role.to_dict()})


@roles_bp.route("/<int:role_id>", methods=["DELETE"])
@requires_actor
def delete_role(role_id):
    _service().delete_role(g.actor, role_id)
    return "", 204
