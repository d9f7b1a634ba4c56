"""Project endpoints."""
from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from forms import ProjectForm, ProjectQueryForm, ProjectUpdateForm
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
from services.project_service import ProjectService

projects_bp = Blueprint("projects", __name__, url_prefix="/projects")
register_error_handlers(projects_bp)


def _service() -> ProjectService:
    return ProjectService()


@projects_bp.route("", methods=["GET"])
def list_projects():
    form = query_form(ProjectQueryForm)
    page = _service().list_projects(
        **filters_from(form, ["owner_id"]),
        **form.pagination(),
    )
    return page_response(page)


@projects_bp.route("", methods=["POST"])
@requires_actor
def create_project():
    form = json_form(ProjectForm, json_payload())
    project = _service().create_project(
        g.actor,
        name=form.name.data,
        description=form.description.data or None,
    )
    return jsonify({"data": project.to_dict()}), 201


@projects_bp.route("/<int:project_id>", methods=["GET"])
def get_project(project_id):
    service = _service()
    if request.args.get("include") == "tasks":
        project = service.get_project_with_tasks(project_id)
        return jsonify({"data": project.to_dict(include_tasks=True)})
    return jsonify({"data": service.get_project(project_id).to_dict()})


@projects_bp.route("/<int:project_id>", methods=["PATCH", "PUT"])
@requires_actor
def update_project(project_id):
    payload = json_payload()
    form = json_form(ProjectUpdateForm, payload)
    project = _service().update_project(g.actor, project_id, cleaned_fields(form, payload))
    return jsonify({"data": project.to_dict()})


@projects_bp.route("/<int:project_id>", methods=["DELETE"])
@requires_actor
def delete_project(project_id):
    _service().delete_project(g.actor, project_id)
    return "", 204
