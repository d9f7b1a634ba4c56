"""Shared helpers for route blueprints."""

from __future__ import annotations

from functools import wraps
from typing import Any, Dict, Iterable, Type

from flask import Blueprint, abort, current_app, g, jsonify, request
from werkzeug.datastructures import MultiDict

from forms import JSONForm, ListQueryForm
from services.authorization import Actor
from services.errors import ServiceError
from utils.pagination import Page

__all__ = [
    "cleaned_fields",
    "current_actor",
    "error_response",
    "filters_from",
    "json_form",
    "json_payload",
    "page_response",
    "query_form",
    "register_error_handlers",
    "requires_actor",
]

ACTOR_ID_HEADER = "X-User-Id"
ACTOR_ROLES_HEADER = "X-User-Roles"


def error_response(code: str, message: str, status: int, details: Dict[str, Any] | None = None):
    payload: Dict[str, Any] = {"code": code, "message": message}
    if details:
        payload["details"] = details
    return jsonify({"error": payload}), status


def current_actor() -> Actor | None:
    """Build the caller from the gateway headers, or None when absent."""
    raw_id = request.headers.get(ACTOR_ID_HEADER, "").strip()
    if not raw_id:
        return None
    try:
        actor_id = int(raw_id)
    except ValueError:
        return None
    raw_roles = request.headers.get(ACTOR_ROLES_HEADER, "")
    roles = (role.strip().upper() for role in raw_roles.split(","))
    return Actor.of(actor_id, (role for role in roles if role))


def requires_actor(f):
    """Reject the request with 401 unless the caller identified itself."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        actor = current_actor()
        if actor is None:
            abort(401)
        g.actor = actor
        return f(*args, **kwargs)

    return decorated_function


def json_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        abort(400, description="Request body must be a JSON object.")
    return payload


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def json_form(form_cls: Type[JSONForm], payload: Dict[str, Any]) -> JSONForm:
    """Validate a JSON payload with ``form_cls``; aborts with 400 on errors."""
    formdata = MultiDict()
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                formdata.add(key, _as_text(item))
        else:
            formdata.add(key, _as_text(value))
    form = form_cls(formdata=formdata)
    if not form.validate():
        abort(400, description=form.errors)
    return form


def query_form(form_cls: Type[ListQueryForm]) -> ListQueryForm:
    form = form_cls(formdata=request.args)
    if not form.validate():
        abort(400, description=form.errors)
    return form


def cleaned_fields(form: JSONForm, payload: Dict[str, Any], exclude: Iterable[str] = ()) -> Dict[str, Any]:
    """Return validated values for the keys actually sent; null clears a field."""
    skipped = set(exclude)
    fields = {}
    for key in payload:
        if key in skipped or key not in form._fields:
            continue
        fields[key] = None if payload[key] is None else form[key].data
    return fields


def filters_from(form: ListQueryForm, names: Iterable[str]) -> Dict[str, Any]:
    """Return the supplied query filters, leaving out blank ones."""
    values = {}
    for name in names:
        value = form[name].data
        if value is None or value == "":
            continue
        values[name] = value
    return values


def page_response(page: Page, serialize=None):
    serialize = serialize or (lambda item: item.to_dict())
    return jsonify({"data": [serialize(item) for item in page.items], "meta": page.meta()})


def register_error_handlers(bp: Blueprint) -> None:
    """Map service failures and aborts raised in ``bp`` to JSON errors."""

    @bp.errorhandler(ServiceError)
    def handle_service_error(error: ServiceError):
        if error.http_status >= 500:
            current_app.logger.error("Request %s %s failed: %s", request.method, request.path, error.message)
        return error_response(error.code, error.message, error.http_status)

    @bp.errorhandler(400)
    def handle_bad_request(error):
        description = error.description
        if isinstance(description, dict):
            return error_response("VALIDATION_ERROR", "Request validation failed.", 400, description)
        return error_response("VALIDATION_ERROR", str(description), 400)

    @bp.errorhandler(401)
    def handle_unauthorized(error):
        return error_response(
            "UNAUTHORIZED",
            f"The {ACTOR_ID_HEADER} header is required.",
            401,
        )
