"""sysview.server.app - Flask app factory for the reference element backend.

A thin REST wrapper: every route delegates to an ``ElementRepository``
and every failure is a taxonomy exception rendered as the error
envelope ``{statusCategory, title, detail, fieldErrors}``.

Routes (all under ``/api/v1``):

- ``GET    /health``
- ``POST   /elements``           create ``{typeTag, attributes}``
- ``GET    /elements``           page, size, type, sort, filter, search
- ``GET    /elements/<id>``
- ``PATCH  /elements/<id>``      partial update
- ``DELETE /elements/<id>``      204; 409 while still referenced
- ``POST   /validation/static``   run the static model rules
- ``GET    /validation/rules``    list the rules
- ``GET    /projects/<pid>/export``
- ``POST   /projects/<pid>/import``

Elements are scoped by the ``projectId`` query parameter; each project
gets its own repository.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Mapping

from flask import Flask, jsonify, request
from flask_cors import CORS

from sysview.errors import HTTP_STATUS, StoreError, ValidationFailure
from sysview.query.pagination import QueryRequest
from sysview.server.repository import ElementRepository
from sysview.validation import RESULT_VERSION, RULES, validate_elements

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_PROJECT = "default"

_ENVELOPE_KEYS = ("typeTag", "eClass", "attributes")

EXPORT_VERSION = "1.0"


def create_app(
    repository: ElementRepository | None = None,
    config: Mapping[str, Any] | None = None,
) -> Flask:
    """Create the Flask application with the element REST API.

    Args:
        repository: Repository for the default project; a fresh one if omitted.
        config: sysview configuration dict (only ``backend.project_id`` is read).

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    CORS(app)

    default_project = DEFAULT_PROJECT
    if config is not None:
        default_project = str(config.get("backend", {}).get("project_id") or DEFAULT_PROJECT)

    if repository is None:
        repository = ElementRepository()

    _state: dict[str, Any] = {
        "projects": {default_project: repository},
        "default_project": default_project,
        "start_time": time.time(),
    }
    app.extensions["sysview"] = _state
    projects_lock = threading.Lock()

    def _project(project_id: str) -> ElementRepository:
        projects: dict[str, ElementRepository] = _state["projects"]
        with projects_lock:
            if project_id not in projects:
                logger.info("opening new project %s", project_id)
                projects[project_id] = ElementRepository()
            return projects[project_id]

    def _repository() -> ElementRepository:
        return _project(request.args.get("projectId") or _state["default_project"])

    def _json_body() -> Any:
        body = request.get_json(silent=True)
        if body is None:
            raise ValidationFailure(
                "Validation failed", field_errors={"body": "request body must be JSON"}
            )
        return body

    # Disable browser caching; the data changes under the client constantly.
    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    @app.errorhandler(StoreError)
    def _store_error(error: StoreError):
        status = error.status_code or HTTP_STATUS[error.category]
        logger.debug("%s %s -> %s %s", request.method, request.path, status, error)
        return jsonify(error.to_envelope()), status

    # ─────────────────────────────────────────────────────────────────
    # Status
    # ─────────────────────────────────────────────────────────────────

    @app.route(f"{API_PREFIX}/health")
    def api_health():
        """GET /api/v1/health - Liveness plus element count."""
        return jsonify(
            {
                "status": "ok",
                "elementCount": len(_repository()),
                "uptime": round(time.time() - _state["start_time"], 3),
            }
        )

    # ─────────────────────────────────────────────────────────────────
    # Elements
    # ─────────────────────────────────────────────────────────────────

    @app.route(f"{API_PREFIX}/elements", methods=["POST"])
    def api_create():
        """POST /api/v1/elements - Create an element.

        Accepts ``{typeTag, attributes}`` or the flat ``{eClass, ...}`` shape.
        """
        body = _json_body()
        if not isinstance(body, Mapping):
            raise ValidationFailure(
                "Validation failed", field_errors={"body": "request body must be an object"}
            )
        type_tag = body.get("typeTag") or body.get("eClass")
        if "attributes" in body:
            attributes = body["attributes"]
        else:
            attributes = {k: v for k, v in body.items() if k not in _ENVELOPE_KEYS}
        record = _repository().create(type_tag, attributes)
        return jsonify(record.to_dict()), 201

    @app.route(f"{API_PREFIX}/elements", methods=["GET"])
    def api_list():
        """GET /api/v1/elements - One page of elements.

        Query parameters:
            page: Zero-based page (default 0)
            size: Page size, 1..200 (default 50)
            type: Restrict to one type tag
            sort: ``field,direction``; repeatable
            filter: ``field:value``; repeatable
            search: Case-insensitive text search
        """
        params: dict[str, Any] = {
            key: request.args.get(key)
            for key in ("page", "size", "type", "search")
            if request.args.get(key) is not None
        }
        params["sort"] = request.args.getlist("sort")
        params["filter"] = request.args.getlist("filter")
        page = _repository().query(QueryRequest.from_params(params))
        return jsonify(page.to_dict())

    @app.route(f"{API_PREFIX}/elements/<element_id>", methods=["GET"])
    def api_get(element_id: str):
        """GET /api/v1/elements/<id> - One element."""
        return jsonify(_repository().get(element_id).to_dict())

    @app.route(f"{API_PREFIX}/elements/<element_id>", methods=["PATCH"])
    def api_update(element_id: str):
        """PATCH /api/v1/elements/<id> - Merge changed attributes."""
        body = _json_body()
        if isinstance(body, Mapping) and isinstance(body.get("attributes"), Mapping):
            body = body["attributes"]
        return jsonify(_repository().update(element_id, body).to_dict())

    @app.route(f"{API_PREFIX}/elements/<element_id>", methods=["DELETE"])
    def api_delete(element_id: str):
        """DELETE /api/v1/elements/<id> - Remove; unknown ids are fine."""
        _repository().delete(element_id)
        return "", 204

    # ─────────────────────────────────────────────────────────────────
    # Validation
    # ─────────────────────────────────────────────────────────────────

    @app.route(f"{API_PREFIX}/validation/static", methods=["POST"])
    def api_validate():
        """POST /api/v1/validation/static - Run every static rule on the project."""
        repository = _repository()
        elements = {record.id: record for record in repository.iter_elements()}
        result = validate_elements(elements)
        logger.info(
            "validated %d element(s): %d violation(s)", len(elements), len(result.violations)
        )
        return jsonify(result.to_dict())

    @app.route(f"{API_PREFIX}/validation/rules")
    def api_rules():
        """GET /api/v1/validation/rules - Available rules."""
        return jsonify(
            {
                "rules": [rule.to_dict() for rule in RULES],
                "version": RESULT_VERSION,
                "totalRules": len(RULES),
            }
        )

    # ─────────────────────────────────────────────────────────────────
    # Projects
    # ─────────────────────────────────────────────────────────────────

    @app.route(f"{API_PREFIX}/projects/<project_id>/export")
    def api_export(project_id: str):
        """GET /api/v1/projects/<pid>/export - All elements as a JSON download."""
        elements = _project(project_id).export_elements()
        response = jsonify(
            {
                "projectId": project_id,
                "exportedAt": datetime.now(timezone.utc).isoformat(),
                "version": EXPORT_VERSION,
                "elementCount": len(elements),
                "elements": elements,
            }
        )
        response.headers["Content-Disposition"] = (
            f'attachment; filename="project-{project_id}.json"'
        )
        return response

    @app.route(f"{API_PREFIX}/projects/<project_id>/import", methods=["POST"])
    def api_import(project_id: str):
        """POST /api/v1/projects/<pid>/import - Add exported elements.

        Accepts an export document ``{elements: [...]}`` or a bare list.
        """
        body = _json_body()
        payloads = body.get("elements") if isinstance(body, Mapping) else body
        records = _project(project_id).import_elements(payloads)
        return jsonify(
            {
                "projectId": project_id,
                "imported": len(records),
                "elements": [record.to_dict() for record in records],
            }
        )

    return app


__all__ = ["API_PREFIX", "DEFAULT_PROJECT", "EXPORT_VERSION", "create_app"]
