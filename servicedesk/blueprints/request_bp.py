"""
University Service Desk
Request Blueprint — service request CRUD, status changes and assignment.

Endpoints:
    POST   /api/requests                  create (any authenticated actor)
    GET    /api/requests                  list (students: own only)
    GET    /api/requests/<id>             detail
    PUT    /api/requests/<id>             edit (owner, Pending only)
    DELETE /api/requests/<id>             delete (owner, Pending only)
    PUT    /api/requests/<id>/status      change status (admin)
    PUT    /api/requests/<id>/assign      assign department (admin)
    GET    /api/requests/<id>/history     status history (owner or admin)

Bodies are shape-checked here before the service layer sees them.
Services flush; this module owns commit.
"""

import logging

from flask import Blueprint, jsonify, request

from servicedesk.blueprints import install_error_handlers
from servicedesk.middleware.identity import current_actor, require_role
from servicedesk.models import db
from servicedesk.services import request_lifecycle, request_query, request_store
from servicedesk.services.assignment import assign_department
from servicedesk.validators.request_validator import (
    ensure_valid,
    validate_assignment,
    validate_create,
    validate_status,
    validate_update,
)

logger = logging.getLogger(__name__)

request_bp = Blueprint("requests", __name__, url_prefix="/api/requests")
install_error_handlers(request_bp)


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@request_bp.route("", methods=["POST"])
def create_request():
    """Create a request owned by the caller. Body: {title, description, category, priority?}"""
    actor_id, _ = current_actor()
    data = _body()
    ensure_valid(validate_create(data))

    req = request_lifecycle.create_request(actor_id, data)
    db.session.commit()
    return jsonify(request_store.populate_request(req)), 201


@request_bp.route("", methods=["GET"])
def list_requests():
    """List requests. Query params: status, category, priority, department (studentId for admins)."""
    actor_id, role = current_actor()
    return jsonify(request_query.list_requests(actor_id, role, request.args.to_dict())), 200


@request_bp.route("/<int:request_id>", methods=["GET"])
def get_request(request_id):
    actor_id, role = current_actor()
    return jsonify(request_query.get_request(request_id, actor_id, role)), 200


@request_bp.route("/<int:request_id>", methods=["PUT"])
def update_request(request_id):
    """Owner edit while Pending. Body: {title?, description?, category?, priority?}"""
    actor_id, _ = current_actor()
    data = _body()
    ensure_valid(validate_update(data))

    req = request_lifecycle.edit_request(request_id, actor_id, data)
    db.session.commit()
    return jsonify(request_store.populate_request(req)), 200


@request_bp.route("/<int:request_id>", methods=["DELETE"])
def delete_request(request_id):
    actor_id, _ = current_actor()
    request_lifecycle.delete_request(request_id, actor_id)
    db.session.commit()
    return jsonify({"message": "Request deleted successfully"}), 200


@request_bp.route("/<int:request_id>/status", methods=["PUT"])
@require_role("admin")
def update_status(request_id):
    """Body: {status, comment?}"""
    actor_id, role = current_actor()
    data = _body()
    ensure_valid(validate_status(data))

    req = request_lifecycle.change_status(
        request_id, actor_id, role, data["status"], comment=data.get("comment"),
    )
    db.session.commit()
    return jsonify(request_store.populate_request(req, include_history_actors=True)), 200


@request_bp.route("/<int:request_id>/assign", methods=["PUT"])
@require_role("admin")
def assign(request_id):
    """Body: {department}"""
    actor_id, role = current_actor()
    data = _body()
    ensure_valid(validate_assignment(data))

    req = assign_department(request_id, actor_id, role, data["department"])
    db.session.commit()
    return jsonify(request_store.populate_request(req)), 200


@request_bp.route("/<int:request_id>/history", methods=["GET"])
def get_history(request_id):
    actor_id, role = current_actor()
    return jsonify(request_lifecycle.get_history(request_id, actor_id, role)), 200
