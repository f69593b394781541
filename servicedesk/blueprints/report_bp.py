"""
University Service Desk
Reporting Blueprint — admin dashboards over the request collection.

All endpoints accept optional ``startDate`` / ``endDate`` query params
(ISO-8601, inclusive, applied to request creation time).
"""

from flask import Blueprint, jsonify, request

from servicedesk.blueprints import install_error_handlers
from servicedesk.middleware.identity import require_role
from servicedesk.services.report_engine import ReportEngine

report_bp = Blueprint("reports", __name__, url_prefix="/api/reports")
install_error_handlers(report_bp)


def _window():
    return request.args.get("startDate") or None, request.args.get("endDate") or None


@report_bp.route("/overview", methods=["GET"])
@require_role("admin")
def overview():
    """GET /api/reports/overview — request counts per status."""
    return jsonify(ReportEngine.overview(*_window())), 200


@report_bp.route("/by-department", methods=["GET"])
@require_role("admin")
def by_department():
    """GET /api/reports/by-department — assigned departments, busiest first."""
    return jsonify(ReportEngine.by_department(*_window())), 200


@report_bp.route("/by-category", methods=["GET"])
@require_role("admin")
def by_category():
    return jsonify(ReportEngine.by_category(*_window())), 200


@report_bp.route("/by-priority", methods=["GET"])
@require_role("admin")
def by_priority():
    """GET /api/reports/by-priority — High, Medium, Low in that order."""
    return jsonify(ReportEngine.by_priority(*_window())), 200


@report_bp.route("/comprehensive", methods=["GET"])
@require_role("admin")
def comprehensive():
    return jsonify(ReportEngine.comprehensive(*_window())), 200
