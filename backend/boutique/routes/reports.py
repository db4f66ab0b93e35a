# Overview: Flask API routes for the dashboard and period sales reports.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_permission
from ..services import reporting_service
from ..services.reporting_service import ReportError

reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/dashboard/stats")
@require_auth
@require_permission("VIEW_DASHBOARD")
def dashboard_stats_route():
    try:
        return jsonify(reporting_service.dashboard_stats())
    except Exception:
        current_app.logger.exception("Failed to compute dashboard stats")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/reports/sales")
@require_auth
@require_permission("VIEW_REPORTS")
def sales_report_route():
    period = (request.args.get("period") or "today").lower()
    try:
        return jsonify(reporting_service.sales_report(period))
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build sales report")
        return jsonify({"error": "Internal server error"}), 500
