# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales routes: checkout, history, refund, import and export.

The operator on a new sale is always the authenticated user; any user_id
in the request body is overwritten.
"""

from datetime import datetime

from flask import Blueprint, request, jsonify, current_app, g

from ..services import sales_service, export_service
from ..services.sales_service import SaleError
from ..validation import ValidationError
from ..decorators import require_auth, require_permission
from boutique.time_utils import parse_iso_datetime, utcnow
from .uploads import rows_from_request, file_response


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

RECENT_SALES_DEFAULT = 10
RECENT_SALES_MAX = 100


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    """All sales, newest first. Optional ?start=&end= (ISO-8601) bound created_at."""
    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "start and end must be ISO-8601 dates"}), 400

    if start or end:
        sales = sales_service.get_sales_by_period(start or datetime.min, end or utcnow())
    else:
        sales = sales_service.list_sales()
    return jsonify([s.to_dict() for s in sales])


@sales_bp.get("/recent")
@require_auth
@require_permission("VIEW_SALES")
def recent_sales_route():
    limit = request.args.get("limit", RECENT_SALES_DEFAULT, type=int)
    limit = max(1, min(limit, RECENT_SALES_MAX))
    return jsonify([s.to_dict() for s in sales_service.get_recent_sales(limit)])


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("VIEW_SALES")
def get_sale_route(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify(sale.to_dict(include_items=True))


@sales_bp.post("")
@require_auth
@require_permission("CREATE_SALE")
def create_sale_route():
    """
    Check out a cart.

    Body: {"sale": {...header...}, "items": [{...}, ...]}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("sale"), dict):
        return jsonify({"error": "sale data is required"}), 400
    items = data.get("items")
    if not isinstance(items, list) or not items:
        return jsonify({"error": "items must be a non-empty array"}), 400

    header = dict(data["sale"])
    header["user_id"] = g.current_user.id

    try:
        sale = sales_service.create_sale(header, items)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Sale %s created by user_id=%s total=%s items=%s",
        sale.id, g.current_user.id, sale.total, len(items),
    )
    return jsonify(sale.to_dict(include_items=True)), 201


@sales_bp.post("/<int:sale_id>/refund")
@require_auth
@require_permission("REFUND_SALE")
def refund_sale_route(sale_id: int):
    try:
        sale = sales_service.refund_sale(sale_id)
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to refund sale")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Sale %s refunded by user_id=%s", sale.id, g.current_user.id)
    return jsonify(sale.to_dict(include_items=True)), 200


@sales_bp.post("/import")
@require_auth
@require_permission("IMPORT_SALES")
def import_sales_route():
    try:
        rows = rows_from_request(sales_service.SALE_IMPORT_HEADERS, json_key="sales")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = sales_service.import_sales(rows, user_id=g.current_user.id)
    except Exception:
        current_app.logger.exception("Failed to import sales")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Imported %s sales (user_id=%s)", result["imported"], g.current_user.id)
    return jsonify(result), 200


@sales_bp.get("/export")
@require_auth
@require_permission("VIEW_SALES")
def export_sales_route():
    fmt = (request.args.get("format") or "csv").lower()
    if fmt not in export_service.EXPORT_FORMATS:
        return jsonify({"error": f"format must be one of: {', '.join(export_service.EXPORT_FORMATS)}"}), 400

    try:
        rows = export_service.rows_for_sales(sales_service.list_sales())
        body, mimetype, extension = export_service.render(
            rows, export_service.SALE_EXPORT_HEADERS, fmt, "Sales",
        )
    except Exception:
        current_app.logger.exception("Failed to export sales")
        return jsonify({"error": "Internal server error"}), 500

    return file_response(body, mimetype, f"sales-{utcnow():%Y%m%d}.{extension}")
