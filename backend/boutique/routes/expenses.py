# Overview: Flask API routes for expenses; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..models import Expense
from ..services import expense_service, export_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_expense,
    ValidationError,
)
from ..decorators import require_auth, require_permission
from boutique.time_utils import parse_iso_datetime, utcnow
from .uploads import rows_from_request, file_response

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields=set(expense_service.EXPENSE_MUTABLE_FIELDS),
    required_on_create={"category", "amount"},
)

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


def _range_args():
    try:
        start = parse_iso_datetime(request.args.get("start"))
        end = parse_iso_datetime(request.args.get("end"))
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 dates")
    return start, end


@expenses_bp.get("")
@require_auth
@require_permission("VIEW_EXPENSES")
def list_expenses_route():
    try:
        start, end = _range_args()
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify([e.to_dict() for e in expense_service.list_expenses(start, end)])


@expenses_bp.get("/<int:expense_id>")
@require_auth
@require_permission("VIEW_EXPENSES")
def get_expense_route(expense_id: int):
    expense = expense_service.get_expense(expense_id)
    if not expense:
        return jsonify({"error": "Expense not found"}), 404
    return jsonify(expense.to_dict())


@expenses_bp.post("")
@require_auth
@require_permission("MANAGE_EXPENSES")
def create_expense_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    expense = expense_service.create_expense(patch=patch, user_id=g.current_user.id)
    return jsonify(expense.to_dict()), 201


@expenses_bp.patch("/<int:expense_id>")
@require_auth
@require_permission("MANAGE_EXPENSES")
def update_expense_route(expense_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=True)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    expense = expense_service.update_expense(expense_id=expense_id, patch=patch)
    if not expense:
        return jsonify({"error": "Expense not found"}), 404
    return jsonify(expense.to_dict())


@expenses_bp.delete("/<int:expense_id>")
@require_auth
@require_permission("MANAGE_EXPENSES")
def delete_expense_route(expense_id: int):
    if not expense_service.delete_expense(expense_id=expense_id):
        return jsonify({"error": "Expense not found"}), 404
    return "", 204


@expenses_bp.post("/import")
@require_auth
@require_permission("MANAGE_EXPENSES")
def import_expenses_route():
    try:
        rows = rows_from_request(expense_service.EXPENSE_IMPORT_HEADERS, json_key="expenses")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        result = expense_service.import_expenses(rows, user_id=g.current_user.id)
    except Exception:
        current_app.logger.exception("Failed to import expenses")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result), 200


@expenses_bp.get("/export")
@require_auth
@require_permission("VIEW_EXPENSES")
def export_expenses_route():
    fmt = (request.args.get("format") or "csv").lower()
    if fmt not in export_service.EXPORT_FORMATS:
        return jsonify({"error": f"format must be one of: {', '.join(export_service.EXPORT_FORMATS)}"}), 400

    try:
        start, end = _range_args()
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        rows = export_service.rows_for_expenses(expense_service.list_expenses(start, end))
        body, mimetype, extension = export_service.render(
            rows, export_service.EXPENSE_EXPORT_HEADERS, fmt, "Expenses",
        )
    except Exception:
        current_app.logger.exception("Failed to export expenses")
        return jsonify({"error": "Internal server error"}), 500

    return file_response(body, mimetype, f"expenses-{utcnow():%Y%m%d}.{extension}")
