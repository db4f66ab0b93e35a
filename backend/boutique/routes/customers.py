# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..models import Customer
from ..services import customers_service, sales_service
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, ConflictError
from ..decorators import require_auth, require_permission

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone"},
    required_on_create={"name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def list_customers_route():
    return jsonify([c.to_dict() for c in customers_service.list_customers()])


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def get_customer_route(customer_id: int):
    customer = customers_service.get_customer(customer_id)
    if not customer:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify(customer.to_dict())


@customers_bp.get("/<int:customer_id>/sales")
@require_auth
@require_permission("VIEW_SALES")
def customer_sales_route(customer_id: int):
    if not customers_service.get_customer(customer_id):
        return jsonify({"error": "Customer not found"}), 404
    return jsonify([s.to_dict() for s in sales_service.get_sales_by_customer(customer_id)])


@customers_bp.post("")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def create_customer_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    customer = customers_service.create_customer(patch=patch)
    return jsonify(customer.to_dict()), 201


@customers_bp.patch("/<int:customer_id>")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def update_customer_route(customer_id: int):
    """Profile edits only; points move through sales and refunds."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    customer = customers_service.update_customer(customer_id=customer_id, patch=patch)
    if not customer:
        return jsonify({"error": "Customer not found"}), 404
    return jsonify(customer.to_dict())


@customers_bp.delete("/<int:customer_id>")
@require_auth
@require_permission("MANAGE_CUSTOMERS")
def delete_customer_route(customer_id: int):
    try:
        deleted = customers_service.delete_customer(customer_id=customer_id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    if not deleted:
        return jsonify({"error": "Customer not found"}), 404
    return "", 204
