# Overview: Flask API routes for promo codes; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify

from ..models import PromoCode
from ..services import promotions_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_promo_code,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_permission
from ..money import money_str

PROMO_POLICY = ModelValidationPolicy(
    writable_fields=set(promotions_service.PROMO_MUTABLE_FIELDS),
    required_on_create={"code", "discount_type", "value"},
)

promo_codes_bp = Blueprint("promo_codes", __name__, url_prefix="/api/promo-codes")


@promo_codes_bp.get("")
@require_auth
@require_permission("MANAGE_PROMOS")
def list_promo_codes_route():
    active_only = request.args.get("active_only", "false").lower() == "true"
    return jsonify([p.to_dict() for p in promotions_service.list_promo_codes(active_only)])


@promo_codes_bp.get("/validate")
@require_auth
@require_permission("VALIDATE_PROMO")
def validate_promo_code_route():
    """
    Look up an active code for the checkout screen.

    With ?subtotal= the response also carries the discount it would give.
    """
    code = (request.args.get("code") or "").strip()
    if not code:
        return jsonify({"error": "Promo code is required"}), 400

    promo = promotions_service.get_active_by_code(code)
    if not promo:
        return jsonify({"error": "Invalid or inactive promo code"}), 404

    result = promo.to_dict()
    subtotal = request.args.get("subtotal")
    if subtotal:
        try:
            result["discount_amount"] = money_str(promotions_service.compute_discount(promo, subtotal))
        except ArithmeticError:
            return jsonify({"error": "subtotal must be a decimal amount"}), 400
    return jsonify(result)


@promo_codes_bp.get("/<int:promo_id>")
@require_auth
@require_permission("MANAGE_PROMOS")
def get_promo_code_route(promo_id: int):
    promo = promotions_service.get_promo_code(promo_id)
    if not promo:
        return jsonify({"error": "Promo code not found"}), 404
    return jsonify(promo.to_dict())


@promo_codes_bp.post("")
@require_auth
@require_permission("MANAGE_PROMOS")
def create_promo_code_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=PromoCode, payload=payload, policy=PROMO_POLICY, partial=False)
        enforce_rules_promo_code(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        promo = promotions_service.create_promo_code(patch=patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify(promo.to_dict()), 201


@promo_codes_bp.patch("/<int:promo_id>")
@require_auth
@require_permission("MANAGE_PROMOS")
def update_promo_code_route(promo_id: int):
    existing = promotions_service.get_promo_code(promo_id)
    if not existing:
        return jsonify({"error": "Promo code not found"}), 404

    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=PromoCode, payload=payload, policy=PROMO_POLICY, partial=True)
        enforce_rules_promo_code(patch, existing_type=existing.discount_type)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        promo = promotions_service.update_promo_code(promo_id=promo_id, patch=patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify(promo.to_dict())


@promo_codes_bp.delete("/<int:promo_id>")
@require_auth
@require_permission("MANAGE_PROMOS")
def delete_promo_code_route(promo_id: int):
    if not promotions_service.delete_promo_code(promo_id=promo_id):
        return jsonify({"error": "Promo code not found"}), 404
    return "", 204
