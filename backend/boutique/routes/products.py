# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

- Read operations require VIEW_PRODUCTS
- Write operations require MANAGE_PRODUCTS
- Barcodes and label sheets require PRINT_BARCODES
"""
from flask import Blueprint, request, jsonify, current_app, Response

from ..extensions import db
from ..models import Product, PaperSize
from ..services import products_service, barcode_service
from ..services.barcode_service import BarcodeError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_permission
from .uploads import file_response

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"name", "category", "price"},
)

MAX_GENERATED_CODES = 100

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCTS")
def list_products_route():
    return jsonify([p.to_dict() for p in products_service.list_products()])


@products_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_PRODUCTS")
def low_stock_route():
    return jsonify([p.to_dict() for p in products_service.get_low_stock_products()])


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_PRODUCTS")
def get_product_route(product_id: int):
    product = products_service.get_product(product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(product.to_dict())


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    patch.setdefault("low_stock_threshold", current_app.config["LOW_STOCK_DEFAULT_THRESHOLD"])

    try:
        created = products_service.create_product(patch=patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify(created.to_dict()), 201


@products_bp.patch("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    if not updated:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(updated.to_dict())


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    try:
        deleted = products_service.delete_product(product_id=product_id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    if not deleted:
        return jsonify({"error": "Product not found"}), 404
    return "", 204


@products_bp.post("/generate-codes")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def generate_codes_route():
    """Unique 5-digit codes for new products. Body: {"count": n} (default 1)."""
    data = request.get_json(silent=True) or {}
    count = data.get("count", 1)
    if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= MAX_GENERATED_CODES:
        return jsonify({"error": f"count must be an integer between 1 and {MAX_GENERATED_CODES}"}), 400

    try:
        codes = products_service.generate_codes(count)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify({"codes": codes})


@products_bp.get("/<int:product_id>/barcode.svg")
@require_auth
@require_permission("PRINT_BARCODES")
def product_barcode_route(product_id: int):
    product = products_service.get_product(product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404

    symbology = request.args.get("symbology") or product.barcode_symbology
    try:
        svg = barcode_service.render_svg(barcode_service.product_code(product), symbology)
    except BarcodeError as e:
        return jsonify({"error": str(e)}), 400
    return Response(svg, mimetype="image/svg+xml")


@products_bp.post("/labels")
@require_auth
@require_permission("PRINT_BARCODES")
def labels_route():
    """
    Label sheet PDF.

    Body: {"product_ids": [..], "paper_size_id": id, "copies": n}
    """
    data = request.get_json(silent=True) or {}
    product_ids = data.get("product_ids")
    if not isinstance(product_ids, list) or not product_ids:
        return jsonify({"error": "product_ids must be a non-empty array"}), 400
    if not all(isinstance(pid, int) and not isinstance(pid, bool) for pid in product_ids):
        return jsonify({"error": "product_ids must contain integers"}), 400

    paper_size = db.session.get(PaperSize, data.get("paper_size_id")) if data.get("paper_size_id") else None
    if not paper_size:
        return jsonify({"error": "Paper size not found"}), 404

    products = db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    by_id = {p.id: p for p in products}
    missing = [pid for pid in product_ids if pid not in by_id]
    if missing:
        return jsonify({"error": f"Product(s) not found: {', '.join(str(m) for m in missing)}"}), 404

    copies = data.get("copies", 1)
    if isinstance(copies, bool) or not isinstance(copies, int):
        return jsonify({"error": "copies must be an integer"}), 400

    try:
        pdf = barcode_service.label_sheet_pdf([by_id[pid] for pid in product_ids], paper_size, copies)
    except BarcodeError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to render label sheet")
        return jsonify({"error": "Internal server error"}), 500

    return file_response(pdf, "application/pdf", "labels.pdf")
