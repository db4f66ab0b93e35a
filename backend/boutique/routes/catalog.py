# Overview: Flask API routes for lookup tables (categories, brands, units, paper sizes).

"""
The four lookup tables share identical CRUD endpoints, registered once per
table on the same blueprint:

    GET    /api/<table>
    GET    /api/<table>/<id>
    POST   /api/<table>
    PATCH  /api/<table>/<id>
    DELETE /api/<table>/<id>
"""

from flask import Blueprint, request, jsonify

from ..models import Category, Brand, Unit, PaperSize
from ..services import catalog_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_paper_size,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_permission

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")

CATALOG_POLICIES = {
    Category: ModelValidationPolicy(writable_fields={"name", "description"}, required_on_create={"name"}),
    Brand: ModelValidationPolicy(writable_fields={"name", "description"}, required_on_create={"name"}),
    Unit: ModelValidationPolicy(writable_fields={"name", "short_name"}, required_on_create={"name", "short_name"}),
    PaperSize: ModelValidationPolicy(
        writable_fields={"name", "width_mm", "height_mm", "is_active"},
        required_on_create={"name", "width_mm", "height_mm"},
    ),
}

CATALOG_RULES = {
    PaperSize: enforce_rules_paper_size,
}


def _register_table(slug: str, model) -> None:
    policy = CATALOG_POLICIES[model]
    rules = CATALOG_RULES.get(model)
    label = model.__name__
    endpoint = slug.replace("-", "_")

    def _validated(partial: bool) -> dict:
        payload = request.get_json(silent=True) or {}
        patch = validate_payload(model=model, payload=payload, policy=policy, partial=partial)
        if rules:
            rules(patch)
        return patch

    @require_auth
    @require_permission("VIEW_CATALOG")
    def list_route():
        return jsonify([e.to_dict() for e in catalog_service.list_entries(model)])

    @require_auth
    @require_permission("VIEW_CATALOG")
    def get_route(entry_id: int):
        entry = catalog_service.get_entry(model, entry_id)
        if not entry:
            return jsonify({"error": f"{label} not found"}), 404
        return jsonify(entry.to_dict())

    @require_auth
    @require_permission("MANAGE_CATALOG")
    def create_route():
        try:
            patch = _validated(partial=False)
            entry = catalog_service.create_entry(model, patch=patch)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except ConflictError as e:
            return jsonify({"error": str(e)}), 409
        return jsonify(entry.to_dict()), 201

    @require_auth
    @require_permission("MANAGE_CATALOG")
    def update_route(entry_id: int):
        try:
            patch = _validated(partial=True)
            entry = catalog_service.update_entry(model, entry_id, patch=patch)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except ConflictError as e:
            return jsonify({"error": str(e)}), 409
        if not entry:
            return jsonify({"error": f"{label} not found"}), 404
        return jsonify(entry.to_dict())

    @require_auth
    @require_permission("MANAGE_CATALOG")
    def delete_route(entry_id: int):
        if not catalog_service.delete_entry(model, entry_id):
            return jsonify({"error": f"{label} not found"}), 404
        return "", 204

    catalog_bp.add_url_rule(f"/{slug}", f"list_{endpoint}", list_route, methods=["GET"])
    catalog_bp.add_url_rule(f"/{slug}/<int:entry_id>", f"get_{endpoint}", get_route, methods=["GET"])
    catalog_bp.add_url_rule(f"/{slug}", f"create_{endpoint}", create_route, methods=["POST"])
    catalog_bp.add_url_rule(f"/{slug}/<int:entry_id>", f"update_{endpoint}", update_route, methods=["PATCH"])
    catalog_bp.add_url_rule(f"/{slug}/<int:entry_id>", f"delete_{endpoint}", delete_route, methods=["DELETE"])


for _slug, _model in catalog_service.CATALOG_MODELS.items():
    _register_table(_slug, _model)
