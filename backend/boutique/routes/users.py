# Overview: Flask API routes for operator accounts (admin only).

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..decorators import require_auth, require_permission
from ..models import User, ROLES
from ..services import auth_service, session_service
from ..services.auth_service import PasswordValidationError

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    return jsonify([u.to_dict() for u in auth_service.list_users()])


@users_bp.post("")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.create_user(
            username=data.get("username"),
            password=data.get("password") or "",
            role=data.get("role") or "cashier",
            email=data.get("email"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
        )
    except (PasswordValidationError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create user")
        db.session.rollback()
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("User %s created by user_id=%s", user.username, g.current_user.id)
    return jsonify(user.to_dict()), 201


@users_bp.patch("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def update_user_route(user_id: int):
    """Change role or active flag. Deactivation revokes the user's sessions."""
    data = request.get_json(silent=True) or {}
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404

    if user.id == g.current_user.id and (data.get("is_active") is False or data.get("role") not in (None, user.role)):
        return jsonify({"error": "You cannot demote or deactivate yourself"}), 400

    if "role" in data:
        if data["role"] not in ROLES:
            return jsonify({"error": f"role must be one of: {', '.join(ROLES)}"}), 400
        user.role = data["role"]
    if "is_active" in data:
        if not isinstance(data["is_active"], bool):
            return jsonify({"error": "is_active must be a boolean"}), 400
        user.is_active = data["is_active"]
    for key in ("first_name", "last_name"):
        if key in data:
            setattr(user, key, data[key])
    db.session.commit()

    if user.is_active is False:
        session_service.revoke_all_user_sessions(user.id, reason="User deactivated")

    return jsonify(user.to_dict()), 200
