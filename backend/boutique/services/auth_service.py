# Overview: Service-layer operations for auth; password hashing and operator accounts.

"""
Authentication Service

Every sale records the operator who rang it up, so every request must be
attributable to a user. Passwords are hashed with bcrypt (cost factor 12);
session tokens are handled separately (see session_service.py).
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, ROLES, ROLE_CASHIER
from boutique.time_utils import utcnow

MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """Hash password using bcrypt with cost factor 12."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe check of password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def create_user(
    username: str,
    password: str,
    role: str = ROLE_CASHIER,
    email: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValueError: unknown role, or username/email already taken
        PasswordValidationError: password too short
    """
    username = (username or "").strip()
    if not username:
        raise ValueError("Username is required")
    if role not in ROLES:
        raise ValueError(f"Role must be one of: {', '.join(ROLES)}")

    conditions = [User.username == username]
    if email:
        conditions.append(User.email == email)
    existing = db.session.query(User).filter(db.or_(*conditions)).first()
    if existing:
        raise ValueError("Username or email already exists")

    password_hash = hash_password(password)

    user = User(
        username=username,
        email=email or None,
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        role=role,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate user with username (or email) and password.

    Returns User if credentials valid, None otherwise. Inactive users are
    refused. Updates last_login_at on success.
    """
    if not username or not password:
        return None

    user = db.session.query(User).filter(
        db.or_(User.username == username, User.email == username),
        User.is_active.is_(True),
    ).first()

    if not user:
        current_app.logger.info("Login failed: unknown or inactive user %r", username)
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    current_app.logger.info("Login failed: bad password for user_id=%s", user.id)
    return None


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.username.asc()).all()
