from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
from boutique.time_utils import parse_iso_datetime
from boutique.money import to_decimal, MAX_AMOUNT

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from boutique.models import DISCOUNT_TYPES, DISCOUNT_PERCENTAGE


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


class NotFoundError(LookupError):
    """404-level missing resource."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_amount(key: str, value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError(f"{key} must be a decimal amount")
    if isinstance(value, str) and 'e' in value.strip().lower():
        raise ValidationError(f"{key} must be a plain decimal (scientific notation not allowed)")
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{key} must be a decimal amount")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT}")
    return amount


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    # Money / percentages
    if isinstance(coltype, Numeric):
        return _coerce_amount(col.key, value)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false", "1", "0"}:
            return value.strip().lower() in {"true", "1"}
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Optional text fields store blank as NULL (keeps unique SKUs sane)
        if isinstance(col.type, (String, Text)) and col.nullable and val == "":
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _require_non_negative(patch: dict, *keys: str) -> None:
    for key in keys:
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _require_non_negative(patch, "price", "purchase_price", "tax_rate", "low_stock_threshold")
    if patch.get("tax_rate") is not None and patch["tax_rate"] > 100:
        raise ValidationError("tax_rate must be <= 100")


def enforce_rules_promo_code(patch: dict, existing_type: str | None = None) -> None:
    discount_type = patch.get("discount_type", existing_type)
    if "discount_type" in patch and patch["discount_type"] not in DISCOUNT_TYPES:
        raise ValidationError(f"discount_type must be one of: {', '.join(DISCOUNT_TYPES)}")
    _require_non_negative(patch, "value")
    if discount_type == DISCOUNT_PERCENTAGE and patch.get("value") is not None and patch["value"] > 100:
        raise ValidationError("percentage value must be <= 100")
    if "code" in patch and patch["code"]:
        patch["code"] = patch["code"].upper()


def enforce_rules_expense(patch: dict) -> None:
    if "amount" in patch and patch["amount"] is not None and patch["amount"] <= 0:
        raise ValidationError("amount must be > 0")


def enforce_rules_paper_size(patch: dict) -> None:
    for key in ("width_mm", "height_mm"):
        if key in patch and patch[key] is not None and patch[key] <= 0:
            raise ValidationError(f"{key} must be > 0")


# =============================================================================
# CHECKOUT PAYLOAD
# =============================================================================

SALE_HEADER_REQUIRED = ("subtotal", "total", "payment_method")
SALE_ITEM_REQUIRED = ("product_id", "product_name", "quantity", "unit_price", "total_price")


@dataclass(frozen=True)
class SaleItemInput:
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


@dataclass(frozen=True)
class SaleInput:
    user_id: int
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    payment_method: str
    points_used: int
    points_earned: int
    customer_id: int | None
    promo_code_id: int | None
    items: tuple[SaleItemInput, ...]


def _optional_id(header: dict, key: str) -> int | None:
    value = header.get(key)
    if value is None or value == "":
        return None
    return _coerce_int(key, value)


def validate_sale_payload(header: Any, items: Any) -> SaleInput:
    """
    Normalize a checkout request into a SaleInput.

    The header carries totals already computed by the POS; they are parsed
    and range-checked here, not recomputed. Items must be a non-empty list
    with positive quantities.
    """
    if not isinstance(header, dict):
        raise ValidationError("sale must be an object")
    if not isinstance(items, list):
        raise ValidationError("items must be an array")
    if not items:
        raise ValidationError("items must not be empty")

    missing = [k for k in SALE_HEADER_REQUIRED if header.get(k) in (None, "")]
    if header.get("user_id") is None:
        missing.append("user_id")
    if missing:
        raise ValidationError(f"Missing required sale fields: {', '.join(missing)}")

    subtotal = _coerce_amount("subtotal", header["subtotal"])
    discount_amount = _coerce_amount("discount_amount", header.get("discount_amount") or 0)
    total = _coerce_amount("total", header["total"])
    for key, amount in (("subtotal", subtotal), ("discount_amount", discount_amount), ("total", total)):
        if amount < 0:
            raise ValidationError(f"{key} must be >= 0")

    points_used = _coerce_int("points_used", header.get("points_used") or 0)
    points_earned = _coerce_int("points_earned", header.get("points_earned") or 0)
    if points_used < 0 or points_earned < 0:
        raise ValidationError("points_used and points_earned must be >= 0")

    payment_method = str(header["payment_method"]).strip()
    if not payment_method or len(payment_method) > 50:
        raise ValidationError("payment_method must be 1-50 characters")

    customer_id = _optional_id(header, "customer_id")
    if customer_id is None and points_used:
        raise ValidationError("points_used requires a customer")

    parsed_items = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        missing = [k for k in SALE_ITEM_REQUIRED if raw.get(k) in (None, "")]
        if missing:
            raise ValidationError(f"items[{index}] missing: {', '.join(missing)}")

        quantity = _coerce_int(f"items[{index}].quantity", raw["quantity"])
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")
        unit_price = _coerce_amount(f"items[{index}].unit_price", raw["unit_price"])
        total_price = _coerce_amount(f"items[{index}].total_price", raw["total_price"])
        if unit_price < 0 or total_price < 0:
            raise ValidationError(f"items[{index}] prices must be >= 0")
        product_name = str(raw["product_name"]).strip()
        if not product_name:
            raise ValidationError(f"items[{index}].product_name cannot be blank")
        if len(product_name) > 255:
            raise ValidationError(f"items[{index}].product_name exceeds max length 255")

        parsed_items.append(SaleItemInput(
            product_id=_coerce_int(f"items[{index}].product_id", raw["product_id"]),
            product_name=product_name,
            quantity=quantity,
            unit_price=unit_price,
            total_price=total_price,
        ))

    return SaleInput(
        user_id=_coerce_int("user_id", header["user_id"]),
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=total,
        payment_method=payment_method,
        points_used=points_used,
        points_earned=points_earned,
        customer_id=customer_id,
        promo_code_id=_optional_id(header, "promo_code_id"),
        items=tuple(parsed_items),
    )
