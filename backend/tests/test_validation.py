"""
Payload validation: column-driven coercion and checkout normalization.
"""

from decimal import Decimal

import pytest

from boutique.models import Product
from boutique.validation import (
    ModelValidationPolicy,
    ValidationError,
    validate_payload,
    validate_sale_payload,
)

POLICY = ModelValidationPolicy(writable_fields={"name", "price", "stock", "sku"}, required_on_create={"name"})


def _header(**overrides):
    header = {"user_id": 1, "subtotal": "10", "total": "10", "payment_method": "cash"}
    header.update(overrides)
    return header


def _item(**overrides):
    item = {"product_id": 1, "product_name": "Tee", "quantity": 1, "unit_price": "10", "total_price": "10"}
    item.update(overrides)
    return item


class TestValidatePayload:

    def test_coerces_by_column_type(self):
        patch = validate_payload(
            model=Product, payload={"name": " Tee ", "price": "9.999", "stock": "4", "sku": ""},
            policy=POLICY, partial=False,
        )
        assert patch == {"name": "Tee", "price": Decimal("10.00"), "stock": 4, "sku": None}

    @pytest.mark.parametrize("payload", [
        {"name": "Tee", "stock": "1.5"},
        {"name": "Tee", "stock": "1e3"},
        {"name": "Tee", "stock": 2.0},
        {"name": "Tee", "price": "1e3"},
        {"name": "Tee", "price": True},
        {"name": ""},
        {"name": None},
        {"name": "x" * 256},
    ])
    def test_rejects(self, payload):
        with pytest.raises(ValidationError):
            validate_payload(model=Product, payload=payload, policy=POLICY, partial=False)

    def test_partial_skips_required(self):
        assert validate_payload(model=Product, payload={"stock": 3}, policy=POLICY, partial=True) == {"stock": 3}


class TestValidateSalePayload:

    def test_normalizes(self):
        sale = validate_sale_payload(_header(points_earned="2"), [_item(quantity="2", total_price="20")])
        assert sale.total == Decimal("10.00")
        assert sale.discount_amount == Decimal("0.00")
        assert sale.points_earned == 2
        assert sale.customer_id is None
        assert sale.items[0].quantity == 2

    @pytest.mark.parametrize("header,items", [
        (_header(), []),
        (_header(), {"product_id": 1}),
        ("not a dict", [_item()]),
        (_header(payment_method=""), [_item()]),
        (_header(total="-1"), [_item()]),
        (_header(points_used=5), [_item()]),
        (_header(points_earned=-1), [_item()]),
        (_header(), [_item(quantity=0)]),
        (_header(), [_item(unit_price="-3")]),
        (_header(), [_item(product_name=None)]),
        (_header(), [_item(product_name="   ")]),
        ({"subtotal": "1", "total": "1", "payment_method": "cash"}, [_item()]),
    ])
    def test_rejects(self, header, items):
        with pytest.raises(ValidationError):
            validate_sale_payload(header, items)
