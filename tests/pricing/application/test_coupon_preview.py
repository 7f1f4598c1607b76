"""Application tests for coupon registration and the storefront preview."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from commerce.errors import DuplicateError
from commerce.pricing.coupon import Coupon
from commerce.pricing.coupons import CreateCoupon, validate_coupon


def _create(**values):
    defaults = {"code": "welcome10", "discount_type": "PERCENTAGE", "discount_value": 10.0}
    defaults.update(values)
    return current_domain.process(CreateCoupon(**defaults), asynchronous=False)


class TestCreateCoupon:
    def test_code_is_stored_upper_case(self):
        _create()
        coupon = current_domain.repository_for(Coupon).find_by_code("Welcome10")
        assert coupon.code == "WELCOME10"
        assert coupon.used_count == 0

    def test_duplicate_code(self):
        _create()
        with pytest.raises(DuplicateError):
            _create(code="WELCOME10")


class TestValidateCoupon:
    def test_preview(self):
        _create(max_discount=150.0, name="Welcome")
        preview = validate_coupon("welcome10", 2000.0)
        assert preview.code == "WELCOME10"
        assert preview.name == "Welcome"
        assert preview.discount == 150.0

    def test_blank_code(self):
        with pytest.raises(ValidationError) as exc:
            validate_coupon("  ", 500.0)
        assert "Coupon code is required" in str(exc.value)

    def test_expired(self):
        _create(valid_until=datetime.now(UTC) - timedelta(days=1))
        with pytest.raises(ValidationError) as exc:
            validate_coupon("WELCOME10", 500.0)
        assert "has expired" in str(exc.value)

    def test_quantity_gate(self):
        _create(code="BUY3", discount_type="BUY_X_GET_Y", discount_value=33.0, min_quantity=3)
        with pytest.raises(ValidationError):
            validate_coupon("BUY3", 900.0, quantity=2)
        assert validate_coupon("BUY3", 900.0, quantity=3).discount == 297.0
