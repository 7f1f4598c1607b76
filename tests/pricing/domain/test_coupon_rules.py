"""Tests for coupon eligibility rules and discount computation."""

from datetime import UTC, datetime, timedelta

from commerce.pricing.coupon import Coupon

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _coupon(**overrides):
    values = {"code": "SAVE10", "discount_type": "PERCENTAGE", "discount_value": 10.0}
    values.update(overrides)
    return Coupon(**values)


class TestEligibility:
    def test_eligible_coupon(self):
        assert _coupon().ineligibility(500.0, 1, now=NOW) is None

    def test_inactive(self):
        assert "not active" in _coupon(is_active=False).ineligibility(500.0, 1, now=NOW)

    def test_not_started(self):
        coupon = _coupon(valid_from=NOW + timedelta(days=1))
        assert "not yet active" in coupon.ineligibility(500.0, 1, now=NOW)

    def test_expired(self):
        coupon = _coupon(valid_until=NOW - timedelta(seconds=1))
        assert "expired" in coupon.ineligibility(500.0, 1, now=NOW)

    def test_naive_dates_are_read_as_utc(self):
        coupon = _coupon(valid_until=datetime(2024, 6, 2))
        assert coupon.ineligibility(500.0, 1, now=NOW) is None

    def test_usage_limit_reached(self):
        coupon = _coupon(usage_limit=2, used_count=2)
        assert "usage limit reached" in coupon.ineligibility(500.0, 1, now=NOW)

    def test_minimum_cart_value(self):
        coupon = _coupon(min_cart_value=1000.0)
        assert coupon.ineligibility(999.0, 1, now=NOW) == "Minimum cart value of 1000 required for coupon SAVE10"

    def test_minimum_quantity(self):
        coupon = _coupon(min_quantity=3)
        assert "at least 3 items" in coupon.ineligibility(500.0, 2, now=NOW)
        assert coupon.ineligibility(500.0, 3, now=NOW) is None

    def test_first_failing_rule_is_named(self):
        coupon = _coupon(is_active=False, usage_limit=1, used_count=5)
        assert "not active" in coupon.ineligibility(500.0, 1, now=NOW)


class TestDiscount:
    def test_percentage(self):
        assert _coupon(discount_value=15.0).discount_for(1000.0) == 150.0

    def test_percentage_capped(self):
        assert _coupon(discount_value=50.0, max_discount=200.0).discount_for(1000.0) == 200.0

    def test_flat(self):
        assert _coupon(discount_type="FLAT", discount_value=75.0).discount_for(1000.0) == 75.0

    def test_flat_never_exceeds_cart(self):
        assert _coupon(discount_type="FLAT", discount_value=75.0).discount_for(40.0) == 40.0

    def test_buy_x_get_y_discounts_like_percentage(self):
        assert _coupon(discount_type="BUY_X_GET_Y", discount_value=20.0).discount_for(500.0) == 100.0

    def test_record_use(self):
        coupon = _coupon()
        coupon.record_use()
        coupon.record_use()
        assert coupon.used_count == 2
