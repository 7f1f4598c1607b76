import json
import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pin the environment before any settings are read."""
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["COMMERCE_ENVIRONMENT"] = "test"
    os.environ["COMMERCE_TASK_MODE"] = "eager"
    os.environ["COMMERCE_GATEWAY_ADAPTER"] = "fake"
    os.environ["COMMERCE_COURIER_ADAPTER"] = "fake"
    os.environ["COMMERCE_EMAIL_ADAPTER"] = "fake"


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def commerce_bed():
    from commerce.config import reset_settings
    from commerce.domain import commerce

    reset_settings()
    bed = DomainFixture(commerce)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(commerce_bed):
    with commerce_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def adapters(_ctx):
    """Fresh fakes and an eager task runner for every test."""
    from commerce.fulfillment.courier import reset_courier, set_courier
    from commerce.fulfillment.courier.fake_adapter import FakeCourier
    from commerce.notifications import reset_mailer, set_mailer
    from commerce.notifications.fake_email import FakeEmailAdapter
    from commerce.payments.gateway import reset_gateway, set_gateway
    from commerce.payments.gateway.fake_adapter import FakeGateway
    from commerce.utils.tasks import TaskMode, TaskRunner, reset_task_runner, set_task_runner

    gateway, courier, mailer = FakeGateway(), FakeCourier(), FakeEmailAdapter()
    set_gateway(gateway)
    set_courier(courier)
    set_mailer(mailer)
    set_task_runner(TaskRunner(mode=TaskMode.EAGER))

    yield {"gateway": gateway, "courier": courier, "mailer": mailer}

    reset_gateway()
    reset_courier()
    reset_mailer()
    reset_task_runner()


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Clear every store after each test."""
    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()


@pytest.fixture()
def gateway(adapters):
    return adapters["gateway"]


@pytest.fixture()
def courier(adapters):
    return adapters["courier"]


@pytest.fixture()
def mailer(adapters):
    return adapters["mailer"]


# ---------------------------------------------------------------------------
# Builders shared across areas
# ---------------------------------------------------------------------------
@pytest.fixture()
def add_product():
    from protean import current_domain

    from commerce.catalogue.registration import AddProduct

    counter = {"n": 0}

    def _add(name="Tee", price=500.0, stock=10, discount=0.0, size_stock=None, sku=None, images=None):
        counter["n"] += 1
        return current_domain.process(
            AddProduct(
                name=name,
                sku=sku or f"SKU-{name.upper().replace(' ', '-')}-{counter['n']}",
                price=price,
                discount=discount,
                stock_quantity=stock,
                size_stock=json.dumps(size_stock) if size_stock else None,
                images=json.dumps(images) if images else None,
            ),
            asynchronous=False,
        )

    return _add


@pytest.fixture()
def store_settings():
    """Configure the store singleton: ``store_settings(shipping_charges=50, ...)``."""
    from protean import current_domain

    from commerce.pricing.store_settings import StoreSettings, get_store_settings

    def _configure(**values):
        settings = get_store_settings()
        for key, value in values.items():
            setattr(settings, key, value)
        current_domain.repository_for(StoreSettings).add(settings)
        return settings

    return _configure


@pytest.fixture()
def address():
    return {
        "first_name": "Asha",
        "last_name": "Rao",
        "email": "asha@example.com",
        "phone": "+91 98765 43210",
        "street": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
    }


@pytest.fixture()
def place(address):
    """Place an order for ``[(product_id, quantity), ...]`` or item dicts."""
    from commerce.ordering.checkout import place_order

    def _place(lines, payment_method="COD", coupon_code=None, customer_id=None, shipping_address=None):
        items = [
            line if isinstance(line, dict) else {"product_id": line[0], "quantity": line[1]} for line in lines
        ]
        return place_order(
            items=items,
            shipping_address=shipping_address or address,
            payment_method=payment_method,
            coupon_code=coupon_code,
            customer_id=customer_id,
        ).order

    return _place


@pytest.fixture()
def paid_online_order(add_product, place, gateway):
    """An ONLINE order whose payment was verified."""
    from commerce.payments.intent import create_payment_intent
    from commerce.payments.verification import verify_payment

    def _make(price=1000.0, quantity=1, stock=10):
        product_id = add_product(name="Kurta", price=price, stock=stock)
        order = place([(product_id, quantity)], payment_method="ONLINE")
        intent = create_payment_intent(str(order.id))
        payment_id = "pay_test_001"
        verify_payment(
            str(order.id),
            intent.gateway_order_id,
            payment_id,
            gateway.sign(intent.gateway_order_id, payment_id),
        )
        return str(order.id), product_id

    return _make
