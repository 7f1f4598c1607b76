"""Integration tests for the commerce HTTP API via TestClient."""

import pytest
from protean import current_domain

from commerce.fulfillment.courier.port import CourierError
from commerce.pricing.coupons import CreateCoupon


@pytest.fixture()
def product(add_product):
    return add_product(name="Tee", price=500.0, stock=5)


@pytest.fixture()
def checkout(client, address):
    def _checkout(product_id, quantity=1, payment_method="COD", coupon_code=None):
        response = client.post(
            "/orders",
            json={
                "items": [{"product_id": product_id, "quantity": quantity}],
                "shipping_address": address,
                "payment_method": payment_method,
                "coupon_code": coupon_code,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _checkout


class TestOrderEndpoints:
    def test_place_order(self, checkout, product):
        body = checkout(product, quantity=2)

        order = body["order"]
        assert order["status"] == "PENDING"
        assert order["total"] == 1000.0
        assert order["items"][0]["quantity"] == 2
        assert order["shipping_address"]["email"] == "asha@example.com"
        assert body["coupon"]["applied"] is False

    def test_coupon_outcome_is_reported(self, checkout, product):
        body = checkout(product, coupon_code="ghost")
        assert body["coupon"] == {
            "code": "GHOST",
            "applied": False,
            "discount": 0.0,
            "message": "Coupon GHOST is invalid",
        }

    def test_insufficient_stock_is_a_bad_request(self, client, product, address):
        response = client.post(
            "/orders",
            json={"items": [{"product_id": product, "quantity": 6}], "shipping_address": address},
        )
        assert response.status_code == 400
        assert "Insufficient stock for Tee" in response.json()["error"]["stock"][0]

    def test_request_shape_is_validated(self, client, address):
        response = client.post("/orders", json={"items": [], "shipping_address": address})
        assert response.status_code == 422

    def test_unknown_order(self, client):
        response = client.get("/orders/missing-order")
        assert response.status_code == 404
        assert "error" in response.json()

    def test_status_update_flow(self, client, checkout, product):
        order_id = checkout(product)["order"]["id"]

        response = client.put(f"/orders/{order_id}/status", json={"status": "shipped", "tracking_number": "AWB1"})
        assert response.status_code == 200
        assert response.json()["status"] == "SHIPPED"
        assert response.json()["revision"] == 1

        response = client.put(f"/orders/{order_id}/status", json={"status": "PENDING"})
        assert response.status_code == 400

    def test_stale_update_conflicts(self, client, checkout, product):
        order_id = checkout(product)["order"]["id"]
        client.put(f"/orders/{order_id}/status", json={"status": "SHIPPED", "tracking_number": "AWB1"})

        response = client.put(f"/orders/{order_id}/status", json={"status": "DELIVERED", "expected_revision": 0})

        assert response.status_code == 409
        assert "changed" in response.json()["error"]

    def test_mark_paid_and_stats(self, client, checkout, product):
        order_id = checkout(product)["order"]["id"]
        checkout(product)

        assert client.post(f"/orders/{order_id}/mark-paid").json()["payment_status"] == "PAID"
        stats = client.get("/orders/stats").json()
        assert stats["total_orders"] == 2
        assert stats["revenue"] == 500.0

    def test_listing(self, client, checkout, product):
        placed = checkout(product)["order"]

        assert [o["id"] for o in client.get("/orders", params={"status": "PENDING"}).json()] == [placed["id"]]
        assert client.get("/orders", params={"status": "SHIPPED"}).json() == []
        customer_orders = client.get(f"/customers/{placed['customer_id']}/orders").json()
        assert [o["order_number"] for o in customer_orders] == [placed["order_number"]]


class TestPaymentEndpoints:
    def test_intent_and_verification(self, client, checkout, product, gateway):
        order_id = checkout(product, payment_method="ONLINE")["order"]["id"]

        intent = client.post("/payments/intent", json={"order_id": order_id})
        assert intent.status_code == 201
        intent = intent.json()
        assert intent["amount"] == 50000

        response = client.post(
            "/payments/verify",
            json={
                "order_id": order_id,
                "gateway_order_id": intent["gateway_order_id"],
                "gateway_payment_id": "pay_1",
                "signature": gateway.sign(intent["gateway_order_id"], "pay_1"),
            },
        )
        assert response.status_code == 200
        assert response.json()["payment_status"] == "PAID"

        [payment] = client.get(f"/payments/orders/{order_id}").json()
        assert payment["status"] == "SUCCESS"
        assert payment["transaction_id"] == "pay_1"

    def test_tampered_signature(self, client, checkout, product):
        order_id = checkout(product, payment_method="ONLINE")["order"]["id"]
        intent = client.post("/payments/intent", json={"order_id": order_id}).json()

        response = client.post(
            "/payments/verify",
            json={
                "order_id": order_id,
                "gateway_order_id": intent["gateway_order_id"],
                "gateway_payment_id": "pay_1",
                "signature": "forged",
            },
        )
        assert response.status_code == 400
        assert response.json()["error"] == {"signature": ["Invalid payment signature"]}
        assert client.get(f"/orders/{order_id}").json()["payment_status"] == "PENDING"

    def test_gateway_outage_is_a_bad_gateway(self, client, checkout, product, gateway):
        order_id = checkout(product, payment_method="ONLINE")["order"]["id"]
        gateway.configure(should_succeed=False, failure_reason="Gateway timeout")

        response = client.post("/payments/intent", json={"order_id": order_id})

        assert response.status_code == 502
        assert response.json()["error"] == "Gateway timeout"

    def test_refund_endpoint(self, client, paid_online_order, gateway):
        order_id, _ = paid_online_order()
        client.put(f"/orders/{order_id}/status", json={"status": "CANCELLED"})

        response = client.post(f"/payments/orders/{order_id}/refund")

        assert response.json() == {"refunded": False, "payment_status": "REFUNDED"}
        assert len(gateway.refund_calls()) == 1

    def test_payment_listing(self, client, paid_online_order):
        paid_online_order()
        assert [p["status"] for p in client.get("/payments", params={"status": "SUCCESS"}).json()] == ["SUCCESS"]


class TestShipmentEndpoints:
    def test_create_shipment(self, client, checkout, product):
        order_id = checkout(product)["order"]["id"]

        response = client.post(f"/shipments/orders/{order_id}", json={"courier_id": "24"})

        body = response.json()
        assert body["awb_assigned"] is True
        assert body["carrier"] == "Xpressbees"
        assert body["message"].startswith("Shipment created with AWB")
        assert client.get(f"/orders/{order_id}").json()["status"] == "SHIPPED"

    def test_create_shipment_without_body(self, client, checkout, product):
        order_id = checkout(product)["order"]["id"]
        assert client.post(f"/shipments/orders/{order_id}").json()["awb_assigned"] is True

    def test_courier_outage(self, client, checkout, product, courier):
        order_id = checkout(product)["order"]["id"]
        courier.configure(error=CourierError("Service unavailable", upstream={"message": "down"}, status_code=503))

        response = client.post(f"/shipments/orders/{order_id}")

        assert response.status_code == 502
        assert response.json() == {"error": "Service unavailable", "upstream": {"message": "down"}}

    def test_couriers(self, client, checkout, product):
        order_id = checkout(product)["order"]["id"]
        couriers = client.get(f"/shipments/orders/{order_id}/couriers").json()
        assert [c["id"] for c in couriers] == ["11", "24"]
        assert couriers[0]["name"] == "Delhivery Surface"

    def test_sync(self, client, checkout, product, courier):
        order_id = checkout(product)["order"]["id"]
        courier.couriers = []
        client.post(f"/shipments/orders/{order_id}")
        courier.orders["1001"] = {"awb_code": "AWB-SYNC"}

        assert client.post(f"/shipments/orders/{order_id}/sync").json()["tracking_number"] == "AWB-SYNC"

    def test_tracking(self, client, courier):
        courier.tracking["AWB1"] = {"tracking_data": {"track_status": 1}}
        assert client.get("/shipments/track/AWB1").json() == {"tracking_data": {"track_status": 1}}
        assert client.get("/shipments/track/NOPE").status_code == 404


class TestReturnEndpoints:
    def _delivered(self, client, checkout, product):
        order = checkout(product, quantity=2)["order"]
        client.put(f"/orders/{order['id']}/status", json={"status": "SHIPPED", "tracking_number": "AWB1"})
        client.put(f"/orders/{order['id']}/status", json={"status": "DELIVERED"})
        return order

    def test_return_lifecycle(self, client, checkout, product):
        order = self._delivered(client, checkout, product)
        client.post(f"/orders/{order['id']}/mark-paid")

        created = client.post(
            "/returns",
            json={
                "customer_id": order["customer_id"],
                "order_id": order["id"],
                "items": [{"order_item_id": order["items"][0]["id"], "quantity": 1}],
                "reason": "Too small",
            },
        )
        assert created.status_code == 201
        return_id = created.json()["id"]
        assert created.json()["refund_amount"] == 500.0

        assert client.put(f"/returns/{return_id}/approve", json={"admin_notes": "ok"}).json()["status"] == "APPROVED"
        completed = client.put(f"/returns/{return_id}/refund", json={"refund_status": "COMPLETED"}).json()
        assert completed["status"] == "COMPLETED"

        order_view = client.get(f"/orders/{order['id']}").json()
        assert order_view["status"] == "RETURNED"
        assert order_view["payment_status"] == "PARTIALLY_REFUNDED"
        assert [r["id"] for r in client.get(f"/customers/{order['customer_id']}/returns").json()] == [return_id]

    def test_someone_elses_order_is_forbidden(self, client, checkout, product):
        order = self._delivered(client, checkout, product)
        response = client.post(
            "/returns",
            json={
                "customer_id": "intruder",
                "order_id": order["id"],
                "items": [{"order_item_id": order["items"][0]["id"]}],
                "reason": "Mine now",
            },
        )
        assert response.status_code == 403
        assert response.json() == {"error": "You can only request returns for your own orders"}

    def test_reject(self, client, checkout, product):
        order = self._delivered(client, checkout, product)
        return_id = client.post(
            "/returns",
            json={
                "customer_id": order["customer_id"],
                "order_id": order["id"],
                "items": [{"order_item_id": order["items"][0]["id"]}],
                "reason": "Changed mind",
            },
        ).json()["id"]

        rejected = client.put(f"/returns/{return_id}/reject").json()
        assert rejected["status"] == "REJECTED"
        assert rejected["rejected_reason"] == "Return request rejected"
        assert [r["id"] for r in client.get("/returns", params={"status": "REJECTED"}).json()] == [return_id]


class TestCouponEndpoints:
    def test_validate(self, client):
        current_domain.process(
            CreateCoupon(code="flat50", discount_type="FLAT", discount_value=50.0, name="Flat 50"),
            asynchronous=False,
        )
        response = client.post("/coupons/validate", json={"code": "FLAT50", "cart_value": 400.0})
        assert response.status_code == 200
        assert response.json()["discount"] == 50.0
        assert response.json()["final_amount"] == 350.0

    def test_invalid_code(self, client):
        response = client.post("/coupons/validate", json={"code": "NOPE", "cart_value": 400.0})
        assert response.status_code == 400
        assert response.json()["error"] == {"coupon_code": ["Coupon NOPE is invalid"]}
