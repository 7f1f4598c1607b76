"""A slow courier call must not hold up unrelated requests."""

import asyncio
import time

import httpx


def test_slow_courier_does_not_block_other_requests(api_app, add_product, place, courier, monkeypatch):
    product_id = add_product(name="Tee", price=500.0, stock=5)
    order = place([(product_id, 1)])

    create_order = courier.create_order

    def slow_create_order(payload):
        time.sleep(1.5)
        return create_order(payload)

    monkeypatch.setattr(courier, "create_order", slow_create_order)

    async def exercise():
        transport = httpx.ASGITransport(app=api_app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:

            async def stats():
                await asyncio.sleep(0.2)
                started = time.monotonic()
                response = await client.get("/orders/stats")
                return response, time.monotonic() - started

            shipment, (stats_response, waited) = await asyncio.gather(
                client.post(f"/shipments/orders/{order.id}"), stats()
            )
            return shipment, stats_response, waited

    shipment, stats_response, waited = asyncio.run(exercise())

    assert shipment.status_code == 200, shipment.text
    assert shipment.json()["awb_assigned"] is True
    assert stats_response.status_code == 200
    assert waited < 1.0
