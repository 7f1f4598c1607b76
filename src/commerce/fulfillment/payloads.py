"""Courier order payload built from an Order snapshot."""

import re

from commerce.ordering.order import Order, PaymentMethod

PARCEL_LENGTH_CM = 15
PARCEL_BREADTH_CM = 15
PARCEL_HEIGHT_CM = 10
MIN_WEIGHT_KG = 0.5
MAX_WEIGHT_KG = 30.0
WEIGHT_PER_UNIT_KG = 0.5
FALLBACK_PHONE = "9999999999"


def normalize_phone(phone: str | None) -> str:
    """Reduce an Indian phone number to its 10-digit mobile form."""
    digits = re.sub(r"\D", "", str(phone or ""))
    if len(digits) == 11 and digits.startswith("0"):
        return digits[1:]
    if len(digits) == 12 and digits.startswith("91"):
        return digits[2:]
    return digits[-10:] if len(digits) >= 10 else digits


def parcel_weight(total_quantity: int) -> float:
    return max(MIN_WEIGHT_KG, min(MAX_WEIGHT_KG, total_quantity * WEIGHT_PER_UNIT_KG))


def _clip(value, limit: int, fallback: str = "") -> str:
    text = str(value or "").strip()[:limit]
    return text or fallback


def build_order_payload(order: Order, pickup_location: str) -> dict:
    address = order.shipping_address
    first_name = _clip(address.first_name, 50, "Customer")
    last_name = _clip(address.last_name, 50, "-")
    phone = normalize_phone(address.phone) or FALLBACK_PHONE
    street = _clip(address.street, 200, "Address")
    landmark = _clip(address.landmark, 100)
    city = _clip(address.city, 50, "City")
    state = _clip(address.state, 50, "State")
    pincode = re.sub(r"\D", "", str(address.pincode or ""))[:6] or "000000"
    country = _clip(address.country, 50, "India")

    items = [
        {
            "name": _clip(item.name, 100, "Product"),
            "sku": _clip(item.sku, 50, "SKU"),
            "units": max(1, item.quantity or 1),
            "selling_price": max(0.0, item.price or 0.0),
            "discount": 0,
        }
        for item in order.items or []
    ]

    party = {
        "customer_name": first_name,
        "last_name": last_name,
        "address": street,
        "address_2": landmark,
        "city": city,
        "pincode": pincode,
        "state": state,
        "country": country,
        "email": address.email,
        "phone": phone,
    }

    payload = {
        "order_id": order.order_number,
        "order_date": (order.created_at.strftime("%Y-%m-%d %H:%M") if order.created_at else ""),
        "pickup_location": pickup_location,
        "shipping_is_billing": True,
        "order_items": items,
        "payment_method": "COD" if order.payment_method == PaymentMethod.COD.value else "Prepaid",
        "sub_total": max(0.0, order.subtotal or 0.0),
        "shipping_charges": order.shipping_charges or 0.0,
        "total_discount": order.discount or 0.0,
        "length": PARCEL_LENGTH_CM,
        "breadth": PARCEL_BREADTH_CM,
        "height": PARCEL_HEIGHT_CM,
        "weight": parcel_weight(order.total_quantity()),
    }
    payload.update({f"billing_{key}": value for key, value in party.items()})
    payload.update({f"shipping_{key}": value for key, value in party.items()})
    return payload
