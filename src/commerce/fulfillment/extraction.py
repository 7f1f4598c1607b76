"""Reading ids out of courier aggregator responses.

The aggregator answers the same question in different shapes depending on
the endpoint and account settings. Each value is read with an ordered list
of paths; the first path that yields a present value wins. A path is a tuple
of dict keys and list indexes.
"""

from typing import Any

Path = tuple[str | int, ...]

ORDER_ID_PATHS: list[Path] = [
    ("order_id",),
    ("data", "order_id"),
    ("id",),
]

SHIPMENT_ID_PATHS: list[Path] = [
    ("shipment_id",),
    ("data", "shipment_id"),
    ("shipments", 0, "id"),
    ("data", "shipments", 0, "id"),
    ("shipments", 0, "shipment_id"),
]

AWB_PATHS: list[Path] = [
    ("awb_code",),
    ("data", "awb_code"),
    ("response", "data", "awb_code"),
    ("shipments", 0, "awb_code"),
    ("shipments", 0, "awb"),
    ("data", "shipments", 0, "awb_code"),
    ("data", "shipments", 0, "awb"),
    ("order", "shipments", 0, "awb_code"),
    ("data", "order", "shipments", 0, "awb_code"),
    ("awb",),
    ("tracking_data", "awb"),
]

COURIER_NAME_PATHS: list[Path] = [
    ("courier_name",),
    ("data", "courier_name"),
    ("response", "data", "courier_name"),
    ("shipments", 0, "courier_name"),
    ("shipments", 0, "courier"),
    ("data", "shipments", 0, "courier_name"),
]

COURIER_LIST_PATHS: list[Path] = [
    ("data", "available_courier_companies"),
    ("available_courier_companies",),
    ("data",),
]

COURIER_ID_KEYS = ("id", "courier_company_id", "courier_id")


def dig(document: Any, path: Path) -> Any:
    """Follow ``path`` into nested dicts and lists; None when any step is missing."""
    current = document
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or len(current) <= step:
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def first_present(document: Any, paths: list[Path]) -> Any:
    for path in paths:
        value = dig(document, path)
        if _present(value):
            return value
    return None


def _as_text(value: Any) -> str | None:
    return str(value).strip() if _present(value) else None


def extract_order_id(document: Any) -> str | None:
    return _as_text(first_present(document, ORDER_ID_PATHS))


def extract_shipment_id(document: Any) -> str | None:
    return _as_text(first_present(document, SHIPMENT_ID_PATHS))


def extract_awb(document: Any) -> str | None:
    return _as_text(first_present(document, AWB_PATHS))


def extract_courier_name(document: Any) -> str | None:
    return _as_text(first_present(document, COURIER_NAME_PATHS))


def extract_couriers(document: Any) -> list[dict]:
    """The courier companies offered in a serviceability or assign answer."""
    if isinstance(document, list):
        return [c for c in document if isinstance(c, dict)]
    for path in COURIER_LIST_PATHS:
        value = dig(document, path)
        if isinstance(value, list):
            return [c for c in value if isinstance(c, dict)]
    return []


def courier_id(courier: dict) -> str | None:
    for key in COURIER_ID_KEYS:
        if _present(courier.get(key)):
            return str(courier[key]).strip()
    return None


def courier_label(courier: dict) -> str | None:
    return _as_text(courier.get("courier_name") or courier.get("name"))
