"""Shiprocket courier aggregator adapter.

Authentication is a login call that returns a bearer token. The token is
cached for ``token_ttl_hours`` less one minute and shared by all threads;
a 401 on any call drops it and retries that call once with a fresh login.

Every request carries an explicit timeout. Transport failures and non-2xx
answers are raised as CourierError with the upstream body and status.
"""

import re
import threading
import time
from urllib.parse import quote

import requests
import structlog

from commerce.config import CourierSettings
from commerce.fulfillment.courier.port import CourierError, CourierPort

logger = structlog.get_logger(__name__)

TOKEN_REFRESH_MARGIN = 60.0


def _digits(value, limit: int | None = None) -> str:
    digits = re.sub(r"\D", "", str(value or ""))
    return digits[:limit] if limit else digits


def _as_int(value):
    text = str(value).strip() if value is not None else ""
    return int(text) if text.isdigit() else value


class ShiprocketCourier(CourierPort):
    """Production courier adapter backed by the Shiprocket external API."""

    def __init__(self, settings: CourierSettings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    def _url(self, path: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _login(self) -> str:
        password = self.settings.password.get_secret_value()
        if not self.settings.email or not password:
            raise CourierError("Courier credentials are not configured")
        try:
            response = self.session.post(
                self._url("auth/login"),
                json={"email": self.settings.email, "password": password},
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            raise CourierError(f"Courier login failed: {exc}") from exc

        body = self._body(response)
        token = body.get("token") if isinstance(body, dict) else None
        if not response.ok or not token:
            message = body.get("message") if isinstance(body, dict) else None
            raise CourierError(message or "Courier login failed", upstream=body, status_code=response.status_code)
        return token

    def token(self) -> str:
        with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at - TOKEN_REFRESH_MARGIN:
                return self._token
            self._token = self._login()
            self._token_expires_at = time.monotonic() + self.settings.token_ttl_hours * 3600
            logger.info("Courier token refreshed")
            return self._token

    def _drop_token(self) -> None:
        with self._token_lock:
            self._token = None
            self._token_expires_at = 0.0

    @staticmethod
    def _body(response: requests.Response):
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        for attempt in (1, 2):
            headers = {"Authorization": f"Bearer {self.token()}"}
            try:
                response = self.session.request(
                    method,
                    self._url(path),
                    headers=headers,
                    timeout=self.settings.timeout,
                    **kwargs,
                )
            except requests.RequestException as exc:
                logger.error("Courier unreachable", path=path, error=str(exc))
                raise CourierError(f"Courier aggregator unreachable: {exc}") from exc
            if response.status_code == 401 and attempt == 1:
                logger.info("Courier token rejected, logging in again", path=path)
                self._drop_token()
                continue
            return response
        return response

    def _call(self, method: str, path: str, **kwargs):
        response = self._request(method, path, **kwargs)
        body = self._body(response)
        if not response.ok:
            message = body.get("message") if isinstance(body, dict) else None
            logger.error("Courier call failed", path=path, status=response.status_code, body=body)
            raise CourierError(
                message or f"Courier aggregator returned {response.status_code}",
                upstream=body,
                status_code=response.status_code,
            )
        return body

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def create_order(self, payload: dict) -> dict:
        return self._call("POST", "orders/create/adhoc", json=payload)

    def assign_awb(
        self,
        external_order_id: str,
        external_shipment_id: str | None = None,
        courier_id: str | None = None,
    ) -> dict | None:
        payload = {"order_id": _as_int(external_order_id)}
        if external_shipment_id:
            payload["shipment_id"] = _as_int(external_shipment_id)
        if courier_id is not None:
            payload["courier_id"] = _as_int(courier_id)

        try:
            return self._call("POST", "courier/assign/awb", json=payload)
        except CourierError as exc:
            if courier_id is None and exc.upstream_status == 400:
                logger.info("Courier did not auto-assign", external_order_id=external_order_id)
                return None
            raise

    def serviceability(self, delivery_postcode: str, weight: float, cod: bool = True) -> dict:
        params = {
            "pickup_postcode": _digits(self.settings.pickup_postcode, 6) or "110001",
            "delivery_postcode": _digits(delivery_postcode, 6) or "110001",
            "weight": max(0.1, float(weight or 0.5)),
            "cod": 1 if cod else 0,
            "mode": "Surface",
        }
        return self._call("GET", "courier/serviceability/", params=params)

    def get_order(self, reference: str) -> dict | None:
        ref = str(reference or "").strip()
        if not ref:
            return None

        quoted = quote(ref, safe="")
        for path in (f"orders/show/{quoted}", f"orders/{quoted}", f"order/view/{quoted}", f"order/{quoted}"):
            response = self._request("GET", path)
            if response.status_code == 404:
                continue
            if not response.ok:
                logger.warning("Courier order lookup failed", path=path, status=response.status_code)
                return None
            body = self._body(response)
            if body:
                return body

        return self._find_in_listing(ref)

    def _find_in_listing(self, ref: str) -> dict | None:
        for params in ({"search": ref}, {"page": 1, "per_page": 100}):
            response = self._request("GET", "orders", params=params)
            if not response.ok:
                continue
            body = self._body(response)
            data = body.get("data") if isinstance(body, dict) else body
            if isinstance(data, dict):
                data = data.get("orders") or data.get("data") or []
            orders = data if isinstance(data, list) else []
            for entry in orders:
                if not isinstance(entry, dict):
                    continue
                nested = entry.get("order") if isinstance(entry.get("order"), dict) else {}
                keys = (entry.get("id"), entry.get("order_id"), entry.get("channel_order_id"), nested.get("id"))
                candidates = {str(v) for v in keys if v is not None}
                if ref in candidates:
                    return {**nested, **entry}
        return None

    def track(self, awb: str) -> dict:
        return self._call("GET", f"courier/track/awb/{quote(str(awb), safe='')}")
