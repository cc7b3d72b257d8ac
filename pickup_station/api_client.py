# pickup_station/api_client.py

import logging

import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response or transport failure talking to the marketplace API."""

    def __init__(self, message=None, status_code=None, payload=None):
        super().__init__(message or (f"API request failed ({status_code})" if status_code else "API request failed"))
        self.message = message
        self.status_code = status_code
        self.payload = payload


class MarketplaceClient:
    """
    Thin client for the food-donation marketplace REST API.

    Every call is a single attempt. timeout=None waits on the transport
    defaults, matching the browser client.
    """

    def __init__(self, base_url, token=None, timeout=None, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    # --- pickup confirmation ---

    def complete_by_code(self, confirmation_code):
        return self._request("PUT", "/requests/complete-by-code",
                             json={"confirmationCode": confirmation_code})

    def complete_by_qr(self, qr_data):
        return self._request("PUT", "/requests/complete-qr", json={"qrData": qr_data})

    def complete_request(self, request_id, confirmation_code):
        return self._request("PUT", f"/requests/{request_id}/complete",
                             json={"confirmationCode": confirmation_code})

    # --- receiver / donor lookups ---

    def my_requests(self):
        body = self._request("GET", "/requests/my")
        return body.get("data") or []

    def pickup_qr_data(self, request_id):
        body = self._request("GET", f"/requests/{request_id}/qr-data")
        return body.get("data") or {}

    # --- ratings ---

    def submit_rating(self, request_id, rating, feedback=""):
        # The API works out the rating direction from the caller's role
        payload = {"requestId": request_id, "rating": rating, "feedback": (feedback or "").strip()}
        return self._request("POST", "/ratings", json=payload)

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ApiError(status_code=None) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if not response.ok:
            if response.status_code == 429:
                logger.warning(f"{method} {path}: rate limited by the API")
            elif response.status_code == 401:
                logger.warning(f"{method} {path}: API token rejected or expired")
            else:
                logger.info(f"{method} {path} -> {response.status_code}: {body.get('message')}")
            raise ApiError(body.get("message"), response.status_code, body)

        return body
