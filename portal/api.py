"""
Client for the appointments REST backend.

Every call goes through `BackendClient._request`; transport failures and
non-2xx answers both surface as `BackendError`. Nothing is retried.
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class BackendError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class BackendClient:
    def __init__(self, base_url: str, timeout: float = 10, session: requests.Session | None = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, token):
        headers = {'Content-Type': 'application/json'}
        if token:
            headers['Authorization'] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, token: str | None = None, payload: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise BackendError(f"{method} {path} failed: {e}") from e

        if not response.ok:
            raise BackendError(f"{method} {path} returned {response.status_code}", status_code=response.status_code)

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def list_centers(self) -> list:
        data = self._request('GET', '/api/diagnostic-centers')
        centers = data.get('centers')
        return centers if isinstance(centers, list) else []

    def get_center(self, center_id: str) -> dict:
        data = self._request('GET', f"/api/diagnostic-centers/{center_id}")
        center = data.get('center')
        if not isinstance(center, dict):
            raise BackendError(f"center {center_id} missing from response")
        return center

    def get_center_appointments(self, center_id: str, token: str) -> list:
        data = self._request('GET', f"/api/appointments/center/{center_id}", token=token)
        appointments = data.get('appointments')
        return appointments if isinstance(appointments, list) else []

    def update_appointment_status(self, appointment_id: str, payload: dict, token: str) -> dict:
        return self._request('PUT', f"/api/appointments/{appointment_id}/status", token=token, payload=payload)

    def get_my_appointments(self, token: str) -> list:
        data = self._request('GET', '/api/appointments/my-appointments', token=token)
        appointments = data.get('appointments')
        return appointments if isinstance(appointments, list) else []

    def update_appointment(self, appointment_id: str, payload: dict, token: str) -> dict:
        return self._request('PUT', f"/api/appointments/{appointment_id}", token=token, payload=payload)

    def delete_appointment(self, appointment_id: str, token: str) -> dict:
        return self._request('DELETE', f"/api/appointments/{appointment_id}", token=token)


def get_backend_client() -> BackendClient:
    return BackendClient(settings.BACKEND_API_URL, timeout=settings.BACKEND_TIMEOUT)
