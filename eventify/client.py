"""HTTP client for the Eventify API, used by the offline mirror.

Error bodies are mapped back to the domain errors the server raised;
transport failures and 5xx responses raise RemoteUnavailableError.
"""
import logging
from typing import Any, Optional

import httpx

from eventify.config import settings
from eventify.domain import Event, Registration
from eventify.errors import RemoteUnavailableError, error_from_payload

logger = logging.getLogger(__name__)


class RemoteClient:
    """Thin synchronous wrapper around the REST surface."""

    def __init__(
        self,
        user_id: Optional[str] = None,
        base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.user_id = user_id
        self._http = http or httpx.Client(
            base_url=base_url or settings.REMOTE_API_URL,
            timeout=timeout or settings.REMOTE_TIMEOUT_SECONDS,
        )

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = kwargs.pop("headers", {})
        if self.user_id:
            headers["X-User-Id"] = self.user_id
        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TransportError as exc:
            logger.warning("Remote API unreachable (%s %s): %s", method, path, exc)
            raise RemoteUnavailableError(str(exc)) from exc

        if response.status_code >= 500:
            raise RemoteUnavailableError(f"{method} {path} returned {response.status_code}")
        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            error = error_from_payload(payload) if isinstance(payload, dict) else None
            if error is not None:
                raise error
            response.raise_for_status()
        return response.json() if response.content else None

    def is_reachable(self) -> bool:
        try:
            self._request("GET", "/health")
        except RemoteUnavailableError:
            return False
        return True

    def list_events(self) -> list[Event]:
        return [Event.from_dict(item) for item in self._request("GET", "/events")]

    def get_event(self, event_id: str) -> Event:
        return Event.from_dict(self._request("GET", f"/events/{event_id}"))

    def my_registrations(self) -> list[Registration]:
        return [Registration.from_dict(item) for item in self._request("GET", "/registrations")]

    def register(
        self,
        event_id: str,
        participants: Optional[list[dict[str, Any]]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Registration:
        body: dict[str, Any] = {"event_id": event_id}
        if participants is not None:
            body["participants"] = participants
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else {}
        return Registration.from_dict(self._request("POST", "/registrations", json=body, headers=headers))

    def cancel(self, registration_id: str) -> Registration:
        return Registration.from_dict(self._request("PUT", f"/registrations/{registration_id}/cancel"))
