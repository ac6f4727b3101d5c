"""HTTP adapter for the user service with a circuit breaker and context headers.

This module implements the ``UserDirectoryPort`` over HTTP using ``httpx``.
It adds:

- Request correlation: propagates ``X-Request-ID`` from the ContextVar set
    by the gateway middleware.
- A circuit breaker for the user service so an unhealthy dependency fails
    fast instead of blocking every request for the full timeout, with
    HALF_OPEN probing after a cool-down.

There is no retry: each ``fetch_user`` issues at most one request. Outcomes
are classified as follows:

- 200 with a user body → ``User``; 200 with a ``null`` body → ``UserNotFound``
- 404 → ``UserNotFound`` (not a circuit failure)
- transport error, any other status, malformed body → ``UserServiceUnavailable``
"""

import logging
import threading
import time
from enum import Enum
from typing import Optional

import httpx
from django.conf import settings
from pydantic import ValidationError

from gateway.middleware import REQUEST_ID_CTX

from .domain import User, UserNotFound, UserServiceUnavailable
from .mappers import user_from_dto
from .schemas import UserDTO

logger = logging.getLogger("orders.http")


# ---------------- Circuit Breaker ---------------- #

class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitOpenError(RuntimeError):
    """Raised by ``before_call`` when the protected call must not run."""


class CircuitBreaker:
    """Minimal thread-safe circuit breaker.

    Transitions:
    - CLOSED → OPEN when consecutive failures reach ``fail_threshold``.
    - OPEN → HALF_OPEN once ``reset_timeout`` seconds have elapsed.
    - HALF_OPEN → CLOSED on a successful probe, back to OPEN on failure.
      Only one probe may be in flight at a time.
    """

    def __init__(self, name: str, fail_threshold: int, reset_timeout: float):
        self.name = name
        self.fail_threshold = fail_threshold
        self.reset_timeout = reset_timeout
        self._lock = threading.RLock()
        self._failures = 0
        self._state = CircuitState.CLOSED
        self._opened_at = 0.0
        self._probe_in_flight = False

    @property
    def state(self) -> CircuitState:
        with self._lock:
            if (
                self._state is CircuitState.OPEN
                and time.monotonic() - self._opened_at >= self.reset_timeout
            ):
                self._state = CircuitState.HALF_OPEN
                self._probe_in_flight = False
            return self._state

    def before_call(self) -> CircuitState:
        """Return the state at call time, or raise if the call is not allowed.

        Raises:
            CircuitOpenError: If the circuit is OPEN or a HALF_OPEN probe is
                already running.
        """
        with self._lock:
            st = self.state
            if st is CircuitState.OPEN:
                raise CircuitOpenError("CIRCUIT_OPEN")
            if st is CircuitState.HALF_OPEN:
                if self._probe_in_flight:
                    raise CircuitOpenError("CIRCUIT_HALF_OPEN_BUSY")
                self._probe_in_flight = True
            return st

    def on_success(self):
        with self._lock:
            self._failures = 0
            self._state = CircuitState.CLOSED
            self._probe_in_flight = False

    def on_failure(self):
        with self._lock:
            self._failures += 1
            if self._state is CircuitState.HALF_OPEN or self._failures >= self.fail_threshold:
                if self._state is not CircuitState.OPEN:
                    logger.warning("circuit opened", extra={"circuit": self.name, "failures": self._failures})
                self._state = CircuitState.OPEN
                self._opened_at = time.monotonic()
                self._probe_in_flight = False

    def on_finish(self):
        """Release the HALF_OPEN probe flag however the call ended."""
        with self._lock:
            if self._state is CircuitState.HALF_OPEN:
                self._probe_in_flight = False

    def reset(self):
        """Force the breaker back to CLOSED."""
        self.on_success()


_users_cb = CircuitBreaker(
    "user-service",
    getattr(settings, "HTTP_CIRCUIT_FAIL_THRESHOLD", 5),
    getattr(settings, "HTTP_CIRCUIT_RESET_TIMEOUT", 30.0),
)


def user_service_circuit() -> CircuitBreaker:
    return _users_cb


# ---------------- Helpers ---------------- #

def _request_headers(extra: Optional[dict] = None) -> dict:
    """Build outgoing headers with ``X-Request-ID`` and any extras."""
    headers: dict[str, str] = {"Accept": "application/json"}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


# ---------------- User service adapter ---------------- #

class HttpUserClient:
    """HTTP client for the user service, guarded by a circuit breaker."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.USER_SERVICE_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECS

    def fetch_user(self, user_id: int) -> User:
        """Resolve a user through ``GET /api/users/{user_id}``.

        Args:
            user_id: Id of the user to fetch.

        Returns:
            User: The user record returned by the service.

        Raises:
            UserNotFound: On 404 or a ``null`` body.
            UserServiceUnavailable: On transport errors, unexpected statuses,
                malformed bodies, or while the circuit is open.
        """
        try:
            state = _users_cb.before_call()
        except CircuitOpenError as e:
            raise UserServiceUnavailable(f"User service circuit is open ({e})") from e

        try:
            return self._fetch(user_id, state)
        finally:
            _users_cb.on_finish()

    def _fetch(self, user_id: int, state: CircuitState) -> User:
        url = f"{self.base_url}/api/users/{user_id}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.get(url, headers=_request_headers({"X-Circuit-State": state.value}))
        except httpx.RequestError as e:
            _users_cb.on_failure()
            logger.warning("user service unreachable", extra={"user_id": user_id, "error": type(e).__name__})
            raise UserServiceUnavailable(f"Error verifying user existence: {e}") from e

        if resp.status_code == 404:
            _users_cb.on_success()  # business outcome, not a circuit failure
            raise UserNotFound(f"User with id {user_id} not found")
        if resp.status_code != 200:
            _users_cb.on_failure()
            raise UserServiceUnavailable(f"User service answered HTTP {resp.status_code}")

        try:
            data = resp.json()
            if data is None:
                _users_cb.on_success()
                raise UserNotFound(f"User with id {user_id} not found")
            user = user_from_dto(UserDTO.model_validate(data))
        except (ValueError, ValidationError) as e:
            _users_cb.on_failure()
            raise UserServiceUnavailable(f"Malformed user service response: {e}") from e

        _users_cb.on_success()
        return user
