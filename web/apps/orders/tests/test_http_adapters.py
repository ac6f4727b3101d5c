"""Unit tests for the HTTP adapter to the user service.

These tests verify how the client classifies success, not-found and
infrastructure failures, and how the circuit breaker reacts, by
monkeypatching ``httpx.Client.get``.
"""
import httpx, pytest
from apps.orders.domain import UserNotFound, UserServiceUnavailable
from apps.orders.http_adapters import CircuitBreaker, CircuitState, HttpUserClient, user_service_circuit
from gateway.middleware import REQUEST_ID_CTX


class DummyResp:
    """Minimal httpx-like response stub for adapter tests.

    Args:
        status_code (int): HTTP status code to simulate.
        json_data: JSON body returned by ``json()``.
        invalid_json (bool): Make ``json()`` fail like a non-JSON body.
    """
    def __init__(self, status_code=200, json_data=None, invalid_json=False):
        self.status_code = status_code
        self._json = json_data
        self._invalid = invalid_json
    def json(self):
        if self._invalid:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._json


def patch_get(monkeypatch, fn):
    calls = []
    def fake_get(self, url, headers=None, **kw):
        calls.append((url, headers))
        return fn()
    monkeypatch.setattr(httpx.Client, "get", fake_get, raising=True)
    return calls


def test_fetch_user_ok(monkeypatch):
    """200 with a user body is mapped to a User."""
    calls = patch_get(monkeypatch, lambda: DummyResp(200, {
        "userId": 1, "firstName": "John", "lastName": "Doe", "email": "john.doe@example.com",
    }))
    user = HttpUserClient(base_url="http://users:8700/user-service/").fetch_user(1)
    assert user.user_id == 1 and user.first_name == "John"
    assert calls[0][0] == "http://users:8700/user-service/api/users/1"


def test_fetch_user_propagates_request_id(monkeypatch):
    calls = patch_get(monkeypatch, lambda: DummyResp(200, {"userId": 3}))
    token = REQUEST_ID_CTX.set("rid-123")
    try:
        HttpUserClient(base_url="http://x").fetch_user(3)
    finally:
        REQUEST_ID_CTX.reset(token)
    assert calls[0][1]["X-Request-ID"] == "rid-123"
    assert calls[0][1]["X-Circuit-State"] == "CLOSED"


def test_fetch_user_404_is_not_found(monkeypatch):
    patch_get(monkeypatch, lambda: DummyResp(404, {"msg": "no such user"}))
    with pytest.raises(UserNotFound):
        HttpUserClient(base_url="http://x").fetch_user(7)


def test_fetch_user_null_body_is_not_found(monkeypatch):
    patch_get(monkeypatch, lambda: DummyResp(200, None))
    with pytest.raises(UserNotFound):
        HttpUserClient(base_url="http://x").fetch_user(7)


@pytest.mark.parametrize("resp", [
    DummyResp(500, {}),
    DummyResp(503, {}),
    DummyResp(400, {}),
    DummyResp(200, invalid_json=True),
    DummyResp(200, {"firstName": "no id"}),
    DummyResp(200, ["not", "an", "object"]),
])
def test_fetch_user_unexpected_answers_are_unavailable(monkeypatch, resp):
    patch_get(monkeypatch, lambda: resp)
    with pytest.raises(UserServiceUnavailable):
        HttpUserClient(base_url="http://x").fetch_user(7)


def test_fetch_user_network_error(monkeypatch):
    """Transport errors become UserServiceUnavailable, never UserNotFound."""
    def boom():
        raise httpx.ConnectError("boom")
    patch_get(monkeypatch, boom)
    with pytest.raises(UserServiceUnavailable):
        HttpUserClient(base_url="http://x").fetch_user(7)


def test_fetch_user_makes_a_single_call(monkeypatch):
    calls = patch_get(monkeypatch, lambda: DummyResp(500, {}))
    with pytest.raises(UserServiceUnavailable):
        HttpUserClient(base_url="http://x").fetch_user(7)
    assert len(calls) == 1


def test_open_circuit_fails_fast(monkeypatch):
    calls = patch_get(monkeypatch, lambda: DummyResp(500, {}))
    cb = user_service_circuit()
    for _ in range(cb.fail_threshold):
        with pytest.raises(UserServiceUnavailable):
            HttpUserClient(base_url="http://x").fetch_user(7)
    assert cb.state is CircuitState.OPEN

    with pytest.raises(UserServiceUnavailable):
        HttpUserClient(base_url="http://x").fetch_user(7)
    assert len(calls) == cb.fail_threshold


def test_not_found_does_not_trip_circuit(monkeypatch):
    patch_get(monkeypatch, lambda: DummyResp(404, {}))
    cb = user_service_circuit()
    for _ in range(cb.fail_threshold + 1):
        with pytest.raises(UserNotFound):
            HttpUserClient(base_url="http://x").fetch_user(7)
    assert cb.state is CircuitState.CLOSED


def test_circuit_half_open_probe(monkeypatch):
    now = {"t": 100.0}
    monkeypatch.setattr("apps.orders.http_adapters.time.monotonic", lambda: now["t"])
    cb = CircuitBreaker("test", fail_threshold=1, reset_timeout=10.0)

    cb.before_call()
    cb.on_failure()
    assert cb.state is CircuitState.OPEN

    now["t"] += 10.0
    assert cb.before_call() is CircuitState.HALF_OPEN
    with pytest.raises(RuntimeError):
        cb.before_call()  # only one probe at a time
    cb.on_success()
    assert cb.state is CircuitState.CLOSED


def test_half_open_probe_is_released_after_unexpected_error(monkeypatch):
    """A probe that dies outside the transport layer must not wedge the breaker."""
    now = {"t": 500.0}
    monkeypatch.setattr("apps.orders.http_adapters.time.monotonic", lambda: now["t"])
    cb = user_service_circuit()
    for _ in range(cb.fail_threshold):
        cb.on_failure()
    now["t"] += cb.reset_timeout

    def bad_url():
        raise httpx.InvalidURL("Invalid URL 'http://'")
    patch_get(monkeypatch, bad_url)
    with pytest.raises(httpx.InvalidURL):
        HttpUserClient(base_url="http://x").fetch_user(7)

    assert cb.before_call() is CircuitState.HALF_OPEN
