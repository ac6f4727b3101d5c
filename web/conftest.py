import pytest


@pytest.fixture(autouse=True)
def use_stubs_for_tests(settings):
    settings.USE_HTTP_ADAPTERS = False


@pytest.fixture(autouse=True)
def closed_user_circuit():
    # breaker state is per process; keep tests independent
    from apps.orders.http_adapters import user_service_circuit

    user_service_circuit().reset()
    yield
    user_service_circuit().reset()
