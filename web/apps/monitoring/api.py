from django.http import JsonResponse
from django.db import DatabaseError, connection

from apps.orders.http_adapters import CircuitState, user_service_circuit


def health_view(_request):
    """Readiness probe: database round-trip plus user service breaker state.

    Only the database decides the status code; an open user service circuit
    degrades cart reads but the service still answers.
    """
    db_ok = True
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
    except DatabaseError:
        db_ok = False

    circuit = user_service_circuit().state
    return JsonResponse(
        {
            "ok": db_ok,
            "components": {
                "db": {"ok": db_ok},
                "user_service": {"ok": circuit is not CircuitState.OPEN, "circuit": circuit.value},
            },
        },
        status=200 if db_ok else 503,
    )


def liveness_view(_request):
    """Liveness probe: the process answers, no dependency is touched."""
    return JsonResponse({"ok": True})
