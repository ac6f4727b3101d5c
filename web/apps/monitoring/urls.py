from django.urls import path
from .api import health_view, liveness_view

urlpatterns = [
    path("health/", health_view, name="health"),
    path("health/live/", liveness_view, name="liveness"),
]
