from django.urls import path
from .api import health_view, index_view

urlpatterns = [
    path("", index_view, name="index"),
    path("health", health_view, name="health"),
]
