from django.urls import include, path

urlpatterns = [
    path("", include("apps.monitoring.urls")),
    path("v2/", include("apps.orders.urls")),
    path("v2/", include("apps.catalog.urls")),
]
