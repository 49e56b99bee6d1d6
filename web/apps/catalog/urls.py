from django.urls import path
from .views import ProductMappingsView, PromoValidateView, RegionsView
app_name = "catalog"

urlpatterns = [
    path("products", ProductMappingsView.as_view(), name="products"),
    path("promo/validate/<str:product_code>/<str:promo_code>", PromoValidateView.as_view(), name="promo-validate"),
    path("regions", RegionsView.as_view(), name="regions"),
]
