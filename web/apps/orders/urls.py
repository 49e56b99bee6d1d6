from django.urls import path
from .views import PartnerOrdersView, InProgressOrdersView
from .views import ForceRefundView, OrderRecoveryView
app_name = "orders"

urlpatterns = [
    path("partner/orders", PartnerOrdersView.as_view(), name="partner-orders"),
    path("in-progress/orders", InProgressOrdersView.as_view(), name="in-progress-orders"),
    path("refund/force", ForceRefundView.as_view(), name="force-refund"),
    path("order/recovery", OrderRecoveryView.as_view(), name="order-recovery"),
]
