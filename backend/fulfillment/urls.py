from django.urls import path
from .views import (
    AttemptCancelView,
    ShipmentCancelView,
    ShipmentListCreateView,
    ShipmentStatsView,
    ShipmentStatusView,
)

urlpatterns = [
    path('shipments/', ShipmentListCreateView.as_view(), name='shipments'),
    path('shipments/stats/', ShipmentStatsView.as_view(), name='shipment-stats'),
    path('shipments/<int:id>/status/', ShipmentStatusView.as_view(), name='shipment-status'),
    path('shipments/<int:id>/cancel/', ShipmentCancelView.as_view(), name='shipment-cancel'),
    path('attempts/<str:key>/cancel/', AttemptCancelView.as_view(), name='attempt-cancel'),
]
