from django.urls import path

from .views import (
    ClassifyStatusView,
    EligibleCarriersView,
    OperationalCostView,
    QuoteView,
    ShippingCompanyListView,
    SimulateQuoteView,
    SubCarrierCreateView,
    SubCarrierDetailView,
)

urlpatterns = [
    path('companies/', ShippingCompanyListView.as_view(), name='shipping-companies'),
    path('companies/<int:company_id>/sub-carriers/', SubCarrierCreateView.as_view(), name='sub-carrier-create'),
    path('companies/<int:company_id>/sub-carriers/<str:code>/', SubCarrierDetailView.as_view(), name='sub-carrier-detail'),
    path('eligible-carriers/', EligibleCarriersView.as_view(), name='eligible-carriers'),
    path('quote/', QuoteView.as_view(), name='shipping-quote'),
    path('operational-cost/', OperationalCostView.as_view(), name='operational-cost'),
    path('simulate/', SimulateQuoteView.as_view(), name='simulate-quote'),
    path('classify-status/', ClassifyStatusView.as_view(), name='classify-status'),
]
