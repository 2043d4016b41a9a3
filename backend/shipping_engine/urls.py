from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/shipping/', include('shipping.urls')),
    path('api/fulfillment/', include('fulfillment.urls')),
]
