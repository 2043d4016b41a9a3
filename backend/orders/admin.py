from django.contrib import admin

from .models import Customer, Order


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "phone", "city", "district")
    search_fields = ("name", "phone")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "order_number", "customer", "payment_method", "total_amount", "is_rural", "created_at")
    list_filter = ("payment_method", "is_rural")
    search_fields = ("order_number", "customer__name")
    autocomplete_fields = ("customer",)
