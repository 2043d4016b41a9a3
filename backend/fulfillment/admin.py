from django.contrib import admin

from .models import ConsignmentAttempt, Shipment


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request): return False
    def has_change_permission(self, request, obj=None): return False
    def has_delete_permission(self, request, obj=None): return False


@admin.register(Shipment)
class ShipmentAdmin(ReadOnlyAdmin):
    list_display = ("id", "tracking_code", "order", "company", "sub_carrier_code", "status",
                    "fest_status_code", "problematic", "stuck", "last_movement_date")
    list_filter = ("status", "company")
    search_fields = ("tracking_code", "order__order_number")

    @admin.display(boolean=True)
    def problematic(self, obj):
        return obj.is_problematic

    @admin.display(boolean=True)
    def stuck(self, obj):
        return obj.stuck()


@admin.register(ConsignmentAttempt)
class ConsignmentAttemptAdmin(ReadOnlyAdmin):
    list_display = ("id", "order", "company", "sub_carrier_code", "state", "attempts", "tracking_code", "created_at")
    list_filter = ("state", "company")
    search_fields = ("order__order_number", "tracking_code", "submission_key")
