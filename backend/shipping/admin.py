from django.contrib import admin, messages

from shipping.models import ShippingCompany, SubCarrier
from shipping.services.errors import ConfigurationError


class SubCarrierInline(admin.TabularInline):
    model = SubCarrier
    extra = 0
    fields = (
        "position",
        "code",
        "name",
        "branch_code",
        "is_active",
        "is_cash_on_door_available",
        "is_card_on_door_available",
        "fixed_price",
        "return_price",
        "card_commission",
        "desi_ranges",
        "cod_ranges",
    )


@admin.register(ShippingCompany)
class ShippingCompanyAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "code", "type", "is_active", "is_default", "handles_rural_addresses")
    list_filter = ("type", "is_active", "handles_rural_addresses")
    search_fields = ("name", "code")
    inlines = [SubCarrierInline]
    actions = ["validate_rate_tables"]

    def validate_rate_tables(self, request, queryset):
        any_warn = False
        for company in queryset.prefetch_related("sub_carriers"):
            try:
                company.to_company()
            except ConfigurationError as exc:
                any_warn = True
                for e in exc.errors:
                    messages.warning(request, f"{company.code}: {e}")
        if not any_warn:
            messages.info(request, "Selected companies have valid rate tables.")
    validate_rate_tables.short_description = "Validate rate tables"
