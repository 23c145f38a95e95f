"""Admin configuration for the sales app."""
from django.contrib import admin

from sales.models import SalesLine, SalesUnit


@admin.register(SalesUnit)
class SalesUnitAdmin(admin.ModelAdmin):
    list_display = ("id", "name")
    search_fields = ("id", "name")


@admin.register(SalesLine)
class SalesLineAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_id", "date", "customer_id", "sales_unit_id", "material_id",
        "quantity", "item_net", "item_gross", "currency",
    )
    list_filter = ("date", "sales_unit", "currency")
    search_fields = ("invoice_id", "customer_id", "material_id")
    date_hierarchy = "date"
    readonly_fields = ("created_at", "updated_at")
