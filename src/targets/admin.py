from django.contrib import admin

from targets.models import Target


@admin.register(Target)
class TargetAdmin(admin.ModelAdmin):
    list_display = (
        "target_type", "target_id", "period_start", "period_end",
        "target_value", "currency", "created_by",
    )
    list_filter = ("target_type", "currency")
    search_fields = ("target_id",)
    readonly_fields = ("created_by", "created_at", "updated_at")
    ordering = ("-period_start", "target_type", "target_id")
