from django.contrib import admin

from core.models import ActivityLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "action", "entity_type", "entity_id", "actor", "ip_address")
    list_filter = ("action", "entity_type")
    search_fields = ("entity_id", "actor__email")
    readonly_fields = (
        "actor", "action", "entity_type", "entity_id",
        "details", "ip_address", "created_at",
    )
    ordering = ("-created_at",)

    def has_add_permission(self, request):
        return False
