from django.contrib import admin

from ledger_core.models import AuditLog

from .append_only import AppendOnlyAdmin
from .mixins import TenantAdminMixin


# Register `AuditLog` model: the trail is append-only
@admin.register(AuditLog)
class AuditLogAdmin(TenantAdminMixin, AppendOnlyAdmin):
    list_display = (
        "id",
        "quarry",
        "user",
        "action",
        "object_type",
        "object_id",
        "created_at",
    )

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("quarry", "user")
