from django.contrib import admin
from ledger_core.models import LedgerAccount
from .mixins import TenantAdminMixin


# Register `LedgerAccount` model
@admin.register(LedgerAccount)
class LedgerAccountAdmin(TenantAdminMixin, admin.ModelAdmin):
    # show key accounting fields
    list_display = (
        "code",
        "name",
        "quarry",
        "category",
        "account_type",
        "is_debit_normal",
        "parent",
        "is_system_account",
        "is_active",
    )
    list_filter = ("quarry", "category", "is_system_account", "is_active")
    search_fields = ("code", "name")
    # accounts grouped by quarry, then in chart order
    ordering = ("quarry", "display_order", "code")
    fieldsets = (
        (
            None,
            {
                "fields": (
                    "quarry",
                    "code",
                    "name",
                    "category",
                    "account_type",
                    "parent",
                    "is_debit_normal",
                    "display_order",
                    "description",
                    "is_active",
                )
            },
        ),
        ("Audit", {"fields": ("is_system_account", "created_at", "created_by",
                              "modified_at", "modified_by")}),
    )
    readonly_fields = ("is_system_account", "created_at", "created_by",
                       "modified_at", "modified_by")

    def get_queryset(self, request):
        # TenantAdminMixin applies isolation
        qs = super().get_queryset(request)
        return qs.select_related("quarry", "parent")

    # Seeded accounts: view only
    def get_readonly_fields(self, request, obj=None):
        r = list(self.readonly_fields)
        if obj and obj.is_system_account:
            r += ["quarry", "code", "name", "category", "account_type",
                  "parent", "is_debit_normal", "is_active"]
        return r

    def has_delete_permission(self, request, obj=None):
        if obj and obj.is_system_account:
            return False
        return super().has_delete_permission(request, obj)
