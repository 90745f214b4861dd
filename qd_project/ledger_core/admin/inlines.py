from django.contrib import admin

from ledger_core.models import JournalEntryLine

from .mixins import TenantAdminMixin

# ---------- Helpful inline admin classes ----------


class JournalEntryLineInline(
    TenantAdminMixin,
    admin.TabularInline
    # shows related objects in table format (rows under parent form)
):
    """Show JournalEntryLine rows on JournalEntry page"""

    model = JournalEntryLine
    quarry_field = "journal__quarry"  # lines are scoped through their journal
    extra = 0  # don't show "empty" rows by default (prevents clutter)
    fields = ("line_number", "account", "debit", "credit", "memo", "is_active")
    ordering = ("line_number",)  # lines appear in entry order

    # Restrict account FK in dropdown
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("account")

    def get_readonly_fields(self, request, obj=None):
        # Once journal is `posted`, all its lines become completely locked
        if obj and obj.is_posted:
            return self.fields
        return ()

    def has_add_permission(self, request, obj=None):
        if obj and obj.is_posted:
            return False
        return super().has_add_permission(request, obj)

    def has_delete_permission(self, request, obj=None):
        if obj and obj.is_posted:
            return False
        return super().has_delete_permission(request, obj)
