from decimal import Decimal
from django.contrib import admin
from django.utils.html import format_html
from ledger_core.models import JournalEntry
from .actions import post_journal_entries
from .inlines import JournalEntryLineInline
from .mixins import TenantAdminMixin


# Register `JournalEntry` model
@admin.register(JournalEntry)
class JournalEntryAdmin(TenantAdminMixin, admin.ModelAdmin):
    """Basic admin display setup"""

    list_display = (
        "reference",
        "quarry",
        "entry_date",
        "entry_type",
        "status",
        "posted_at",
        "posted_by",
        "balanced",
    )
    list_filter = ("quarry", "status", "entry_type", "fiscal_year")
    search_fields = ("reference", "description", "source_id")
    date_hierarchy = "entry_date"
    readonly_fields = (
        "status",
        "posted_at",
        "posted_by",
        "total_debit",
        "total_credit",
        "reverses",
        "created_at",
        "created_by",
    )  # users can see but not edit these; posting goes through the action
    inlines = [
        JournalEntryLineInline
    ]  # allows editing lines directly on JournalEntry page
    actions = [
        post_journal_entries
    ]  # adds a bulk action ("Post selected journal entries") to list view

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("quarry", "posted_by")

    """ Computed column for balance check """
    # Show cached total debits / total credits for each journal
    def balanced(self, obj):
        # format: bold debits / small credits
        return format_html(
            "<b>{}</b> / <small>{}</small>",
            obj.total_debit or Decimal("0.00"),
            obj.total_credit or Decimal("0.00"),
        )

    # set column header in admin
    balanced.short_description = "Debits / Credits"

    """ Make entries immutable once posted """
    def get_readonly_fields(self, request, obj=None):
        r = list(self.readonly_fields)
        if obj and obj.is_posted:
            r += ["quarry", "entry_date", "reference", "description",
                  "entry_type", "source_type", "source_id", "is_active"]
        return r

    """ Keep cached totals in step with the inline lines """
    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        je = form.instance
        if not je.is_posted:
            je.refresh_totals()
            je.save(update_fields=["total_debit", "total_credit"])

    """ Prevent deletion after posting """
    def has_delete_permission(self, request, obj=None):
        if obj and obj.is_posted:
            return False  # If posted → deletion is blocked
        return super().has_delete_permission(request, obj)

    """ Restrict changes on posted journals """
    def has_change_permission(self, request, obj=None):
        # Posted journals are immutable for everyone; correct them by reversal
        if obj and obj.is_posted:
            return False
        return super().has_change_permission(request, obj)
