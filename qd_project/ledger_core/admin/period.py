from django.contrib import admin

from ledger_core.models import AccountingPeriod

from .actions import close_periods
from .mixins import TenantAdminMixin


# Register `AccountingPeriod` model
@admin.register(AccountingPeriod)
class AccountingPeriodAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "name", "quarry", "fiscal_year", "period_number",
        "start_date", "end_date", "is_closed", "closed_by")
    list_filter = ("quarry", "fiscal_year", "is_closed")
    search_fields = ("name",)
    # Closing goes through the action so it is locked, logged and audited
    readonly_fields = ("is_closed", "closed_by", "closed_at")
    actions = [close_periods]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("quarry", "closed_by")
