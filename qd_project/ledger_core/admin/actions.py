from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from ledger_core.services.periods import close_period
from ledger_core.services.posting import post_journal_entry
from ledger_core.tasks import onboard_quarry

# ---------- Admin actions ----------


def _report(modeladmin, request, results, verb):
    """One error message per failure plus a summary line."""
    failures = [(obj, result) for obj, result in results if not result.ok]
    for obj, result in failures:
        modeladmin.message_user(
            request,
            _("Could not %(verb)s %(obj)s: %(err)s") % {"verb": verb, "obj": obj, "err": result.message},
            level=messages.ERROR,
        )
    modeladmin.message_user(
        request,
        _("%(verb)s %(ok)d of %(total)d. %(failures)d failed.") % {
            "verb": verb.capitalize(),
            "ok": len(results) - len(failures),
            "total": len(results),
            "failures": len(failures),
        },
        level=messages.SUCCESS if not failures else messages.WARNING,
    )


@admin.action(description=_("Post selected journal entries (make immutable)"))
# Bulk-post multiple journal entries from Django admin list view
def post_journal_entries(
    modeladmin,  # `ModelAdmin` class for JournalEntry
    request,  # HTTP request object
    queryset,  # record what admin selected from list view
):
    """
    Post each selected draft through the posting service.
    Every entry gets its own transaction, so one unbalanced
    draft doesn't stop the rest of the batch.
    """
    # Only attempt to post entries which are not already posted.
    candidates = queryset.filter(status="draft", is_active=True)
    results = [(je, post_journal_entry(je.pk, user=request.user)) for je in candidates]
    _report(modeladmin, request, results, "post")


@admin.action(description=_("Close selected periods"))
def close_periods(modeladmin, request, queryset):
    results = [
        (period, close_period(period.pk, request.user, notes="Closed from admin"))
        for period in queryset.filter(is_closed=False).order_by("start_date")
    ]
    _report(modeladmin, request, results, "close")


@admin.action(description=_("Seed chart of accounts and periods"))
def onboard_quarries(modeladmin, request, queryset):
    # Runs on the Celery worker; inline when CELERY_TASK_ALWAYS_EAGER
    for quarry in queryset.filter(is_active=True):
        onboard_quarry.delay(quarry.pk)
    modeladmin.message_user(request, _("Onboarding queued."), level=messages.SUCCESS)
