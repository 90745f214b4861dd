from django.urls import path

from . import views

app_name = "ledger"

urlpatterns = [
    path("accounts/", views.chart_of_accounts_view, name="chart-of-accounts"),
    path("initialize/", views.initialize_ledger_view, name="initialize"),
    path("journal-entries/", views.journal_entries_view, name="journal-entries"),
    path("journal-entries/<int:entry_id>/update/", views.journal_update_view, name="journal-update"),
    path("journal-entries/<int:entry_id>/post/", views.journal_post_view, name="journal-post"),
    path("journal-entries/<int:entry_id>/reverse/", views.journal_reverse_view, name="journal-reverse"),
    path("periods/", views.periods_view, name="periods"),
    path("periods/<int:period_id>/close/", views.period_close_view, name="period-close"),
    path("periods/<int:period_id>/reopen/", views.period_reopen_view, name="period-reopen"),
    path("reports/trial-balance/", views.trial_balance_view, name="trial-balance"),
    path("reports/profit-and-loss/", views.profit_and_loss_view, name="profit-and-loss"),
    path("reports/balance-sheet/", views.balance_sheet_view, name="balance-sheet"),
    path("reports/general-ledger/<str:code>/", views.general_ledger_view, name="general-ledger"),
]
