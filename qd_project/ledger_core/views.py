import json
from datetime import MAXYEAR, MINYEAR
from decimal import Decimal, InvalidOperation
from functools import wraps

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .models import AccountingPeriod, JournalEntry, LedgerAccount
from .services.accounts import get_chart_of_accounts
from .services.balances import (get_balance_sheet, get_general_ledger,
                                get_profit_and_loss, get_trial_balance)
from .services.periods import close_period, list_periods, reopen_period, seed_periods
from .services.posting import (JournalLineSpec, create_journal_entry,
                               list_journal_entries, post_journal_entry,
                               reverse_journal_entry, update_journal_entry)
from .services.seeding import seed_chart_of_accounts

# Entry types a client may pick; auto and reversal are set by the ledger itself
CLIENT_ENTRY_TYPES = ("manual", "adjustment")


# ----------------------------
# Helpers
# ----------------------------
def quarry_required(*roles):
    """
    Reject requests without an active quarry (set by CurrentQuarryMiddleware).
    With roles given, the user's membership must carry one of them.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            quarry = getattr(request, "quarry", None)
            if quarry is None:
                return JsonResponse({"ok": False, "error": "No active quarry."}, status=403)
            if roles and not request.user.is_superuser:
                allowed = quarry.memberships.filter(
                    user=request.user, is_active=True, role__in=roles
                ).exists()
                if not allowed:
                    return JsonResponse({"ok": False, "error": "Permission denied."}, status=403)
            return view(request, *args, **kwargs)
        return wrapper
    return decorator


class BadRequest(Exception):
    """Malformed client input; rendered as a 400 by the views."""


def _payload(request):
    # JSON clients send a body, HTML forms send POST data
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            raise BadRequest("Invalid JSON body.")
        if not isinstance(data, dict):
            raise BadRequest("Invalid JSON body.")
        return data
    return request.POST.dict()


def _date(value, name, required=True):
    """
    "YYYY-MM-DD" → date. parse_date returns None for a malformed string
    and raises ValueError for an impossible one (2030-02-30).
    """
    if value in (None, ""):
        if required:
            raise BadRequest(f"{name} must be YYYY-MM-DD.")
        return None
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise BadRequest(f"{name} must be a valid YYYY-MM-DD date.")
    return parsed


def _fiscal_year(value, default=None):
    if value in (None, ""):
        return default
    try:
        year = int(value)
    except (TypeError, ValueError):
        year = 0
    if not MINYEAR <= year <= MAXYEAR:
        raise BadRequest("fiscal_year must be a year, e.g. 2025.")
    return year


def _lines(raw):
    if not isinstance(raw, list):
        raise BadRequest("lines must be a list.")
    try:
        return [
            JournalLineSpec(
                account=str(line["account"]),
                debit=Decimal(str(line.get("debit") or "0")),
                credit=Decimal(str(line.get("credit") or "0")),
                memo=line.get("memo", ""),
            )
            for line in raw
        ]
    except (AttributeError, KeyError, TypeError, InvalidOperation):
        raise BadRequest("Each line needs an account and numeric debit/credit.")


def bad_request_as_400(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except BadRequest as exc:
            return _bad_request(str(exc))
    return wrapper


def _bad_request(error):
    return JsonResponse({"ok": False, "error": error}, status=400)


def _result_response(result, **data):
    if not result.ok:
        return _bad_request(result.message)
    return JsonResponse({"ok": True, "message": result.message, **data})


def _entry_json(je, with_lines=False):
    data = {
        "id": je.pk,
        "reference": je.reference,
        "entry_date": je.entry_date.isoformat(),
        "description": je.description,
        "status": je.status,
        "entry_type": je.entry_type,
        "total_debit": str(je.total_debit),
        "total_credit": str(je.total_credit),
    }
    if with_lines:
        data["lines"] = [
            {"account": line.account.code, "debit": str(line.debit),
             "credit": str(line.credit), "memo": line.memo}
            for line in je.lines.all()
            if line.is_active
        ]
    return data


def _period_json(period):
    return {
        "id": period.pk,
        "name": period.name,
        "start_date": period.start_date.isoformat(),
        "end_date": period.end_date.isoformat(),
        "fiscal_year": period.fiscal_year,
        "period_number": period.period_number,
        "is_closed": period.is_closed,
        "closing_notes": period.closing_notes,
    }


def _statement_json(lines):
    return [{"code": s.code, "name": s.name, "amount": str(s.amount)} for s in lines]


# ----------------------------
# Chart of accounts
# ----------------------------
@require_GET
@quarry_required()
def chart_of_accounts_view(request):
    accounts = [
        {
            "code": a.code,
            "name": a.name,
            "category": a.category,
            "account_type": a.account_type,
            "parent": a.parent.code if a.parent_id else None,
            "is_debit_normal": a.is_debit_normal,
            "is_system_account": a.is_system_account,
        }
        for a in get_chart_of_accounts(request.quarry)
    ]
    return JsonResponse({"ok": True, "accounts": accounts})


@require_POST
@quarry_required("manager", "accountant")
@bad_request_as_400
def initialize_ledger_view(request):
    data = _payload(request)
    fiscal_year = _fiscal_year(data.get("fiscal_year"), default=timezone.localdate().year)

    accounts = seed_chart_of_accounts(request.quarry, user=request.user)
    periods = seed_periods(request.quarry, fiscal_year, user=request.user)
    return JsonResponse({"ok": True, "accounts_created": accounts,
                         "periods_created": periods})


# ----------------------------
# Journal entries
# ----------------------------
@require_http_methods(["GET", "POST"])
@quarry_required()
def journal_entries_view(request):
    if request.method == "POST":
        return journal_create_view(request)
    return journal_list_view(request)


@bad_request_as_400
def journal_list_view(request):
    date_from = _date(request.GET.get("from"), "from", required=False)
    date_to = _date(request.GET.get("to"), "to", required=False)
    status = request.GET.get("status") or None
    if status not in (None, "draft", "posted"):
        raise BadRequest("status must be draft or posted.")

    entries = list_journal_entries(request.quarry, date_from, date_to, status)
    return JsonResponse({"ok": True,
                         "entries": [_entry_json(je, with_lines=True) for je in entries]})


@quarry_required("manager", "accountant")
@bad_request_as_400
def journal_create_view(request):
    data = _payload(request)
    entry_date = _date(data.get("entry_date"), "entry_date")
    lines = _lines(data.get("lines") or [])
    entry_type = data.get("entry_type") or "manual"
    if entry_type not in CLIENT_ENTRY_TYPES:
        raise BadRequest(f"entry_type must be one of: {', '.join(CLIENT_ENTRY_TYPES)}.")

    result = create_journal_entry(
        request.quarry,
        entry_date,
        data.get("description", ""),
        lines,
        entry_type=entry_type,
        user=request.user,
        post=bool(data.get("post")),
    )
    if not result.ok:
        return _bad_request(result.message)
    return JsonResponse({"ok": True, "entry": _entry_json(result.value)}, status=201)


@require_POST
@quarry_required("manager", "accountant")
@bad_request_as_400
def journal_update_view(request, entry_id):
    je = get_object_or_404(JournalEntry, pk=entry_id, quarry=request.quarry)
    data = _payload(request)
    result = update_journal_entry(
        je.pk,
        user=request.user,
        entry_date=_date(data.get("entry_date"), "entry_date", required=False),
        description=data.get("description"),
        lines=_lines(data["lines"]) if "lines" in data else None,
    )
    return _result_response(result, entry=_entry_json(result.value) if result.ok else None)


@require_POST
@quarry_required("manager", "accountant")
def journal_post_view(request, entry_id):
    # 404 for entries of other quarries, same as missing ones
    je = get_object_or_404(JournalEntry, pk=entry_id, quarry=request.quarry)
    result = post_journal_entry(je.pk, user=request.user)
    return _result_response(result, entry=_entry_json(result.value) if result.ok else None)


@require_POST
@quarry_required("manager")
@bad_request_as_400
def journal_reverse_view(request, entry_id):
    je = get_object_or_404(JournalEntry, pk=entry_id, quarry=request.quarry)
    data = _payload(request)
    entry_date = _date(data.get("entry_date"), "entry_date", required=False)
    result = reverse_journal_entry(je.pk, user=request.user, entry_date=entry_date)
    return _result_response(result, entry=_entry_json(result.value) if result.ok else None)


# ----------------------------
# Periods
# ----------------------------
@require_GET
@quarry_required()
@bad_request_as_400
def periods_view(request):
    fiscal_year = _fiscal_year(request.GET.get("fiscal_year"))
    periods = list_periods(request.quarry, fiscal_year)
    return JsonResponse({"ok": True, "periods": [_period_json(p) for p in periods]})


@require_POST
@quarry_required("manager")
@bad_request_as_400
def period_close_view(request, period_id):
    period = get_object_or_404(AccountingPeriod, pk=period_id, quarry=request.quarry)
    data = _payload(request)
    result = close_period(period.pk, request.user, notes=data.get("notes"))
    return _result_response(result, period=_period_json(result.value) if result.ok else None)


@require_POST
@quarry_required("manager")
def period_reopen_view(request, period_id):
    period = get_object_or_404(AccountingPeriod, pk=period_id, quarry=request.quarry)
    result = reopen_period(period.pk, request.user)
    return _result_response(result, period=_period_json(result.value) if result.ok else None)


# ----------------------------
# Reports
# ----------------------------
@require_GET
@quarry_required()
@bad_request_as_400
def trial_balance_view(request):
    as_of = _date(request.GET.get("as_of"), "as_of", required=False) or timezone.localdate()

    report = get_trial_balance(request.quarry, as_of)
    return JsonResponse({
        "ok": True,
        "as_of": as_of.isoformat(),
        "rows": [
            {"code": r.code, "name": r.name, "category": r.category,
             "debit": str(r.debit), "credit": str(r.credit)}
            for r in report.rows
        ],
        "total_debit": str(report.total_debit),
        "total_credit": str(report.total_credit),
        "is_balanced": report.is_balanced,
    })


@require_GET
@quarry_required()
@bad_request_as_400
def profit_and_loss_view(request):
    today = timezone.localdate()
    date_to = _date(request.GET.get("to"), "to", required=False) or today
    # default: year to date
    date_from = (_date(request.GET.get("from"), "from", required=False)
                 or date_to.replace(month=1, day=1))
    if date_from > date_to:
        raise BadRequest("from must not be after to.")

    report = get_profit_and_loss(request.quarry, date_from, date_to)
    return JsonResponse({
        "ok": True,
        "from": date_from.isoformat(),
        "to": date_to.isoformat(),
        "revenue": _statement_json(report.revenue),
        "cost_of_sales": _statement_json(report.cost_of_sales),
        "expenses": _statement_json(report.expenses),
        "total_revenue": str(report.total_revenue),
        "gross_profit": str(report.gross_profit),
        "total_expenses": str(report.total_expenses),
        "net_profit": str(report.net_profit),
    })


@require_GET
@quarry_required()
@bad_request_as_400
def balance_sheet_view(request):
    as_of = _date(request.GET.get("as_of"), "as_of", required=False) or timezone.localdate()

    report = get_balance_sheet(request.quarry, as_of)
    return JsonResponse({
        "ok": True,
        "as_of": as_of.isoformat(),
        "current_assets": _statement_json(report.current_assets),
        "non_current_assets": _statement_json(report.non_current_assets),
        "current_liabilities": _statement_json(report.current_liabilities),
        "non_current_liabilities": _statement_json(report.non_current_liabilities),
        "equity": _statement_json(report.equity),
        "retained_profit": str(report.retained_profit),
        "current_year_profit": str(report.current_year_profit),
        "total_assets": str(report.total_assets),
        "total_liabilities": str(report.total_liabilities),
        "total_equity": str(report.total_equity),
        "is_balanced": report.is_balanced,
    })


@require_GET
@quarry_required()
@bad_request_as_400
def general_ledger_view(request, code):
    account = get_object_or_404(LedgerAccount, quarry=request.quarry, code=code)
    today = timezone.localdate()
    date_to = _date(request.GET.get("to"), "to", required=False) or today
    date_from = (_date(request.GET.get("from"), "from", required=False)
                 or date_to.replace(day=1))
    if date_from > date_to:
        raise BadRequest("from must not be after to.")

    report = get_general_ledger(account, date_from, date_to)
    return JsonResponse({
        "ok": True,
        "account": {"code": account.code, "name": account.name},
        "from": date_from.isoformat(),
        "to": date_to.isoformat(),
        "opening_balance": str(report.opening_balance),
        "rows": [
            {"entry_date": r.entry_date.isoformat(), "reference": r.reference,
             "description": r.description, "debit": str(r.debit),
             "credit": str(r.credit), "running_balance": str(r.running_balance)}
            for r in report.rows
        ],
        "closing_balance": str(report.closing_balance),
    })
