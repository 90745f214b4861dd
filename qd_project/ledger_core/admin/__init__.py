from .account import LedgerAccountAdmin
from .actions import close_periods, onboard_quarries, post_journal_entries
from .auditlog import AuditLogAdmin
from .inlines import JournalEntryLineInline
from .journal import JournalEntryAdmin
from .membership import QuarryAdmin, QuarryMembershipAdmin
from .mixins import TenantAdminMixin
from .period import AccountingPeriodAdmin
