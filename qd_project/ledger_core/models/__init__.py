from .account import (ACCOUNT_TYPE_CATEGORY, AccountCategory, AccountType,
                      LedgerAccount, is_debit_normal_category)
from .auditlog import AuditLog
from .base import AuditedModel
from .journal import JournalEntry, JournalEntryLine
from .period import AccountingPeriod
from .tenant import Quarry, QuarryMembership
