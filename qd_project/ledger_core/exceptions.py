class UnbalancedJournalError(Exception):
    """Raised when a JournalEntry fails double-entry balance check."""
    pass

class ClosedPeriodError(Exception):
    """Raised when a posting date falls inside a closed AccountingPeriod."""
    pass

class AlreadyPostedError(Exception):
    """Raised when a JournalEntry is posted, edited or deleted after posting."""
    pass

class PeriodStateError(Exception):
    """Raised when closing an already closed period, or reopening an open one."""
    pass

class SystemAccountError(Exception):
    """Raised when a protected system LedgerAccount would be changed or removed."""
    pass


# Expected business-rule failures; services turn these into failed results.
# results.BUSINESS_ERRORS adds django ValidationError to the list.
LEDGER_ERRORS = (
    UnbalancedJournalError,
    ClosedPeriodError,
    AlreadyPostedError,
    PeriodStateError,
    SystemAccountError,
)
