from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .exceptions import SystemAccountError
from .models import AccountingPeriod, JournalEntry, JournalEntryLine, LedgerAccount

"""Block deletion of seeded system accounts."""


# pre_delete signal auto-fires just before Django deletes a model instance
# it's connected to the LedgerAccount model
@receiver(pre_delete, sender=LedgerAccount)
def prevent_delete_system_account(sender, instance, **kwargs):
    if instance.is_system_account:
        raise SystemAccountError(
            f"Account {instance.code} is a system account and cannot be deleted.")


"""Block deletion if account has ever been used in a journal line."""


@receiver(pre_delete, sender=LedgerAccount)
def prevent_delete_account_with_journal_lines(sender, instance, **kwargs):
    if JournalEntryLine.objects.filter(account=instance).exists():
        raise ValidationError("Cannot delete account used in journal lines.")


"""Block deletion if period has posted journals."""


@receiver(pre_delete, sender=AccountingPeriod)
def prevent_delete_period_with_posted_journals(sender, instance, **kwargs):
    # Journals don't point at periods; the date range decides membership
    if JournalEntry.objects.filter(
        quarry_id=instance.quarry_id,
        status="posted",
        entry_date__gte=instance.start_date,
        entry_date__lte=instance.end_date,
    ).exists():
        raise ValidationError(
            "Cannot delete a period with posted journal entries.")
