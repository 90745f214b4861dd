from django.db import models

# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a quarry
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_quarry(self, quarry):         # Add queryset helper
        return self.filter(quarry=quarry) # Apply filter

    def active(self, quarry):
        return self.filter(
                            quarry=quarry,   # enforce tenant scoping
                            is_active=True   # only fetch active records
                        )
    # Enables query:
    # LedgerAccount.objects.active(request.quarry)


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    # every model using TenantManager can call:
    # JournalEntry.objects.for_quarry(request.quarry)
    pass


# Journal lines are scoped through their parent journal
class JournalLineQuerySet(models.QuerySet):
    def for_quarry(self, quarry):
        return self.filter(journal__quarry=quarry)

    def posted(self):
        # only lines of active, posted journals count towards balances
        return self.filter(
            is_active=True,
            journal__is_active=True,
            journal__status="posted",
        )


class JournalLineManager(models.Manager.from_queryset(JournalLineQuerySet)):
    pass
