from django.conf import settings  # To access global project settings
from django.db import models
from ..managers import TenantManager
from .tenant import Quarry


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # accountability across the ledger

    # Nullable for system-wide events (e.g. seeding every quarry)
    quarry = models.ForeignKey(
        Quarry,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # Nullable when the action was automated (celery task, seed command)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    action = models.CharField(
        max_length=50
    )  # seed, post, reverse, close, reopen, ...
    object_type = models.CharField(max_length=100)  # "JournalEntry", "AccountingPeriod"
    object_id = models.CharField(max_length=100)
    # before/after details, in JSON format
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["quarry", "user"], name="al_quarry_user_idx"),
            models.Index(fields=["quarry", "created_at"], name="al_quarry_created_idx"),
        ]

    def __str__(self):
        return f"[{self.created_at:%Y-%m-%d %H:%M}] {self.user} {self.action} {self.object_type}({self.object_id})"
