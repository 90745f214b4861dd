from django.conf import settings
from django.db import models
from django.utils import timezone


class AuditedModel(models.Model):
    """
    Shared soft-delete flag and who/when columns.
    The service layer calls stamp_audit() before every write;
    nothing is stamped implicitly on save().
    """

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    modified_at = models.DateTimeField(null=True, blank=True)
    modified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    class Meta:
        abstract = True

    def stamp_audit(self, user=None):
        """Fill created_* on first write, modified_* on later writes.
        Returns the field names touched, for save(update_fields=...)."""
        if self._state.adding:
            self.created_at = timezone.now()
            if user is not None:
                self.created_by = user
            return ["created_at", "created_by"]
        self.modified_at = timezone.now()
        self.modified_by = user
        return ["modified_at", "modified_by"]
