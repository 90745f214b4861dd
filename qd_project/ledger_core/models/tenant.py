from django.conf import settings
from django.db import models


# ---------- Tenant / Quarry ----------
class Quarry(models.Model):

    """Tenant: one quarry site with its own books"""
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True
    )

    # Per-unit fees charged on every sale (feed the fee calculator)
    loaders_fee = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True)
    land_rate_fee = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True)
    # Land rate override for reject products
    rejects_fee = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "quarries"

    def __str__(self):
        return self.name


# ---------- QuarryMembership ----------
class QuarryMembership(models.Model):  # join model between User and Quarry

    ROLE_CHOICES = [
        ("manager", "Manager"),        # closes periods, reverses entries
        ("accountant", "Accountant"),  # can post journals
        ("clerk", "Clerk"),            # records sales and expenses
        ("viewer", "Viewer"),          # read-only access
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="quarry_memberships",
    )
    quarry = models.ForeignKey(
        Quarry, on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default="viewer",  # safe, read-only
    )
    # Suspend access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["user", "quarry"], name="uq_user_quarry_membership"
            ),
        ]
        indexes = [
            models.Index(fields=["quarry", "user"], name="qm_quarry_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.quarry} ({self.role})"
