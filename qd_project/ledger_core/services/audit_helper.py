from typing import Optional
from ..models import AuditLog, Quarry


def log_action(
    *,
    action: str,
    instance,
    user=None,
    quarry: Optional[Quarry] = None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Writes inside the caller's transaction, so a rolled back
    operation leaves no audit row behind.
    """

    if quarry is None:
        # Quarry itself is the tenant; everything else points at one
        quarry = instance if isinstance(instance, Quarry) else getattr(instance, "quarry", None)

    # Anonymous users are recorded as "system"
    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    return AuditLog.objects.create(
        quarry=quarry,
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
