class TenantAdminMixin:
    """
    Enforce tenant isolation in Django admin.
    Uses request.quarry (set by CurrentQuarryMiddleware).
    Superusers see every quarry.
    """

    # lookup from this admin's model to its Quarry
    quarry_field = "quarry"

    def _get_request_quarry(self, request):
        return getattr(request, "quarry", None)

    def get_queryset(self, request):
        qs = super().get_queryset(request)

        # If superuser, show everything;
        # otherwise restrict to the active quarry
        if request.user.is_superuser:
            return qs
        quarry = self._get_request_quarry(request)
        if quarry is None:
            # If no quarry available in request, return none
            return qs.none()
        return qs.filter(**{self.quarry_field: quarry})

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """
        Restrict foreignkey dropdowns to the current quarry:
        the quarry field itself, and any quarry-scoped model
        (ledger accounts, parent accounts, journals...).
        """
        if not request.user.is_superuser:
            quarry = self._get_request_quarry(request)
            rel_model = db_field.related_model

            if db_field.name == "quarry":
                kwargs["queryset"] = (
                    rel_model.objects.filter(pk=quarry.pk)
                    if quarry is not None else rel_model.objects.none()
                )
            elif any(f.name == "quarry" for f in rel_model._meta.get_fields()):
                kwargs["queryset"] = (
                    rel_model.objects.filter(quarry=quarry)
                    if quarry is not None else rel_model.objects.none()
                )

        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # Ensure object is always owned by the active quarry (unless superuser)
        if not request.user.is_superuser and self.quarry_field == "quarry":
            quarry = self._get_request_quarry(request)
            if quarry is not None:
                obj.quarry = quarry
        # Audited models get who/when stamped on every admin write
        if hasattr(obj, "stamp_audit"):
            obj.stamp_audit(request.user)
        super().save_model(request, obj, form, change)
