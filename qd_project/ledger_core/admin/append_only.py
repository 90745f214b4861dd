from django.contrib import admin
from django.core.exceptions import PermissionDenied


class AppendOnlyAdmin(admin.ModelAdmin):
    """
    Rows the ledger services write and nobody edits afterwards.
    Django renders the change form read-only when change permission
    is refused, so the admin is a viewer only.
    """

    list_per_page = 50
    date_hierarchy = "created_at"
    search_fields = ("action", "object_type", "object_id", "user__username")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def get_actions(self, request):
        # no bulk actions on history
        return {}

    def get_list_filter(self, request):
        filters = ("action", "object_type", "created_at")
        # Only superusers see more than one quarry
        if request.user.is_superuser:
            return ("quarry", *filters)
        return filters

    def save_model(self, request, obj, form, change):
        raise PermissionDenied("The audit trail is written by the ledger, not the admin.")
