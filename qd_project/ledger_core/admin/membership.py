from django.contrib import admin
from ledger_core.models import Quarry, QuarryMembership
from .actions import onboard_quarries
from .mixins import TenantAdminMixin


class QuarryMembershipInline(admin.TabularInline):
    model = QuarryMembership
    extra = 0
    fields = ("user", "role", "is_active")


# Register `Quarry` model in admin with this custom config
@admin.register(Quarry)
class QuarryAdmin(admin.ModelAdmin):
    """a clean admin table for browsing quarries and their fee settings"""

    # columns shown in quarry list view
    list_display = ("name", "slug", "loaders_fee", "land_rate_fee",
                    "rejects_fee", "is_active", "created_at")
    search_fields = ("name", "slug")  # enable search by name and slug
    prepopulated_fields = {"slug": ("name",)}
    ordering = ("name",)  # sort quarries alphabetically by default
    inlines = [QuarryMembershipInline]
    actions = [onboard_quarries]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        # Non-superusers only see quarries they belong to
        if request.user.is_superuser:
            return qs
        return qs.filter(memberships__user=request.user,
                         memberships__is_active=True).distinct()


# Register `QuarryMembership` model
@admin.register(QuarryMembership)
class QuarryMembershipAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("user", "quarry", "role", "is_active", "created_at")
    list_filter = ("quarry", "role", "is_active")
    search_fields = ("user__username", "user__email", "quarry__name")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("user", "quarry")
