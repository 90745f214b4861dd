from django.utils.deprecation import MiddlewareMixin
from .models import Quarry


class CurrentQuarryMiddleware(MiddlewareMixin):
    # Run on every request and
    # attach a .quarry attribute to the request, based on the logged-in user
    def process_request(self, request):
        request.quarry = None
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated:
            # Unauthenticated users
            return

        memberships = Quarry.objects.filter(
            is_active=True,
            memberships__user=user,
            memberships__is_active=True,
        )

        # If user switched quarries,
        # choice is stored in the session as "active_quarry_id"
        quarry_id = request.session.get("active_quarry_id")
        if quarry_id:
            # ensure security: user must be an active member of that quarry,
            # so a tampered session can't "jump" into another quarry
            request.quarry = memberships.filter(pk=quarry_id).first()
            return

        # Default quarry fallback: the user's first active membership
        request.quarry = memberships.order_by("pk").first()
