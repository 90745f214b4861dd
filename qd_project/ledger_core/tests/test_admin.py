from django.contrib import admin
from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied
from django.test import RequestFactory, TestCase

from ledger_core.models import AuditLog
from ledger_core.services.audit_helper import log_action

from .utils import make_member, make_quarry


class AuditLogAdminTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()
        self.other = make_quarry("Mlolongo Quarry")
        self.model_admin = admin.site._registry[AuditLog]
        self.staff = make_member(self.quarry, username="clerk")
        self.staff.is_staff = True
        self.staff.save()
        self.root = get_user_model().objects.create_superuser(
            username="root", password="pw-12345", email="root@example.com")

    def request(self, user, quarry=None):
        request = RequestFactory().get("/admin/ledger_core/auditlog/")
        request.user = user
        request.quarry = quarry
        return request

    def test_trail_cannot_be_edited_from_the_admin(self):
        request = self.request(self.root)
        log = AuditLog.objects.for_quarry(self.quarry).first()

        self.assertFalse(self.model_admin.has_add_permission(request))
        self.assertFalse(self.model_admin.has_change_permission(request, log))
        self.assertFalse(self.model_admin.has_delete_permission(request, log))
        self.assertEqual(self.model_admin.get_actions(request), {})
        with self.assertRaises(PermissionDenied):
            self.model_admin.save_model(request, log, None, True)

    def test_staff_see_only_their_quarry(self):
        log_action(action="note", instance=self.other)

        rows = self.model_admin.get_queryset(self.request(self.staff, self.quarry))

        self.assertTrue(rows.exists())
        self.assertFalse(rows.exclude(quarry=self.quarry).exists())
        self.assertNotIn("quarry", self.model_admin.get_list_filter(self.request(self.staff)))

    def test_superuser_can_filter_by_quarry(self):
        request = self.request(self.root)
        self.assertEqual(self.model_admin.get_list_filter(request)[0], "quarry")
        self.assertEqual(self.model_admin.get_queryset(request).count(), AuditLog.objects.count())
