import datetime
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from ledger_core.exceptions import AlreadyPostedError, UnbalancedJournalError
from ledger_core.models import AuditLog, JournalEntry, JournalEntryLine, LedgerAccount
from ledger_core.services.accounts import get_account_by_code
from ledger_core.services.periods import close_period, seed_periods
from ledger_core.services.posting import (JournalLineSpec, create_journal_entry,
                                          delete_journal_entry,
                                          list_journal_entries,
                                          post_journal_entry,
                                          reverse_journal_entry,
                                          update_journal_entry)

from .utils import OPEN_DAY, cash_sale_lines, make_member, make_quarry

""" Success tests """
class JournalEntrySuccessTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()
        self.user = make_member(self.quarry)
        self.cash = get_account_by_code(self.quarry, "1000")
        self.revenue = get_account_by_code(self.quarry, "4000")

    def test_create_leaves_a_balanced_draft(self):
        result = create_journal_entry(self.quarry, OPEN_DAY, "Cash sale", cash_sale_lines())

        self.assertTrue(result.ok, result.message)
        je = result.value
        self.assertEqual(je.status, "draft")
        self.assertEqual(je.total_debit, Decimal("100.00"))
        self.assertEqual(je.total_credit, Decimal("100.00"))
        self.assertTrue(je.is_balanced)
        # fiscal columns follow the entry date
        self.assertEqual((je.fiscal_year, je.fiscal_period), (2030, 7))
        self.assertEqual(
            list(je.lines.values_list("line_number", flat=True)), [1, 2])

    """ Test Balanced Entry """
    def test_balanced_entry_posts_successfully(self):
        je = create_journal_entry(self.quarry, OPEN_DAY, "Cash sale", cash_sale_lines()).value

        result = post_journal_entry(je.pk, user=self.user)

        self.assertTrue(result.ok, result.message)
        je.refresh_from_db()
        self.assertEqual(je.status, "posted")
        self.assertEqual(je.posted_by, self.user)
        self.assertIsNotNone(je.posted_at)

    def test_create_with_post_flag_posts_immediately(self):
        result = create_journal_entry(self.quarry, OPEN_DAY, "Cash sale",
                                      cash_sale_lines(), post=True)
        self.assertTrue(result.ok, result.message)
        self.assertTrue(result.value.is_posted)

    def test_accepted_entries_balance_exactly(self):
        lines = [
            JournalLineSpec(account="1000", debit=Decimal("33.33")),
            JournalLineSpec(account="1010", debit=Decimal("66.67")),
            JournalLineSpec(account="4000", credit=Decimal("100.00")),
        ]
        je = create_journal_entry(self.quarry, OPEN_DAY, "Split", lines, post=True).value
        debits = sum(je.lines.values_list("debit", flat=True))
        credits = sum(je.lines.values_list("credit", flat=True))
        self.assertEqual(debits, credits)

    def test_references_count_entries_of_the_year(self):
        first = create_journal_entry(self.quarry, OPEN_DAY, "a", cash_sale_lines()).value
        second = create_journal_entry(self.quarry, OPEN_DAY, "b", cash_sale_lines(),
                                      reference_prefix="SL").value
        next_year = create_journal_entry(self.quarry, datetime.date(2031, 1, 5), "c",
                                         cash_sale_lines()).value

        self.assertEqual(first.reference, "ADJ-2030-00001")
        self.assertEqual(second.reference, "SL-2030-00002")
        self.assertEqual(next_year.reference, "ADJ-2031-00001")

    def test_reverse_posts_mirror_entry(self):
        original = create_journal_entry(self.quarry, OPEN_DAY, "Cash sale",
                                         cash_sale_lines(), post=True).value

        result = reverse_journal_entry(original.pk, user=self.user,
                                       entry_date=datetime.date(2030, 8, 1))

        self.assertTrue(result.ok, result.message)
        reversal = result.value
        self.assertTrue(reversal.is_posted)
        self.assertEqual(reversal.entry_type, "reversal")
        self.assertEqual(reversal.reverses, original)
        self.assertTrue(reversal.reference.startswith("REV-2030-"))
        cash_line = reversal.lines.get(account=self.cash)
        self.assertEqual((cash_line.debit, cash_line.credit), (Decimal("0.00"), Decimal("100.00")))
        revenue_line = reversal.lines.get(account=self.revenue)
        self.assertEqual(revenue_line.debit, Decimal("100.00"))

    def test_delete_draft_is_soft(self):
        je = create_journal_entry(self.quarry, OPEN_DAY, "typo", cash_sale_lines()).value

        result = delete_journal_entry(je.pk, user=self.user)

        self.assertTrue(result.ok, result.message)
        je.refresh_from_db()
        self.assertFalse(je.is_active)
        self.assertEqual(je.modified_by, self.user)
        self.assertFalse(je.lines.filter(is_active=True).exists())


""" Failure tests """
class JournalEntryFailureTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()
        self.user = make_member(self.quarry)
        self.cash = get_account_by_code(self.quarry, "1000")

    """ Test for Unbalanced Entry """
    def test_unbalanced_entry_is_rejected(self):
        lines = [
            JournalLineSpec(account="1000", debit=Decimal("100.00")),
            JournalLineSpec(account="4000", credit=Decimal("90.00")),
        ]
        result = create_journal_entry(self.quarry, OPEN_DAY, "bad", lines)

        self.assertFalse(result.ok)
        self.assertIn("not balanced", result.message)
        # nothing persisted
        self.assertFalse(JournalEntry.objects.for_quarry(self.quarry).exists())

    def test_entry_without_lines_is_rejected(self):
        result = create_journal_entry(self.quarry, OPEN_DAY, "empty", [])
        self.assertFalse(result.ok)

    def test_line_with_both_sides_is_rejected(self):
        lines = [
            JournalLineSpec(account="1000", debit=Decimal("10"), credit=Decimal("10")),
        ]
        result = create_journal_entry(self.quarry, OPEN_DAY, "both", lines)
        self.assertFalse(result.ok)
        self.assertIn("exactly one", result.message)

    def test_negative_amount_is_rejected(self):
        lines = [
            JournalLineSpec(account="1000", debit=Decimal("-10")),
            JournalLineSpec(account="4000", credit=Decimal("-10")),
        ]
        self.assertFalse(create_journal_entry(self.quarry, OPEN_DAY, "neg", lines).ok)

    def test_unknown_account_code_is_rejected(self):
        result = create_journal_entry(self.quarry, OPEN_DAY, "x",
                                      cash_sale_lines(credit_code="9999"))
        self.assertFalse(result.ok)
        self.assertIn("9999", result.message)

    def test_account_of_another_quarry_is_rejected(self):
        other = make_quarry("Mlolongo Quarry")
        foreign_revenue = get_account_by_code(other, "4000")
        lines = [
            JournalLineSpec(account=self.cash, debit=Decimal("50")),
            JournalLineSpec(account=foreign_revenue, credit=Decimal("50")),
        ]
        result = create_journal_entry(self.quarry, OPEN_DAY, "leak", lines)

        self.assertFalse(result.ok)
        self.assertIn("another quarry", result.message)

    def test_inactive_account_is_rejected(self):
        LedgerAccount.objects.filter(quarry=self.quarry, code="4000").update(is_active=False)
        result = create_journal_entry(self.quarry, OPEN_DAY, "x", cash_sale_lines())
        self.assertFalse(result.ok)
        self.assertIn("inactive", result.message)

    def test_entry_dated_in_closed_period_is_rejected(self):
        # January to June 2030 are created closed
        seed_periods(self.quarry, 2030, today=datetime.date(2030, 7, 1))

        result = create_journal_entry(self.quarry, datetime.date(2030, 3, 10), "late",
                                      cash_sale_lines())

        self.assertFalse(result.ok)
        self.assertIn("closed period", result.message)

    def test_posting_rechecks_period_closed_after_draft(self):
        seed_periods(self.quarry, 2030, today=datetime.date(2030, 7, 1))
        je = create_journal_entry(self.quarry, OPEN_DAY, "draft", cash_sale_lines()).value
        july = self.quarry.periods.get(fiscal_year=2030, period_number=7)
        self.assertTrue(close_period(july.pk, self.user).ok)

        result = post_journal_entry(je.pk, user=self.user)

        self.assertFalse(result.ok)
        je.refresh_from_db()
        self.assertEqual(je.status, "draft")

    def test_post_twice_fails(self):
        je = create_journal_entry(self.quarry, OPEN_DAY, "x", cash_sale_lines(), post=True).value
        result = post_journal_entry(je.pk, user=self.user)
        self.assertFalse(result.ok)
        self.assertIn("already posted", result.message)

    def test_model_post_rejects_unbalanced_lines_added_to_draft(self):
        je = create_journal_entry(self.quarry, OPEN_DAY, "x", cash_sale_lines()).value
        # drafts still accept lines
        JournalEntryLine(journal=je, account=self.cash, debit=Decimal("5.00"), line_number=3).save()

        with self.assertRaises(UnbalancedJournalError) as cm:
            je.post(user=self.user)

        self.assertIn("Journal not balanced", str(cm.exception))
        je.refresh_from_db()
        self.assertEqual(je.status, "draft")
        self.assertIsNone(je.posted_at)

    def test_line_rejects_account_from_other_quarry(self):
        je = create_journal_entry(self.quarry, OPEN_DAY, "x", cash_sale_lines()).value
        other = make_quarry("Mlolongo Quarry")
        with self.assertRaises(ValidationError):
            JournalEntryLine(journal=je, account=get_account_by_code(other, "1000"),
                             debit=Decimal("1.00")).save()
        self.assertEqual(je.lines.count(), 2)

    def test_reverse_draft_fails(self):
        je = create_journal_entry(self.quarry, OPEN_DAY, "x", cash_sale_lines()).value
        self.assertFalse(reverse_journal_entry(je.pk, user=self.user).ok)

    def test_reverse_only_once(self):
        je = create_journal_entry(self.quarry, OPEN_DAY, "x", cash_sale_lines(), post=True).value
        self.assertTrue(reverse_journal_entry(je.pk, user=self.user, entry_date=OPEN_DAY).ok)

        result = reverse_journal_entry(je.pk, user=self.user, entry_date=OPEN_DAY)

        self.assertFalse(result.ok)
        self.assertIn("already been reversed", result.message)

    def test_delete_posted_or_generated_entry_fails(self):
        posted = create_journal_entry(self.quarry, OPEN_DAY, "x", cash_sale_lines(), post=True).value
        auto = create_journal_entry(self.quarry, OPEN_DAY, "y", cash_sale_lines(),
                                    entry_type="auto").value

        self.assertFalse(delete_journal_entry(posted.pk, user=self.user).ok)
        self.assertFalse(delete_journal_entry(auto.pk, user=self.user).ok)

    def test_missing_entry_is_a_failed_result(self):
        self.assertFalse(post_journal_entry(999999).ok)


class JournalEntryFreezeTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()
        self.je = create_journal_entry(self.quarry, OPEN_DAY, "frozen",
                                       cash_sale_lines(), post=True).value

    def test_posted_line_cannot_be_changed(self):
        line = self.je.lines.order_by("pk").first()
        original_debit = line.debit
        line.debit = original_debit + Decimal("50.00")

        with self.assertRaises(AlreadyPostedError):
            line.save()

        line.refresh_from_db()
        self.assertEqual(line.debit, original_debit)

    def test_posted_entry_cannot_take_new_lines(self):
        with self.assertRaises(AlreadyPostedError):
            JournalEntryLine(journal=self.je, account=self.je.lines.first().account,
                             debit=Decimal("1.00"), line_number=3).save()

    def test_posted_line_cannot_be_deleted(self):
        line = self.je.lines.first()
        with self.assertRaises(AlreadyPostedError):
            line.delete()
        self.assertTrue(self.je.lines.filter(pk=line.pk).exists())

    def test_posted_header_cannot_be_edited(self):
        je = JournalEntry.objects.get(pk=self.je.pk)
        je.description = "rewritten history"
        with self.assertRaises(ValidationError):
            je.save()

    def test_posted_entry_cannot_be_deleted(self):
        with self.assertRaises(AlreadyPostedError):
            self.je.delete()


class JournalAmountInputTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()

    def test_non_finite_amounts_are_rejected(self):
        for raw in ("NaN", "sNaN", "Infinity", "-Infinity"):
            with self.subTest(amount=raw):
                lines = [
                    JournalLineSpec(account="1000", debit=Decimal(raw)),
                    JournalLineSpec(account="4000", credit=Decimal("100.00")),
                ]
                result = create_journal_entry(self.quarry, OPEN_DAY, "odd", lines)

                self.assertFalse(result.ok)
                self.assertIn("is not an amount", result.message)
        self.assertFalse(JournalEntry.objects.for_quarry(self.quarry).exists())

    def test_text_amount_is_rejected(self):
        lines = [
            JournalLineSpec(account="1000", debit="a lot"),
            JournalLineSpec(account="4000", credit=Decimal("100.00")),
        ]
        result = create_journal_entry(self.quarry, OPEN_DAY, "odd", lines)
        self.assertFalse(result.ok)


class JournalEntryUpdateTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()
        self.user = make_member(self.quarry)
        self.je = create_journal_entry(self.quarry, OPEN_DAY, "Cash sale",
                                       cash_sale_lines()).value

    def test_update_date_moves_fiscal_columns(self):
        result = update_journal_entry(self.je.pk, user=self.user,
                                      entry_date=datetime.date(2030, 9, 2),
                                      description="Cash sale, September")

        self.assertTrue(result.ok, result.message)
        self.je.refresh_from_db()
        self.assertEqual(self.je.entry_date, datetime.date(2030, 9, 2))
        self.assertEqual((self.je.fiscal_year, self.je.fiscal_period), (2030, 9))
        self.assertEqual(self.je.description, "Cash sale, September")
        self.assertEqual(self.je.modified_by, self.user)

    def test_update_lines_replaces_them(self):
        reference = self.je.reference

        result = update_journal_entry(self.je.pk, lines=cash_sale_lines("75.00", credit_code="4010"))

        self.assertTrue(result.ok, result.message)
        self.je.refresh_from_db()
        self.assertEqual(self.je.total_debit, Decimal("75.00"))
        self.assertEqual(self.je.total_credit, Decimal("75.00"))
        self.assertEqual(self.je.reference, reference)
        self.assertEqual(
            [(line.account.code, line.line_number) for line in self.je.lines.order_by("line_number")],
            [("1000", 1), ("4010", 2)])

    def test_update_is_audited(self):
        update_journal_entry(self.je.pk, user=self.user, description="renamed")
        log = AuditLog.objects.for_quarry(self.quarry).get(action="update", object_id=str(self.je.pk))
        self.assertEqual(log.changes["before"]["description"], "Cash sale")
        self.assertEqual(log.changes["after"]["description"], "renamed")

    def test_unbalanced_lines_leave_the_entry_untouched(self):
        lines = [
            JournalLineSpec(account="1000", debit=Decimal("80.00")),
            JournalLineSpec(account="4000", credit=Decimal("70.00")),
        ]
        result = update_journal_entry(self.je.pk, lines=lines, description="changed")

        self.assertFalse(result.ok)
        self.je.refresh_from_db()
        self.assertEqual(self.je.description, "Cash sale")
        self.assertEqual(self.je.total_debit, Decimal("100.00"))
        self.assertEqual(self.je.lines.count(), 2)

    def test_posted_entry_cannot_be_updated(self):
        post_journal_entry(self.je.pk)

        result = update_journal_entry(self.je.pk, description="too late")

        self.assertFalse(result.ok)
        self.assertIn("posted", result.message)

    def test_generated_entry_cannot_be_updated(self):
        auto = create_journal_entry(self.quarry, OPEN_DAY, "sale", cash_sale_lines(),
                                    entry_type="auto", source_type="sale",
                                    source_id="S-9").value
        result = update_journal_entry(auto.pk, description="edited")
        self.assertFalse(result.ok)

    def test_update_into_closed_period_is_rejected(self):
        # January to June 2030 are created closed
        seed_periods(self.quarry, 2030, today=datetime.date(2030, 7, 1))

        result = update_journal_entry(self.je.pk, entry_date=datetime.date(2030, 3, 10))

        self.assertFalse(result.ok)
        self.assertIn("closed period", result.message)
        self.je.refresh_from_db()
        self.assertEqual(self.je.entry_date, OPEN_DAY)

    def test_missing_entry(self):
        delete_journal_entry(self.je.pk)
        result = update_journal_entry(self.je.pk, description="gone")
        self.assertFalse(result.ok)
        self.assertEqual(result.message, "Journal entry not found.")


class JournalEntryListTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()
        self.early = create_journal_entry(self.quarry, datetime.date(2030, 7, 1), "early",
                                          cash_sale_lines(), post=True).value
        self.late = create_journal_entry(self.quarry, datetime.date(2030, 7, 20), "late",
                                         cash_sale_lines()).value

    def test_newest_first(self):
        self.assertEqual(list(list_journal_entries(self.quarry)), [self.late, self.early])

    def test_filters(self):
        self.assertEqual(
            list(list_journal_entries(self.quarry, date_from=datetime.date(2030, 7, 10))),
            [self.late])
        self.assertEqual(
            list(list_journal_entries(self.quarry, date_to=datetime.date(2030, 7, 10))),
            [self.early])
        self.assertEqual(list(list_journal_entries(self.quarry, status="posted")), [self.early])

    def test_deleted_and_foreign_entries_are_left_out(self):
        delete_journal_entry(self.late.pk)
        other = make_quarry("Mlolongo Quarry")
        create_journal_entry(other, OPEN_DAY, "theirs", cash_sale_lines())

        self.assertEqual(list(list_journal_entries(self.quarry)), [self.early])


class GeneratedEntryUniquenessTests(TestCase):

    def setUp(self):
        self.quarry = make_quarry()

    def generate(self, source_id="S-1"):
        return create_journal_entry(self.quarry, OPEN_DAY, "sale", cash_sale_lines(),
                                    entry_type="auto", source_type="sale",
                                    source_id=source_id, post=True)

    def test_second_entry_for_same_source_is_refused(self):
        self.assertTrue(self.generate().ok)

        result = self.generate()

        self.assertFalse(result.ok)
        self.assertIn("already has a journal entry", result.message)
        self.assertEqual(
            JournalEntry.objects.for_quarry(self.quarry).filter(source_id="S-1").count(), 1)

    def test_other_sources_and_manual_entries_are_free(self):
        self.assertTrue(self.generate("S-1").ok)
        self.assertTrue(self.generate("S-2").ok)
        manual = create_journal_entry(self.quarry, OPEN_DAY, "note", cash_sale_lines(),
                                      source_type="sale", source_id="S-1")
        self.assertTrue(manual.ok, manual.message)
