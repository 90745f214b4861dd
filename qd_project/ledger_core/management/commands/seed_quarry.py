from datetime import MAXYEAR, MINYEAR

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from ledger_core.models import Quarry
from ledger_core.services.periods import seed_periods
from ledger_core.services.seeding import seed_chart_of_accounts
from ledger_core.tasks import onboard_quarry


class Command(BaseCommand):
    help = (
        "Seed the chart of accounts and one fiscal year of periods "
        "for a quarry (or every active quarry)."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--quarry",  # Define flag
            type=str,
            help="Slug of the quarry to seed (default: every active quarry).",
        )
        parser.add_argument(
            "--year",
            type=int,
            default=None,
            help="Fiscal year of the periods to create (default: current year).",
        )
        parser.add_argument(
            "--async",
            action="store_true",
            dest="run_async",
            help="Queue one Celery onboarding task per quarry instead of seeding inline.",
        )

    def handle(self, *args, **options):
        # Read arguments from add_arguments()
        slug = options["quarry"]
        year = options["year"]
        if year is None:
            year = timezone.localdate().year
        if not MINYEAR <= year <= MAXYEAR:
            raise CommandError(f"--year must be between {MINYEAR} and {MAXYEAR}.")

        quarries = Quarry.objects.filter(is_active=True).order_by("pk")
        if slug:
            quarries = quarries.filter(slug=slug)
            if not quarries.exists():
                raise CommandError(f"No active quarry with slug '{slug}'.")

        for quarry in quarries:
            if options["run_async"]:
                onboard_quarry.delay(quarry.pk, year)
                self.stdout.write(self.style.NOTICE(f"{quarry.slug}: onboarding queued"))
                continue

            accounts = seed_chart_of_accounts(quarry)
            periods = seed_periods(quarry, year)
            self.stdout.write(self.style.SUCCESS(
                f"{quarry.slug}: {accounts} accounts, {periods} periods for {year}"
            ))
