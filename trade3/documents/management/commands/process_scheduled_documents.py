"""
Complete scheduled documents whose date has come and, optionally, cancel
stale drafts. Meant to run from cron every minute.
"""
from django.core.management.base import BaseCommand

from trade3.documents.scheduler import complete_due_documents, cancel_stale_drafts


class Command(BaseCommand):
    help = 'Complete due SCHEDULED documents and optionally cancel stale DRAFT sales and transfers'

    def add_arguments(self, parser):
        parser.add_argument(
            '--cleanup-drafts',
            action='store_true',
            help='Also cancel DRAFT sales and transfers older than STALE_DRAFT_HOURS',
        )
        parser.add_argument(
            '--max-age-hours',
            type=int,
            default=None,
            help='Override STALE_DRAFT_HOURS for --cleanup-drafts',
        )

    def handle(self, *args, **options):
        self._report('Completed', complete_due_documents())
        if options['cleanup_drafts']:
            self._report('Cancelled', cancel_stale_drafts(max_age_hours=options['max_age_hours']))

    def _report(self, verb, results):
        for kind, (succeeded, failed) in results.items():
            if succeeded:
                self.stdout.write(self.style.SUCCESS(f"{verb} {succeeded} {kind} document(s)"))
            if failed:
                self.stdout.write(self.style.ERROR(f"{failed} {kind} document(s) failed, see log"))
