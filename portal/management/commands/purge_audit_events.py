from django.core.management.base import BaseCommand, CommandError

from portal.services.audit import purge_older_than


class Command(BaseCommand):
    help = "Delete audit events older than --days (default 90)."

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=90)

    def handle(self, *args, **opts):
        days = opts['days']
        if days < 1:
            raise CommandError("--days must be at least 1")
        deleted = purge_older_than(days)
        self.stdout.write(self.style.SUCCESS(f"Purged {deleted} audit events older than {days} days"))
