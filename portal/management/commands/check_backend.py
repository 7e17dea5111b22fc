from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from portal.views.health import ping_backend


class Command(BaseCommand):
    help = "Check that the clinic backend API answers at BACKEND_API_URL."

    def handle(self, *args, **options):
        reachable, latency, detail = ping_backend()
        if not reachable:
            raise CommandError(f"Backend unreachable at {settings.BACKEND_API_URL}: {detail}")
        self.stdout.write(self.style.SUCCESS(f"Backend reachable at {settings.BACKEND_API_URL} ({detail}, {latency} ms)"))
