from django.core.management.base import BaseCommand

from bookings.services import update_statuses


class Command(BaseCommand):
    help = "Activate, complete and expire bookings according to their dates. Run from cron."

    def handle(self, *args, **options):
        counts = update_statuses()
        self.stdout.write(self.style.SUCCESS(
            f"✅ {counts['activated']} activated, {counts['completed']} completed, {counts['expired']} expired"
        ))
