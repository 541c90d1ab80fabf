from django.core.management.base import BaseCommand

from reviews.services import auto_publish_due


class Command(BaseCommand):
    help = "Publish reviews still waiting for their pair after the blind window. Run from cron."

    def handle(self, *args, **options):
        count = auto_publish_due()
        self.stdout.write(self.style.SUCCESS(f"✅ Auto-published {count} review(s)"))
