from django.core.management.base import BaseCommand

from memberships.services import expire_memberships


class Command(BaseCommand):
    help = "Expire ACTIVE memberships whose end date has passed. Intended to run daily from cron."

    def handle(self, *args, **options):
        expired = expire_memberships()
        for membership in expired:
            self.stdout.write(f"Expired membership {membership.pk} ({membership.plan}) for {membership.studio.name}")
        self.stdout.write(self.style.SUCCESS(f"{len(expired)} membership(s) expired."))
