from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.notifications.adapters import purge_older_than


class Command(BaseCommand):
    help = "Delete notifications older than the retention window."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Retention in days (defaults to NOTIFICATION_RETENTION_DAYS).",
        )

    def handle(self, *args, **options):
        days = options["days"]
        if days is None:
            days = settings.NOTIFICATION_RETENTION_DAYS
        try:
            deleted = purge_older_than(days)
        except ValueError as e:
            raise CommandError(str(e))
        self.stdout.write(f"deleted {deleted} notification(s) older than {days} day(s)")
