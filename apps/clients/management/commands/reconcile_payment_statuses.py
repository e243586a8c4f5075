# apps/clients/management/commands/reconcile_payment_statuses.py
"""
Re-derive the stored payment_status of every client.
Scheduled daily through django-crontab (see CRONJOBS in settings).
"""
import logging

from django.core.management.base import BaseCommand
from django.utils import timezone

from apps.core.store import StoreHandle
from apps.clients.services import PaymentStatusReconciler

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Recompute payment_status for all clients and store the ones that changed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report what would change without writing'
        )

    def handle(self, *args, **options):
        dry_run = options.get('dry_run', False)
        store = StoreHandle.from_settings()

        self.stdout.write(self.style.HTTP_INFO(
            f"Reconciling payment statuses at {timezone.now().strftime('%Y-%m-%d %H:%M:%S')} ({store.alias})"
        ))
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE - nothing will be written"))

        result = PaymentStatusReconciler(store).reconcile_all(dry_run=dry_run)

        summary = f"{result.checked} checked, {result.updated} updated, {result.failed} failed"
        if result.failed:
            self.stdout.write(self.style.ERROR(f"Finished with errors: {summary}"))
        else:
            self.stdout.write(self.style.SUCCESS(f"Done: {summary}"))
