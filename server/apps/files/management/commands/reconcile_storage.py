"""Management command to recompute owners' used storage from their files."""

from typing import Any

from django.core.management.base import BaseCommand

from server.apps.files.logic.quota_operations import recalculate_usage
from server.apps.files.models import SharedFile, UserProfile
from server.apps.files.policy import SharingPolicy


class Command(BaseCommand):
    """Reset used storage to the sum of each owner's file sizes."""

    help = 'Recalculate used storage for every owner (or one with --owner)'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--owner',
            help='Only reconcile this owner id',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the reconcile command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        policy = SharingPolicy.from_settings()
        if options['owner']:
            owner_ids = {options['owner']}
        else:
            owner_ids = set(
                UserProfile.objects.values_list('owner_id', flat=True),
            )
            owner_ids.update(
                SharedFile.objects.values_list('owner_id', flat=True),
            )

        for owner_id in sorted(owner_ids):
            used = recalculate_usage(owner_id, policy=policy)
            self.stdout.write(f'{owner_id}: {used} bytes')

        self.stdout.write(
            self.style.SUCCESS(f'Reconciled {len(owner_ids)} owners'),
        )
