"""Management command to reclaim expired or exhausted shared files."""

import logging
from typing import Any, Final

from django.core.management.base import BaseCommand
from django.utils import timezone

from server.apps.files.logic import file_operations
from server.apps.files.logic.retention_operations import sweep
from server.apps.files.policy import SharingPolicy

_DEFAULT_BATCH_SIZE: Final = 1000

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Delete shared files that expired or reached the download limit."""

    help = 'Reclaim expired or exhausted shared files'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be reclaimed without deleting',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Max files to process (default: {_DEFAULT_BATCH_SIZE})',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the sweep command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        batch_size = options['batch_size']
        policy = SharingPolicy.from_settings()
        now = timezone.now()

        self.stdout.write(
            f'Looking for files expired before {now} '
            f'or downloaded {policy.max_downloads}+ times',
        )

        if dry_run:
            candidates = file_operations.find_reclaimable(
                now,
                policy.max_downloads,
            )[:batch_size]
            count = 0
            for file_instance in candidates:
                self.stdout.write(
                    f'Would reclaim: {file_instance.name} '
                    f'(owner: {file_instance.owner_id}, '
                    f'expires: {file_instance.expires_at}, '
                    f'downloads: {file_instance.download_count})',
                )
                count += 1
            self.stdout.write(
                self.style.SUCCESS(f'Would reclaim {count} files'),
            )
            return

        result = sweep(policy=policy, now=now, batch_size=batch_size)
        if result.failed:
            self.stderr.write(
                f'{result.failed} files could not be reclaimed, see logs',
            )
        self.stdout.write(
            self.style.SUCCESS(
                f'Reclaimed {result.reclaimed} files, {result.failed} failed',
            ),
        )
