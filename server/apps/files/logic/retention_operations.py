"""Business logic for reclaiming expired shared files.

A file is reclaimed once it expired or ran out of downloads:
its blobs are deleted, then its record, then the owner is debited.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, final

from django.db import transaction
from django.utils import timezone

from server.apps.files.infrastructure.storage import get_storage
from server.apps.files.logic import file_operations, quota_operations
from server.apps.files.models import SharedFile
from server.apps.files.policy import SharingPolicy

if TYPE_CHECKING:
    from server.apps.files.infrastructure.storage import FileStorage

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class SweepResult:
    """Outcome of one retention sweep."""

    reclaimed: int = 0
    failed: int = 0


def reclaim_file(
    file_instance: SharedFile,
    *,
    storage: 'FileStorage',
    tolerate_blob_errors: bool = True,
) -> bool:
    """Delete a shared file's blobs and record, then debit its owner.

    The debit only happens if this call removed the record, so
    reclaiming the same file twice never debits twice.

    Args:
        file_instance: Record to reclaim.
        storage: Storage backend holding the blobs.
        tolerate_blob_errors: Log blob deletion failures and go on
            (sweeper) instead of raising before the record is touched.

    Returns:
        True if the record was deleted by this call.
    """
    blob_paths = [file_instance.storage_path]
    if file_instance.thumbnail_path:
        blob_paths.append(file_instance.thumbnail_path)

    for blob_path in blob_paths:
        try:
            storage.delete(blob_path)
        except Exception:
            if not tolerate_blob_errors:
                raise
            logger.exception(
                'Blob delete failed, continuing: %s (file ID: %s)',
                blob_path,
                file_instance.id,
            )

    try:
        with transaction.atomic():
            deleted = file_operations.delete_file_record(file_instance.id)
            if deleted:
                quota_operations.debit(
                    file_instance.owner_id,
                    file_instance.size_bytes,
                )
    except Exception:
        logger.exception(
            'Record delete failed after blob delete: file ID %s, '
            'owner %s, size %d, blob %s',
            file_instance.id,
            file_instance.owner_id,
            file_instance.size_bytes,
            file_instance.storage_path,
        )
        raise

    if deleted:
        logger.info(
            'Reclaimed file: %s (ID: %s, owner: %s, size: %d)',
            file_instance.name,
            file_instance.id,
            file_instance.owner_id,
            file_instance.size_bytes,
        )
    return deleted


def sweep(
    *,
    policy: SharingPolicy,
    now: datetime | None = None,
    batch_size: int | None = None,
    storage: 'FileStorage | None' = None,
) -> SweepResult:
    """Reclaim every expired or exhausted shared file.

    Safe to re-run at any frequency: records already reclaimed are no
    longer found. A failure on one record is logged and counted, the
    sweep moves on to the next.

    Args:
        policy: Sharing policy providing the download limit.
        now: Moment to evaluate expiry at, defaults to current time.
        batch_size: Max records to process in this run.
        storage: Storage backend, defaults to the configured one.

    Returns:
        SweepResult with reclaimed and failed counts.
    """
    now = now or timezone.now()
    storage = storage or get_storage()

    candidates = file_operations.find_reclaimable(now, policy.max_downloads)
    if batch_size is not None:
        candidates = candidates[:batch_size]

    reclaimed = 0
    failed = 0
    for file_instance in list(candidates):
        try:
            if reclaim_file(file_instance, storage=storage):
                reclaimed += 1
        except Exception:
            logger.exception(
                'Failed to reclaim file: %s',
                file_instance.id,
            )
            failed += 1

    logger.info(
        'Retention sweep finished: %d reclaimed, %d failed',
        reclaimed,
        failed,
    )
    return SweepResult(reclaimed=reclaimed, failed=failed)
