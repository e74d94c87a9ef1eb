"""Business logic for the shared file record lifecycle.

Owns the ``SharedFile`` rows: creation with token and expiry, lookups,
access evaluation, download accounting and deletion. Operations here
never touch blob storage or quotas; the workflows in
``sharing_operations`` and ``retention_operations`` compose them.
"""

import logging
from datetime import datetime
from uuid import UUID, uuid4

from django.core.exceptions import ValidationError
from django.db.models import F, Q, QuerySet  # noqa: WPS347
from django.utils import timezone

from server.apps.files.logic.token_operations import generate_share_token
from server.apps.files.models import FileStatus, SharedFile
from server.apps.files.policy import SharingPolicy

# Field name constant to avoid string literal over-use
_DOWNLOAD_COUNT_FIELD = 'download_count'  # noqa: WPS226

logger = logging.getLogger(__name__)


def create_file_record(  # noqa: WPS211
    owner_id: str,
    name: str,
    size_bytes: int,
    mime_type: str,
    storage_path: str,
    *,
    policy: SharingPolicy,
    file_id: UUID | None = None,
    now: datetime | None = None,
) -> SharedFile:
    """Create the record for a blob that is already in storage.

    Single INSERT: token, expiry and counters are set together.
    Calling this twice creates two records with two tokens.

    Args:
        owner_id: Uploading principal.
        name: Original filename.
        size_bytes: Blob size in bytes, must be positive.
        mime_type: MIME type of the blob.
        storage_path: Key the blob was written to.
        policy: Sharing policy providing the retention window.
        file_id: Pre-allocated id (carried in the blob metadata).
        now: Upload moment, defaults to current time.

    Returns:
        Created SharedFile with ``id``, ``share_token`` and ``expires_at``.

    Raises:
        ValidationError: If ``size_bytes`` is not positive.
    """
    if size_bytes <= 0:
        raise ValidationError('Shared file size must be positive')

    uploaded_at = now or timezone.now()
    file_instance = SharedFile.objects.create(
        id=file_id or uuid4(),
        owner_id=owner_id,
        name=name,
        size_bytes=size_bytes,
        mime_type=mime_type,
        storage_path=storage_path,
        share_token=generate_share_token(),
        status=FileStatus.UPLOADED,
        download_count=0,
        uploaded_at=uploaded_at,
        expires_at=uploaded_at + policy.retention,
    )
    logger.info(
        'File record created: %s (ID: %s, owner: %s)',
        storage_path,
        file_instance.id,
        owner_id,
    )
    return file_instance


def lookup_by_token(share_token: str) -> SharedFile | None:
    """Find a shared file by its token.

    Args:
        share_token: Token from a share link.

    Returns:
        SharedFile if found, None otherwise.
    """
    return SharedFile.objects.filter(share_token=share_token).first()


def lookup_by_id(file_id: UUID | str) -> SharedFile | None:
    """Find a shared file by its id.

    Args:
        file_id: Record id; malformed ids are treated as unknown.

    Returns:
        SharedFile if found, None otherwise.
    """
    try:
        return SharedFile.objects.get(pk=file_id)
    except (SharedFile.DoesNotExist, ValidationError, ValueError):
        return None


def is_accessible(
    file_instance: SharedFile,
    now: datetime,
    max_downloads: int,
) -> bool:
    """Check if a shared file may be viewed or downloaded.

    Args:
        file_instance: Shared file to check.
        now: Moment to evaluate at.
        max_downloads: Downloads allowed per file.

    Returns:
        True before expiry while downloads remain, False otherwise.
    """
    return inaccessibility_reason(file_instance, now, max_downloads) is None


def inaccessibility_reason(
    file_instance: SharedFile,
    now: datetime,
    max_downloads: int,
) -> str | None:
    """Explain why a shared file is not accessible.

    Args:
        file_instance: Shared file to check.
        now: Moment to evaluate at.
        max_downloads: Downloads allowed per file.

    Returns:
        Human-readable reason, or None if the file is accessible.
    """
    if file_instance.is_expired(now):
        return 'File has expired'
    if file_instance.is_download_limit_reached(max_downloads):
        return 'Download limit reached'
    return None


def record_download(
    file_id: UUID,
    max_downloads: int | None = None,
) -> bool:
    """Atomically count one download.

    Uses a single UPDATE with an ``F()`` expression so concurrent
    downloads never lose increments. With ``max_downloads`` the row is
    only updated while its count is below the limit, so concurrent
    downloads cannot push it past the limit.

    Args:
        file_id: Record id.
        max_downloads: Downloads allowed per file, None for no limit.

    Returns:
        True if the download was counted.
    """
    downloads = SharedFile.objects.filter(pk=file_id)
    if max_downloads is not None:
        downloads = downloads.filter(download_count__lt=max_downloads)
    updated = downloads.update(
        download_count=F(_DOWNLOAD_COUNT_FIELD) + 1,
        last_downloaded_at=timezone.now(),
    )
    if updated == 0:
        logger.warning('Download not recorded: ID=%s', file_id)
        return False
    logger.debug('Download recorded: ID=%s', file_id)
    return True


def delete_file_record(file_id: UUID) -> bool:
    """Delete a file record.

    Does not touch the blob or the owner's quota; callers handle both
    after checking ownership.

    Args:
        file_id: Record id.

    Returns:
        True if this call removed the row, False if it was already gone.
    """
    deleted, _ = SharedFile.objects.filter(pk=file_id).delete()
    if deleted:
        logger.info('File record deleted from database: ID=%s', file_id)
    return bool(deleted)


def attach_thumbnail(file_id: UUID | str, thumbnail_path: str) -> bool:
    """Store the thumbnail key on a record.

    Writes only ``thumbnail_path``, and only while it is still empty.

    Args:
        file_id: Record id.
        thumbnail_path: Blob key of the generated thumbnail.

    Returns:
        True if the record was updated.
    """
    updated = SharedFile.objects.filter(
        pk=file_id,
        thumbnail_path='',
    ).update(thumbnail_path=thumbnail_path)
    if updated:
        logger.info('Thumbnail attached: ID=%s, path=%s', file_id, thumbnail_path)
    return bool(updated)


def list_owner_files(owner_id: str) -> QuerySet[SharedFile]:
    """List an owner's shared files, newest first.

    Args:
        owner_id: Owning principal.

    Returns:
        QuerySet of the owner's SharedFile records.
    """
    return SharedFile.objects.filter(owner_id=owner_id).order_by('-uploaded_at')


def find_reclaimable(
    now: datetime,
    max_downloads: int,
) -> QuerySet[SharedFile]:
    """Find records past expiry or out of downloads.

    Args:
        now: Moment to evaluate at.
        max_downloads: Downloads allowed per file.

    Returns:
        QuerySet ordered by expiry, oldest first.
    """
    return SharedFile.objects.filter(
        Q(expires_at__lt=now) | Q(download_count__gte=max_downloads),
    ).order_by('expires_at')
