"""Upload, download and delete workflows for shared files.

Composes the blob store, the file record lifecycle and the quota
ledger. Expected outcomes (unknown token, expired share, wrong owner,
quota exceeded) are raised as ``SharingError`` subclasses; storage and
database failures propagate unchanged.
"""

import logging
import uuid
from datetime import datetime
from functools import partial
from typing import IO, TYPE_CHECKING, Any
from uuid import UUID

from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import UploadedFile
from django.db import transaction
from django.utils import timezone

from server.apps.files.exceptions import (
    FileTooLargeError,
    ForbiddenError,
    ShareGoneError,
    ShareNotFoundError,
)
from server.apps.files.infrastructure.identity import Principal
from server.apps.files.infrastructure.metadata import (
    build_storage_path,
    detect_mime_type,
    is_thumbnail_candidate,
)
from server.apps.files.infrastructure.storage import get_storage
from server.apps.files.logic import (
    file_operations,
    notification_operations,
    quota_operations,
)
from server.apps.files.logic.retention_operations import reclaim_file
from server.apps.files.logic.thumbnail_operations import FILE_RECORD_ID_KEY
from server.apps.files.models import SharedFile
from server.apps.files.policy import SharingPolicy
from server.apps.files.tasks import generate_thumbnail

if TYPE_CHECKING:
    from server.apps.files.infrastructure.storage import FileStorage

logger = logging.getLogger(__name__)


def upload_file(
    principal: Principal,
    uploaded_file: UploadedFile,
    *,
    policy: SharingPolicy,
    storage: 'FileStorage | None' = None,
) -> SharedFile:
    """Store an upload and create its shared file record.

    Transaction safety: the blob is written first; the record and the
    quota credit are written only after the blob write succeeded. If
    the database step fails, the blob is deleted again (rollback).
    Image uploads emit a thumbnail event once the transaction commits.

    Args:
        principal: Uploading principal.
        uploaded_file: Uploaded file (name, size, content type, bytes).
        policy: Sharing policy.
        storage: Storage backend, defaults to the configured one.

    Returns:
        Created SharedFile carrying the share token and expiry.

    Raises:
        FileTooLargeError: If the file exceeds the upload ceiling.
        ValidationError: If the file is empty.
        QuotaExceededError: If the owner's quota has no room.
        Exception: If upload or DB operation fails.
    """
    size_bytes = uploaded_file.size or 0
    if size_bytes > policy.max_upload_bytes:
        raise FileTooLargeError(size_bytes, policy.max_upload_bytes)
    if size_bytes <= 0:
        raise ValidationError('Cannot share an empty file')

    owner_id = principal.owner_id
    # Fail closed: provisioning errors abort the upload
    quota_operations.provision(owner_id, policy=policy, email=principal.email)
    quota_operations.check_quota(owner_id, size_bytes)

    file_id = uuid.uuid4()
    filename = uploaded_file.name or file_id.hex
    mime_type = detect_mime_type(
        filename,
        getattr(uploaded_file, 'content_type', None),
    )
    storage_path = build_storage_path(file_id, filename)
    storage = storage or get_storage()

    # Step 1: Upload to storage first
    try:
        storage.put_object(
            storage_path,
            uploaded_file,
            mime_type,
            metadata={FILE_RECORD_ID_KEY: str(file_id)},
        )
    except Exception:
        logger.exception('Failed to upload file to storage: %s', storage_path)
        storage.rollback_upload(storage_path)
        raise

    # Step 2: Create record and credit quota (in transaction)
    try:
        with transaction.atomic():
            file_instance = file_operations.create_file_record(
                owner_id,
                filename,
                size_bytes,
                mime_type,
                storage_path,
                policy=policy,
                file_id=file_id,
            )
            quota_operations.credit(owner_id, size_bytes)
    except Exception:
        # Rollback: Delete file from storage since DB transaction failed
        logger.exception(
            'Database transaction failed, rolling back storage upload: %s',
            storage_path,
        )
        storage.rollback_upload(storage_path)
        raise

    if is_thumbnail_candidate(mime_type, storage_path):
        transaction.on_commit(
            partial(_emit_file_stored, file_instance, storage.bucket_name),
            robust=True,
        )

    logger.info(
        'Upload complete: %s (ID: %s, owner: %s, size: %d)',
        filename,
        file_instance.id,
        owner_id,
        size_bytes,
    )
    return file_instance


def resolve_share(
    share_token: str,
    *,
    policy: SharingPolicy,
    now: datetime | None = None,
) -> SharedFile:
    """Find an accessible shared file by token.

    Does not count a download.

    Args:
        share_token: Token from a share link.
        policy: Sharing policy providing the download limit.
        now: Moment to evaluate at, defaults to current time.

    Returns:
        Accessible SharedFile.

    Raises:
        ShareNotFoundError: If the token is unknown.
        ShareGoneError: If the file expired or ran out of downloads.
    """
    file_instance = file_operations.lookup_by_token(share_token)
    if file_instance is None:
        raise ShareNotFoundError()

    reason = file_operations.inaccessibility_reason(
        file_instance,
        now or timezone.now(),
        policy.max_downloads,
    )
    if reason is not None:
        raise ShareGoneError(reason, expires_at=file_instance.expires_at)
    return file_instance


def authorize_download(
    share_token: str,
    *,
    policy: SharingPolicy,
    now: datetime | None = None,
) -> SharedFile:
    """Authorize a download and count it.

    The count is taken here, once, whether or not the client later
    reads the whole stream.

    Args:
        share_token: Token from a share link.
        policy: Sharing policy.
        now: Moment to evaluate at, defaults to current time.

    Returns:
        SharedFile whose blob may now be streamed.

    Raises:
        ShareNotFoundError: If the token is unknown.
        ShareGoneError: If the file expired or ran out of downloads.
    """
    file_instance = resolve_share(share_token, policy=policy, now=now)
    counted = file_operations.record_download(
        file_instance.id,
        max_downloads=policy.max_downloads,
    )
    if not counted:
        if file_operations.lookup_by_id(file_instance.id) is None:
            raise ShareNotFoundError()
        raise ShareGoneError(
            'Download limit reached',
            expires_at=file_instance.expires_at,
        )
    logger.info(
        'Download authorized: ID=%s (count before: %d)',
        file_instance.id,
        file_instance.download_count,
    )
    return file_instance


def open_download(
    file_instance: SharedFile,
    storage: 'FileStorage | None' = None,
) -> IO[Any]:
    """Open the blob of an authorized download for streaming.

    Args:
        file_instance: File returned by ``authorize_download``.
        storage: Storage backend, defaults to the configured one.

    Returns:
        Readable binary file object.

    Raises:
        ShareNotFoundError: If the blob is no longer in storage.
    """
    storage = storage or get_storage()
    try:
        return storage.open(file_instance.storage_path, 'rb')
    except FileNotFoundError as exc:
        logger.warning(
            'Blob missing for download: ID=%s, path=%s',
            file_instance.id,
            file_instance.storage_path,
        )
        raise ShareNotFoundError() from exc


def get_download_url(
    share_token: str,
    *,
    policy: SharingPolicy,
    storage: 'FileStorage | None' = None,
) -> str:
    """Authorize a download and hand out a signed blob URL.

    Args:
        share_token: Token from a share link.
        policy: Sharing policy providing the URL lifetime.
        storage: Storage backend, defaults to the configured one.

    Returns:
        Pre-signed URL valid for ``policy.signed_url_ttl``.

    Raises:
        ShareNotFoundError: If the token is unknown.
        ShareGoneError: If the file expired or ran out of downloads.
    """
    file_instance = authorize_download(share_token, policy=policy)
    storage = storage or get_storage()
    return storage.signed_read_url(
        file_instance.storage_path,
        policy.signed_url_ttl,
    )


def get_owned_file(principal: Principal, file_id: UUID | str) -> SharedFile:
    """Load a file the principal owns.

    Args:
        principal: Acting principal.
        file_id: Record id.

    Returns:
        SharedFile owned by the principal.

    Raises:
        ShareNotFoundError: If the file does not exist.
        ForbiddenError: If someone else owns it.
    """
    file_instance = file_operations.lookup_by_id(file_id)
    if file_instance is None:
        raise ShareNotFoundError()
    if file_instance.owner_id != principal.owner_id:
        logger.warning(
            'Owner %s denied access to file %s of owner %s',
            principal.owner_id,
            file_instance.id,
            file_instance.owner_id,
        )
        raise ForbiddenError('You do not own this file')
    return file_instance


def delete_owned_file(
    principal: Principal,
    file_id: UUID | str,
    *,
    storage: 'FileStorage | None' = None,
) -> None:
    """Delete a file on behalf of its owner.

    Order: blobs, then record, then quota debit. A blob delete failure
    aborts before the record is touched so the owner can retry.

    Args:
        principal: Acting principal.
        file_id: Record id.
        storage: Storage backend, defaults to the configured one.

    Raises:
        ShareNotFoundError: If the file does not exist.
        ForbiddenError: If someone else owns it.
    """
    file_instance = get_owned_file(principal, file_id)
    logger.info(
        'Deleting file: ID=%s, path=%s',
        file_instance.id,
        file_instance.storage_path,
    )
    reclaim_file(
        file_instance,
        storage=storage or get_storage(),
        tolerate_blob_errors=False,
    )


def share_by_email(  # noqa: WPS211
    principal: Principal,
    file_id: UUID | str,
    recipient: str,
    share_link: str,
    *,
    policy: SharingPolicy,
    now: datetime | None = None,
) -> None:
    """Email the share link of an owned, still accessible file.

    Args:
        principal: Acting principal.
        file_id: Record id.
        recipient: Email address to notify.
        share_link: Public link to include.
        policy: Sharing policy.
        now: Reference moment, defaults to current time.

    Raises:
        ShareNotFoundError: If the file does not exist.
        ForbiddenError: If someone else owns it.
        ShareGoneError: If the file is no longer accessible.
        NotificationError: If the email could not be sent.
    """
    now = now or timezone.now()
    file_instance = get_owned_file(principal, file_id)
    reason = file_operations.inaccessibility_reason(
        file_instance,
        now,
        policy.max_downloads,
    )
    if reason is not None:
        raise ShareGoneError(reason, expires_at=file_instance.expires_at)

    notification_operations.send_share_email(
        recipient,
        share_link,
        notification_operations.describe_expiry(file_instance.expires_at, now),
        file_name=file_instance.name,
    )


def _emit_file_stored(file_instance: SharedFile, bucket_name: str) -> None:
    generate_thumbnail.delay(
        bucket_name,
        file_instance.storage_path,
        file_instance.mime_type,
        {FILE_RECORD_ID_KEY: str(file_instance.id)},
    )
    logger.debug('Thumbnail requested for file %s', file_instance.id)
