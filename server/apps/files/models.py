"""Database models for files app."""

import uuid
from datetime import datetime
from typing import Final, final, override

from django.db import models
from django.utils import timezone

# Constants for field max lengths
_OWNER_ID_MAX_LENGTH: Final = 128
_NAME_MAX_LENGTH: Final = 255
_MIME_TYPE_MAX_LENGTH: Final = 255
_PATH_MAX_LENGTH: Final = 1024
_SHARE_TOKEN_MAX_LENGTH: Final = 64  # 32 random bytes, hex encoded
_STATUS_MAX_LENGTH: Final = 16

# Default quota: 1 GB in bytes
_DEFAULT_QUOTA_BYTES: Final = 1024 * 1024 * 1024


class FileStatus(models.TextChoices):
    """Outcome of the blob write behind a shared file.

    Records are inserted only after the blob write succeeds, so rows are
    written ``UPLOADED``. The column still accepts the whole upload state
    machine.
    """

    UPLOADING = 'uploading', 'Uploading'
    UPLOADED = 'uploaded', 'Uploaded'
    ERROR = 'error', 'Error'


@final
class SharedFile(models.Model):
    """File uploaded for sharing through a secret token.

    The blob lives in S3-compatible storage under ``storage_path``
    (``files/{id}{ext}``). Everything except ``download_count``,
    ``last_downloaded_at`` and the write-once ``thumbnail_path`` is
    fixed at creation.

    Access is decided at read time from ``expires_at`` and
    ``download_count``; ``status`` is informational only.
    """

    # Assigned before the blob write so blob metadata can carry it
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )

    # Principal identity from the identity provider (no local user FK)
    owner_id = models.CharField(
        max_length=_OWNER_ID_MAX_LENGTH,
        db_index=True,
    )

    name = models.CharField(
        max_length=_NAME_MAX_LENGTH,
        help_text='Original filename as uploaded',
    )

    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    mime_type = models.CharField(
        max_length=_MIME_TYPE_MAX_LENGTH,
    )

    storage_path = models.CharField(
        max_length=_PATH_MAX_LENGTH,
        unique=True,
        help_text='Blob key: files/{id}{ext}',
    )

    thumbnail_path = models.CharField(
        max_length=_PATH_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Blob key of the generated preview, set asynchronously',
    )

    share_token = models.CharField(
        max_length=_SHARE_TOKEN_MAX_LENGTH,
        unique=True,
    )

    status = models.CharField(
        max_length=_STATUS_MAX_LENGTH,
        choices=FileStatus.choices,
        default=FileStatus.UPLOADED,
    )

    download_count = models.PositiveIntegerField(default=0)

    # Timestamps
    uploaded_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(db_index=True)
    last_downloaded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Shared file'  # type: ignore[mutable-override]
        verbose_name_plural = 'Shared files'  # type: ignore[mutable-override]
        ordering = ['-uploaded_at']

        indexes = [
            # Optimize "my files" listing
            models.Index(
                fields=['owner_id', '-uploaded_at'],
                name='files_owner_recent_idx',
            ),
        ]

        constraints = [
            models.CheckConstraint(
                condition=models.Q(size_bytes__gt=0),
                name='shared_file_size_positive',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.name}'

    def is_expired(self, now: datetime) -> bool:
        """Check whether the retention window has passed.

        Args:
            now: Moment to evaluate at.

        Returns:
            True once ``now`` reaches ``expires_at``.
        """
        return now >= self.expires_at

    def is_download_limit_reached(self, max_downloads: int) -> bool:
        """Check whether the download allowance is used up.

        Args:
            max_downloads: Downloads allowed per file.

        Returns:
            True if no further downloads are allowed.
        """
        return self.download_count >= max_downloads


@final
class UserProfile(models.Model):
    """Storage accounting for one principal.

    Created lazily on first upload. ``used_storage`` is the running sum
    of ``size_bytes`` over the owner's live shared files and is only
    changed through single-statement ``F()`` updates.

    Over-quota owners can still download and delete, uploads are refused.
    """

    owner_id = models.CharField(
        max_length=_OWNER_ID_MAX_LENGTH,
        primary_key=True,
    )

    storage_quota = models.BigIntegerField(
        default=_DEFAULT_QUOTA_BYTES,
        help_text='Storage quota limit in bytes',
    )

    used_storage = models.BigIntegerField(
        default=0,
        help_text='Currently used storage in bytes',
    )

    email = models.EmailField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    last_activity_at = models.DateTimeField(default=timezone.now)

    class Meta:
        """Model metadata."""

        verbose_name = 'User profile'  # type: ignore[mutable-override]
        verbose_name_plural = 'User profiles'  # type: ignore[mutable-override]

        constraints = [
            models.CheckConstraint(
                condition=models.Q(storage_quota__gte=0),
                name='storage_quota_non_negative',
            ),
            models.CheckConstraint(
                condition=models.Q(used_storage__gte=0),
                name='used_storage_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}: {self.used_storage}/{self.storage_quota}'

    def has_space_for(self, size_bytes: int) -> bool:
        """Check if there's enough space for the given size.

        Args:
            size_bytes: Size to check in bytes.

        Returns:
            True if there's enough space, False otherwise.
        """
        return self.used_storage + size_bytes <= self.storage_quota

    def available_bytes(self) -> int:
        """Get available storage space.

        Returns:
            Available bytes (never negative).
        """
        available = self.storage_quota - self.used_storage
        return max(0, available)
