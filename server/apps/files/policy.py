"""Sharing policy handed to every core operation."""

from dataclasses import dataclass
from datetime import timedelta
from typing import final

from django.conf import settings


@final
@dataclass(frozen=True, slots=True)
class SharingPolicy:
    """Policy constants for retention, download limits and quotas.

    Core operations take a policy argument instead of reading settings,
    so callers (views, commands, tasks) decide which values apply.
    """

    retention: timedelta
    max_downloads: int
    default_quota_bytes: int
    max_upload_bytes: int
    signed_url_ttl: timedelta

    @classmethod
    def from_settings(cls) -> 'SharingPolicy':
        """Build the policy from Django settings.

        Returns:
            Policy populated from the ``SHARING_*`` settings.
        """
        return cls(
            retention=timedelta(days=settings.SHARING_RETENTION_DAYS),
            max_downloads=settings.SHARING_MAX_DOWNLOADS,
            default_quota_bytes=settings.SHARING_DEFAULT_QUOTA_BYTES,
            max_upload_bytes=settings.SHARING_MAX_UPLOAD_BYTES,
            signed_url_ttl=timedelta(
                seconds=settings.SHARING_SIGNED_URL_TTL_SECONDS,
            ),
        )
