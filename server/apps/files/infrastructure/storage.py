"""Custom storage backend for S3-compatible storage."""

import logging
from collections.abc import Mapping
from datetime import timedelta
from pathlib import Path
from typing import Any, final, override

from django.core.files.storage import default_storage
from storages.backends.s3 import S3Storage

logger = logging.getLogger(__name__)


def get_storage() -> 'FileStorage':
    """Get the configured default storage backend.

    Returns:
        FileStorage instance with proper S3 configuration.
    """
    return default_storage  # type: ignore[return-value]


@final
class FileStorage(S3Storage):
    """Custom S3 storage backend for shared files.

    Extends django-storages S3Storage with:
    - Object uploads carrying content type and user metadata
    - Signed read URLs with an explicit lifetime
    - Best-effort rollback of uploads whose DB write failed
    - Enhanced error logging
    """

    def put_object(
        self,
        name: str,
        content: Any,
        content_type: str,
        metadata: Mapping[str, str] | None = None,
        bucket_name: str | None = None,
    ) -> str:
        """Upload bytes to an exact key, attaching object metadata.

        Unlike ``save`` this never renames: keys are derived from
        record ids and are unique already.

        Args:
            name: Storage key for the object.
            content: File-like object to upload.
            content_type: MIME type stored with the object.
            metadata: User metadata stored with the object.
            bucket_name: Bucket to write to (defaults to configured one).

        Returns:
            Storage key written.

        Raises:
            Exception: If S3 upload fails.
        """
        extra_args = {
            'ContentType': content_type,
            'Metadata': dict(metadata or {}),
        }
        if hasattr(content, 'seek'):
            content.seek(0)
        try:
            logger.info('Uploading object to storage: %s', name)
            self._get_bucket(bucket_name).upload_fileobj(
                content,
                name,
                ExtraArgs=extra_args,
            )
        except Exception:
            logger.exception('Failed to upload object to storage: %s', name)
            raise
        logger.info('Successfully uploaded object: %s', name)
        return name

    def download_to(
        self,
        name: str,
        local_path: Path,
        bucket_name: str | None = None,
    ) -> None:
        """Download an object into a local file.

        Args:
            name: Storage key of the object.
            local_path: Destination path on the local filesystem.
            bucket_name: Bucket to read from (defaults to configured one).

        Raises:
            Exception: If S3 download fails.
        """
        try:
            logger.debug('Downloading object %s to %s', name, local_path)
            self._get_bucket(bucket_name).download_file(name, str(local_path))
        except Exception:
            logger.exception('Failed to download object: %s', name)
            raise

    def signed_read_url(self, name: str, ttl: timedelta) -> str:
        """Issue a short-lived signed URL for reading an object.

        Args:
            name: Storage key of the object.
            ttl: How long the URL stays valid.

        Returns:
            Pre-signed GET URL.
        """
        return self.url(name, expire=int(ttl.total_seconds()))

    @override
    def delete(self, name: str) -> None:
        """Delete file from S3 with error handling and logging.

        Deleting a key that does not exist succeeds.

        Args:
            name: Storage path of file to delete.

        Raises:
            Exception: If S3 delete fails.
        """
        try:
            logger.info('Deleting file from storage: %s', name)
            super().delete(name)
            logger.info('Successfully deleted file: %s', name)
        except Exception:
            logger.exception('Failed to delete file from storage: %s', name)
            raise

    def rollback_upload(self, name: str) -> None:
        """Delete uploaded object after a failed upload workflow.

        Called when the blob write partially failed, or when the
        database write after a successful blob write failed.

        This is a best-effort operation - if deletion fails, the error
        is logged but not raised, as the original error is re-raised
        by the caller.

        Args:
            name: Storage path of file to delete.
        """
        try:
            logger.warning('Rolling back upload, deleting file: %s', name)
            self.delete(name)
            logger.info('Successfully rolled back file upload: %s', name)
        except Exception:
            # Log but don't raise - rollback is best-effort
            # The blob stays in storage without a record
            logger.exception(
                'Failed to rollback upload, orphaned file: %s',
                name,
            )

    def _get_bucket(self, bucket_name: str | None) -> Any:
        if bucket_name is None or bucket_name == self.bucket_name:
            return self.bucket
        return self.connection.Bucket(bucket_name)
