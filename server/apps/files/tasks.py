"""Celery tasks for the files app.

Both tasks are thin wrappers: the work lives in ``logic``.
"""

import logging
from collections.abc import Mapping

from celery import shared_task

from server.apps.files.logic import retention_operations, thumbnail_operations
from server.apps.files.policy import SharingPolicy

logger = logging.getLogger(__name__)


@shared_task(name='files.generate_thumbnail', ignore_result=True)
def generate_thumbnail(
    bucket: str,
    object_path: str,
    content_type: str | None,
    metadata: Mapping[str, str] | None,
) -> str | None:
    """Generate a thumbnail for a stored image.

    Not retried: failures are logged by the pipeline and the file
    stays without a thumbnail.
    """
    return thumbnail_operations.generate_thumbnail(
        bucket,
        object_path,
        content_type,
        metadata,
    )


@shared_task(name='files.sweep_expired_files', ignore_result=True)
def sweep_expired_files(batch_size: int | None = None) -> int:
    """Reclaim expired and exhausted files (run by celery beat).

    Returns:
        Number of files reclaimed.
    """
    result = retention_operations.sweep(
        policy=SharingPolicy.from_settings(),
        batch_size=batch_size,
    )
    if result.failed:
        logger.warning('Sweep left %d files unreclaimed', result.failed)
    return result.reclaimed
