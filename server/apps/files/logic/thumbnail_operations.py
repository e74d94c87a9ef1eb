"""Business logic for generating image thumbnails.

Runs out of band (see ``server.apps.files.tasks``) after an image blob
is stored. Best effort: any failure is logged and the shared file simply
keeps an empty ``thumbnail_path``.
"""

import logging
import tempfile
from collections.abc import Mapping
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Final

from PIL import Image

from server.apps.files.infrastructure.metadata import (
    build_thumbnail_path,
    is_thumbnail_candidate,
)
from server.apps.files.infrastructure.storage import get_storage
from server.apps.files.logic.file_operations import attach_thumbnail

if TYPE_CHECKING:
    from server.apps.files.infrastructure.storage import FileStorage

# Metadata key carrying the originating SharedFile id
FILE_RECORD_ID_KEY: Final = 'file-record-id'

THUMBNAIL_MAX_WIDTH: Final = 200
THUMBNAIL_MAX_HEIGHT: Final = 200

_FALLBACK_FORMAT: Final = 'PNG'

logger = logging.getLogger(__name__)


def generate_thumbnail(  # noqa: WPS210
    bucket: str,
    object_path: str,
    content_type: str | None,
    metadata: Mapping[str, str] | None,
    *,
    storage: 'FileStorage | None' = None,
) -> str | None:
    """Create a bounded preview of a stored image.

    Steps: skip non-images and our own thumbnails, require the
    originating record id, download the original, shrink it to fit
    200x200 (aspect kept, never enlarged), upload it next to the
    original with the ``thumb_`` prefix, then attach its key to the
    record. The temporary directory is removed on every exit path.

    Args:
        bucket: Bucket holding the original.
        object_path: Key of the original.
        content_type: MIME type of the original.
        metadata: Object metadata with ``file-record-id``.
        storage: Storage backend, defaults to the configured one.

    Returns:
        Key of the thumbnail if one was attached, None otherwise.
    """
    if not is_thumbnail_candidate(content_type, object_path):
        logger.info(
            'Skipping thumbnail for %s (%s): not an original image',
            object_path,
            content_type,
        )
        return None

    file_record_id = (metadata or {}).get(FILE_RECORD_ID_KEY)
    if not file_record_id:
        logger.error(
            'Missing %r metadata for %s, cannot attach thumbnail',
            FILE_RECORD_ID_KEY,
            object_path,
        )
        return None

    storage = storage or get_storage()
    thumbnail_path = build_thumbnail_path(object_path)

    with tempfile.TemporaryDirectory(prefix='thumbnail-') as temp_dir:
        source_path = Path(temp_dir) / PurePosixPath(object_path).name
        target_path = Path(temp_dir) / PurePosixPath(thumbnail_path).name
        try:
            storage.download_to(object_path, source_path, bucket_name=bucket)
            _resize_image(source_path, target_path)
            with target_path.open('rb') as thumbnail_file:
                storage.put_object(
                    thumbnail_path,
                    thumbnail_file,
                    content_type or 'application/octet-stream',
                    metadata={FILE_RECORD_ID_KEY: file_record_id},
                    bucket_name=bucket,
                )
        except Exception:
            logger.exception('Thumbnail generation failed for %s', object_path)
            return None

    try:
        attached = attach_thumbnail(file_record_id, thumbnail_path)
    except Exception:
        logger.exception(
            'Failed to attach thumbnail %s to file %s',
            thumbnail_path,
            file_record_id,
        )
        storage.rollback_upload(thumbnail_path)
        return None

    if not attached:
        # Record deleted meanwhile, or a thumbnail was already set
        logger.warning(
            'File %s not updated with thumbnail, removing %s',
            file_record_id,
            thumbnail_path,
        )
        storage.rollback_upload(thumbnail_path)
        return None

    return thumbnail_path


def _resize_image(source_path: Path, target_path: Path) -> None:
    with Image.open(source_path) as image:
        image_format = image.format or _FALLBACK_FORMAT
        image.thumbnail((THUMBNAIL_MAX_WIDTH, THUMBNAIL_MAX_HEIGHT))
        image.save(target_path, format=image_format)
    logger.debug('Resized %s into %s', source_path.name, target_path.name)
