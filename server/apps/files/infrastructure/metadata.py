"""Metadata helpers for shared files and their blob keys."""

import mimetypes
from pathlib import PurePosixPath
from typing import Final
from uuid import UUID

# Prefix marking blobs produced by the thumbnail pipeline
THUMBNAIL_PREFIX: Final = 'thumb_'

_FILES_PREFIX: Final = 'files'
_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'
_MAX_EXTENSION_LENGTH: Final = 16


def detect_mime_type(filename: str, declared: str | None = None) -> str:
    """Detect MIME type of an upload.

    Prefers the type declared by the client, falling back to a guess
    from the filename extension.

    Args:
        filename: Filename with extension.
        declared: Content type sent with the upload, if any.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    if declared and declared != _DEFAULT_MIME_TYPE:
        return declared
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_MIME_TYPE
    return mime_type


def get_file_extension(filename: str) -> str:
    """Get the extension to keep on the blob key.

    Args:
        filename: Original filename (e.g., 'Report.PDF').

    Returns:
        Extension with dot, lowercase (e.g., '.pdf'). Empty string if
        there is none or it is implausibly long.
    """
    extension = PurePosixPath(filename).suffix.lower()
    if len(extension) > _MAX_EXTENSION_LENGTH:
        return ''
    return extension


def build_storage_path(file_id: UUID, filename: str) -> str:
    """Build the blob key for a shared file.

    Args:
        file_id: Identifier of the shared file record.
        filename: Original filename, used for its extension only.

    Returns:
        Blob key (e.g., 'files/0f3c...9a.pdf').
    """
    return f'{_FILES_PREFIX}/{file_id.hex}{get_file_extension(filename)}'


def build_thumbnail_path(storage_path: str) -> str:
    """Build the blob key of a thumbnail next to its original.

    Args:
        storage_path: Blob key of the original image.

    Returns:
        Sibling key with the thumbnail prefix (e.g., 'files/thumb_ab.png').
    """
    path = PurePosixPath(storage_path)
    return str(path.with_name(f'{THUMBNAIL_PREFIX}{path.name}'))


def is_thumbnail_path(storage_path: str) -> bool:
    """Check whether a blob key names a generated thumbnail."""
    return PurePosixPath(storage_path).name.startswith(THUMBNAIL_PREFIX)


def is_thumbnail_candidate(content_type: str | None, storage_path: str) -> bool:
    """Check whether a stored blob should get a thumbnail.

    Args:
        content_type: MIME type of the blob.
        storage_path: Blob key.

    Returns:
        True for images that are not thumbnails themselves.
    """
    if not content_type or not content_type.startswith('image/'):
        return False
    return not is_thumbnail_path(storage_path)


def format_bytes(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string (e.g., '1.5 MB', '234 KB').
    """
    if size_bytes < 1024:
        return f'{size_bytes} B'
    if size_bytes < 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / 1024:.1f} KB'
    if size_bytes < 1024 * 1024 * 1024:  # noqa: WPS531
        return f'{size_bytes / (1024 * 1024):.1f} MB'
    return f'{size_bytes / (1024 * 1024 * 1024):.1f} GB'
