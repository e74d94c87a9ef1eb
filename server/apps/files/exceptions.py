"""Exceptions for files app.

Each error carries the HTTP status it maps to and enough context
for the caller to explain the failure without re-querying state.
"""

from datetime import datetime
from typing import Any, ClassVar


class SharingError(Exception):
    """Base class for expected sharing outcomes (not found, gone...)."""

    status_code: ClassVar[int] = 400

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for an API response.

        Returns:
            Dictionary with the error message and context fields.
        """
        return {'error': str(self)}


class ShareNotFoundError(SharingError):
    """Raised when no shared file matches a token or id."""

    status_code = 404

    def __init__(self, message: str = 'File not found') -> None:
        """Initialize ShareNotFoundError.

        Args:
            message: Human-readable message.
        """
        super().__init__(message)


class ShareGoneError(SharingError):
    """Raised when a shared file expired or ran out of downloads."""

    status_code = 410

    def __init__(self, reason: str, expires_at: datetime) -> None:
        """Initialize ShareGoneError.

        Args:
            reason: Why the file is no longer accessible.
            expires_at: Expiry moment of the file.
        """
        self.reason = reason
        self.expires_at = expires_at
        super().__init__(reason)

    def to_dict(self) -> dict[str, Any]:
        """Serialize error with the expiry date."""
        return {
            'error': self.reason,
            'expiryDate': self.expires_at.isoformat(),
        }


class ForbiddenError(SharingError):
    """Raised when a principal acts on a file owned by someone else."""

    status_code = 403


class QuotaExceededError(SharingError):
    """Raised when upload would exceed owner's storage quota."""

    status_code = 413

    def __init__(
        self,
        quota_bytes: int,
        used_bytes: int,
        required_bytes: int,
    ) -> None:
        """Initialize QuotaExceededError.

        Args:
            quota_bytes: Total quota limit in bytes.
            used_bytes: Currently used bytes.
            required_bytes: Bytes needed for the operation.
        """
        self.quota_bytes = quota_bytes
        self.used_bytes = used_bytes
        self.required_bytes = required_bytes

        available = max(0, quota_bytes - used_bytes)
        super().__init__(
            f'Quota exceeded: need {required_bytes} bytes, '
            f'only {available} bytes available '
            f'(quota: {quota_bytes}, used: {used_bytes})',
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize error with current usage."""
        return {
            'error': str(self),
            'quota': self.quota_bytes,
            'used': self.used_bytes,
            'required': self.required_bytes,
        }


class FileTooLargeError(SharingError):
    """Raised when a single upload exceeds the size ceiling."""

    status_code = 413

    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        """Initialize FileTooLargeError.

        Args:
            size_bytes: Size of the rejected upload.
            max_bytes: Largest upload accepted.
        """
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(
            f'File too large: {size_bytes} bytes '
            f'(limit: {max_bytes} bytes)',
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize error with the size limit."""
        return {
            'error': str(self),
            'size': self.size_bytes,
            'limit': self.max_bytes,
        }


class AuthenticationError(SharingError):
    """Raised when a bearer credential is missing or invalid."""

    status_code = 401


class NotificationError(SharingError):
    """Raised when a share notification could not be delivered."""

    status_code = 502
