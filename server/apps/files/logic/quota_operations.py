"""Business logic for storage quota operations."""

import logging
from dataclasses import dataclass
from typing import final

from django.db import models, transaction
from django.db.models import F, Sum, Value  # noqa: WPS347
from django.db.models.functions import Greatest
from django.utils import timezone

from server.apps.files.exceptions import QuotaExceededError
from server.apps.files.models import SharedFile, UserProfile
from server.apps.files.policy import SharingPolicy

# Field name constant to avoid string literal over-use
_USED_STORAGE_FIELD = 'used_storage'  # noqa: WPS226

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True, slots=True)
class StorageUsage:
    """Snapshot of an owner's storage accounting."""

    used: int
    quota: int

    @property
    def available(self) -> int:
        """Bytes left before the quota is reached (never negative)."""
        return max(0, self.quota - self.used)


def get_usage(owner_id: str) -> StorageUsage | None:
    """Read an owner's usage.

    Args:
        owner_id: Owner to read usage for.

    Returns:
        StorageUsage, or None if no profile was provisioned yet.
    """
    profile = UserProfile.objects.filter(owner_id=owner_id).first()
    if profile is None:
        return None
    return StorageUsage(
        used=profile.used_storage,
        quota=profile.storage_quota,
    )


def provision(
    owner_id: str,
    *,
    policy: SharingPolicy,
    email: str | None = None,
) -> UserProfile:
    """Get or create the owner's profile (on-demand creation).

    ``get_or_create`` falls back to reading the row when a concurrent
    call inserted it first, so at most one profile results.

    Args:
        owner_id: Owner to provision.
        policy: Sharing policy providing the default quota.
        email: Email to record on a new profile.

    Returns:
        UserProfile for the owner.
    """
    profile, created = UserProfile.objects.get_or_create(
        owner_id=owner_id,
        defaults={
            'storage_quota': policy.default_quota_bytes,
            'email': email or '',
        },
    )
    if created:
        logger.info(
            'Created profile for owner %s: %d bytes quota',
            owner_id,
            profile.storage_quota,
        )
    else:
        UserProfile.objects.filter(owner_id=owner_id).update(
            last_activity_at=timezone.now(),
        )
    return profile


def reserve(owner_id: str, incoming_size: int) -> bool:
    """Check whether an upload fits the owner's quota.

    This is a check, not a reservation: nothing is held until
    ``credit`` runs, so concurrent uploads may overcommit.

    Args:
        owner_id: Uploading owner.
        incoming_size: Size of the upload in bytes.

    Returns:
        True if ``used + incoming_size <= quota``. False when the
        profile does not exist.
    """
    profile = UserProfile.objects.filter(owner_id=owner_id).first()
    return profile is not None and profile.has_space_for(incoming_size)


def check_quota(owner_id: str, incoming_size: int) -> None:
    """Check if owner has enough quota for an upload.

    Args:
        owner_id: Owner to check quota for.
        incoming_size: Size of the upload in bytes.

    Raises:
        QuotaExceededError: If upload would exceed quota or the owner
            has no profile.
    """
    profile = UserProfile.objects.filter(owner_id=owner_id).first()
    if profile is not None and profile.has_space_for(incoming_size):
        return

    quota_bytes = profile.storage_quota if profile else 0
    used_bytes = profile.used_storage if profile else 0
    logger.warning(
        'Quota exceeded for owner %s: need %d, have %d available',
        owner_id,
        incoming_size,
        max(0, quota_bytes - used_bytes),
    )
    raise QuotaExceededError(
        quota_bytes=quota_bytes,
        used_bytes=used_bytes,
        required_bytes=incoming_size,
    )


def credit(owner_id: str, delta: int) -> None:
    """Atomically add to owner's storage usage.

    Negative deltas are applied as a debit.

    Args:
        owner_id: Owner to credit.
        delta: Bytes to add to usage.
    """
    if delta < 0:
        debit(owner_id, -delta)
        return

    updated = UserProfile.objects.filter(owner_id=owner_id).update(
        used_storage=F(_USED_STORAGE_FIELD) + delta,
        last_activity_at=timezone.now(),
    )
    if updated == 0:
        logger.warning(
            'No profile for owner %s, credit of %d bytes dropped',
            owner_id,
            delta,
        )
        return

    logger.debug('Credited %d bytes to owner %s', delta, owner_id)


def debit(owner_id: str, delta: int) -> None:
    """Atomically subtract from owner's storage usage.

    Clamps to 0 inside the same UPDATE statement, so a drifted
    counter can never go negative.

    Args:
        owner_id: Owner to debit.
        delta: Bytes to subtract from usage.
    """
    if delta < 0:
        credit(owner_id, -delta)
        return

    updated = UserProfile.objects.filter(owner_id=owner_id).update(
        used_storage=Greatest(
            F(_USED_STORAGE_FIELD) - delta,
            Value(0),
            output_field=models.BigIntegerField(),
        ),
    )
    if updated == 0:
        # No profile exists, nothing to decrement
        logger.debug(
            'No profile exists for owner %s, skipping debit',
            owner_id,
        )
        return

    logger.debug('Debited %d bytes from owner %s', delta, owner_id)


def recalculate_usage(owner_id: str, *, policy: SharingPolicy) -> int:
    """Recalculate owner's storage usage from live records.

    Repairs drift left by crashes between a blob write and its credit,
    or between a deletion and its debit.

    Args:
        owner_id: Owner to recalculate usage for.
        policy: Sharing policy, used if the profile must be created.

    Returns:
        New calculated usage in bytes.
    """
    total = SharedFile.objects.filter(owner_id=owner_id).aggregate(
        total=Sum('size_bytes'),
    )['total'] or 0

    with transaction.atomic():
        profile = provision(owner_id, policy=policy)
        old_usage = profile.used_storage
        UserProfile.objects.filter(owner_id=owner_id).update(
            used_storage=total,
        )

    logger.info(
        'Recalculated usage for owner %s: %d -> %d bytes',
        owner_id,
        old_usage,
        total,
    )

    return total
