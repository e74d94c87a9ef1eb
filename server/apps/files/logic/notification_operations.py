"""Business logic for emailing share links."""

import logging
from datetime import UTC, datetime

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from server.apps.files.exceptions import NotificationError

logger = logging.getLogger(__name__)


def describe_expiry(expires_at: datetime, now: datetime | None = None) -> str:
    """Describe when a share expires, for humans.

    Args:
        expires_at: Expiry moment.
        now: Reference moment, defaults to current time.

    Returns:
        Text such as 'in 6 days (2026-10-24 10:00 UTC)'.
    """
    now = now or timezone.now()
    stamp = expires_at.astimezone(UTC).strftime('%Y-%m-%d %H:%M UTC')
    remaining = expires_at - now
    if remaining.total_seconds() <= 0:
        return f'already expired ({stamp})'
    if remaining.days >= 1:
        unit = 'day' if remaining.days == 1 else 'days'
        return f'in {remaining.days} {unit} ({stamp})'
    hours = max(1, remaining.seconds // 3600)
    unit = 'hour' if hours == 1 else 'hours'
    return f'in {hours} {unit} ({stamp})'


def send_share_email(
    recipient: str,
    share_link: str,
    expiry_description: str,
    file_name: str | None = None,
) -> None:
    """Email a share link.

    Failure is reported to the caller; the share itself stays valid.

    Args:
        recipient: Email address to notify.
        share_link: Public download link.
        expiry_description: When the link stops working.
        file_name: Name of the shared file, for the subject line.

    Raises:
        NotificationError: If the mail backend fails.
    """
    subject = f'A file was shared with you: {file_name}' if file_name else (
        'A file was shared with you'
    )
    message = (
        'Someone shared a file with you on QuickSend.\n\n'
        f'Download it here: {share_link}\n'
        f'The link expires {expiry_description}.\n'
    )
    try:
        send_mail(
            subject,
            message,
            settings.DEFAULT_FROM_EMAIL,
            [recipient],
            fail_silently=False,
        )
    except Exception as exc:
        logger.exception('Failed to send share email to %s', recipient)
        raise NotificationError(f'Could not send email to {recipient}') from exc

    logger.info('Share email sent to %s', recipient)
