"""Django admin configuration for files app."""


from django.contrib import admin
from django.utils.html import format_html

from server.apps.files.infrastructure.metadata import format_bytes
from server.apps.files.models import SharedFile, UserProfile


@admin.register(SharedFile)
class SharedFileAdmin(admin.ModelAdmin[SharedFile]):
    """Admin interface for SharedFile model."""

    list_display = [
        'name',
        'owner_id',
        'size_display',
        'mime_type',
        'status',
        'download_count',
        'uploaded_at',
        'expires_at',
    ]

    list_filter = [
        'status',
        'mime_type',
        'uploaded_at',
    ]

    search_fields = [
        'name',
        'owner_id',
        'share_token',
    ]

    readonly_fields = [
        'id',
        'storage_path',
        'thumbnail_path',
        'share_token',
        'size_bytes',
        'mime_type',
        'download_count',
        'uploaded_at',
        'last_downloaded_at',
    ]

    fieldsets = (
        ('File Information', {
            'fields': ('id', 'name', 'owner_id', 'status'),
        }),
        ('Storage', {
            'fields': ('storage_path', 'thumbnail_path', 'size_bytes', 'mime_type'),
        }),
        ('Sharing', {
            'fields': ('share_token', 'download_count', 'expires_at'),
        }),
        ('Timestamps', {
            'fields': ('uploaded_at', 'last_downloaded_at'),
        }),
    )

    def size_display(self, obj: SharedFile) -> str:
        """Display file size in human-readable format.

        Args:
            obj: SharedFile instance.

        Returns:
            Formatted size string (e.g., '1.5 MB', '234 KB').
        """
        return format_bytes(obj.size_bytes)
    size_display.short_description = 'Size'  # type: ignore[attr-defined]


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin[UserProfile]):
    """Admin interface for UserProfile model."""

    list_display = [
        'owner_id',
        'email',
        'quota_display',
        'used_display',
        'percentage_display',
        'status_display',
        'last_activity_at',
    ]

    search_fields = [
        'owner_id',
        'email',
    ]

    readonly_fields = [
        'owner_id',
        'used_storage',
        'created_at',
        'last_activity_at',
    ]

    fieldsets = (
        ('Owner', {
            'fields': ('owner_id', 'email'),
        }),
        ('Quota Settings', {
            'fields': ('storage_quota',),
        }),
        ('Current Usage', {
            'fields': ('used_storage',),
        }),
        ('Activity', {
            'fields': ('created_at', 'last_activity_at'),
        }),
    )

    def quota_display(self, obj: UserProfile) -> str:
        """Display quota in human-readable format."""
        return format_bytes(obj.storage_quota)
    quota_display.short_description = 'Quota'  # type: ignore[attr-defined]

    def used_display(self, obj: UserProfile) -> str:
        """Display used bytes in human-readable format."""
        return format_bytes(obj.used_storage)
    used_display.short_description = 'Used'  # type: ignore[attr-defined]

    def percentage_display(self, obj: UserProfile) -> str:
        """Display percentage of quota used.

        Args:
            obj: UserProfile instance.

        Returns:
            Percentage string.
        """
        return f'{_usage_percentage(obj):.1f}%'
    percentage_display.short_description = '%'  # type: ignore[attr-defined]

    def status_display(self, obj: UserProfile) -> str:
        """Display status indicator based on usage.

        Args:
            obj: UserProfile instance.

        Returns:
            HTML formatted status indicator.
        """
        percentage = _usage_percentage(obj)
        if percentage >= 100:
            color = '#dc3545'  # Red - full
            status = 'Full'
        elif percentage >= 90:
            color = '#ffc107'  # Yellow - warning
            status = 'Warning'
        else:
            color = '#28a745'  # Green - ok
            status = 'OK'

        return format_html(
            '<span style="color: {color}; font-weight: bold;">'
            '{status}</span>',
            color=color,
            status=status,
        )
    status_display.short_description = 'Status'  # type: ignore[attr-defined]


def _usage_percentage(profile: UserProfile) -> float:
    if profile.storage_quota == 0:
        return 0.0
    return (profile.used_storage / profile.storage_quota) * 100
