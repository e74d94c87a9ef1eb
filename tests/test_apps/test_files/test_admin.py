"""Tests for the files admin."""

import pytest
from django.contrib import admin
from django.urls import reverse

from server.apps.files.admin import SharedFileAdmin, UserProfileAdmin
from server.apps.files.models import SharedFile, UserProfile


def test_models_registered():
    """Test both models are registered with their admin classes."""
    assert isinstance(admin.site._registry[SharedFile], SharedFileAdmin)
    assert isinstance(admin.site._registry[UserProfile], UserProfileAdmin)


@pytest.mark.django_db
class TestChangelists:
    """Tests rendering the admin changelists."""

    def test_shared_file_changelist(self, admin_client, make_shared_file):
        """Test shared files list with a readable size."""
        make_shared_file(name='report.pdf', size_bytes=1536)

        response = admin_client.get(
            reverse('admin:files_sharedfile_changelist'),
        )

        assert response.status_code == 200
        assert b'report.pdf' in response.content
        assert b'1.5 KB' in response.content

    def test_user_profile_changelist(self, admin_client, profile):
        """Test profiles list with their usage status."""
        response = admin_client.get(
            reverse('admin:files_userprofile_changelist'),
        )

        assert response.status_code == 200
        assert profile.owner_id.encode() in response.content


@pytest.mark.parametrize(('used', 'expected'), [
    (0, 'OK'),
    (9_000, 'Warning'),
    (10_000, 'Full'),
])
def test_status_display(used, expected):
    """Test status badge follows the usage percentage."""
    profile = UserProfile(
        owner_id='owner-1',
        storage_quota=10_000,
        used_storage=used,
    )
    model_admin = UserProfileAdmin(UserProfile, admin.site)

    assert expected in model_admin.status_display(profile)
