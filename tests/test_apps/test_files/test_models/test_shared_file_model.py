"""Tests for SharedFile and UserProfile models."""

from datetime import timedelta

import pytest
from django.db import IntegrityError
from django.utils import timezone

from server.apps.files.models import FileStatus, SharedFile, UserProfile


@pytest.mark.django_db
def test_shared_file_defaults(make_shared_file, policy):
    """Test created record carries token, expiry and zero downloads."""
    file_instance = make_shared_file(size_bytes=42, name='Report.PDF')

    assert len(file_instance.share_token) == 64
    assert file_instance.download_count == 0
    assert file_instance.status == FileStatus.UPLOADED
    assert file_instance.thumbnail_path == ''
    assert file_instance.expires_at - file_instance.uploaded_at == policy.retention
    assert str(file_instance) == 'owner-1:Report.PDF'


def test_status_defaults_to_uploaded():
    """Test a new record starts out as uploaded."""
    file_instance = SharedFile(owner_id='owner-1', name='a.txt', size_bytes=1)

    assert file_instance.status == FileStatus.UPLOADED


@pytest.mark.django_db
def test_is_expired_boundary(make_shared_file):
    """Test file counts as expired exactly at expires_at."""
    file_instance = make_shared_file()

    before = file_instance.expires_at - timedelta(microseconds=1)
    assert not file_instance.is_expired(before)
    assert file_instance.is_expired(file_instance.expires_at)


@pytest.mark.django_db
def test_download_limit_boundary(make_shared_file):
    """Test limit is reached once count equals the maximum."""
    file_instance = make_shared_file()

    file_instance.download_count = 99
    assert not file_instance.is_download_limit_reached(100)
    file_instance.download_count = 100
    assert file_instance.is_download_limit_reached(100)


@pytest.mark.django_db
def test_size_must_be_positive():
    """Test database refuses non-positive sizes."""
    now = timezone.now()
    with pytest.raises(IntegrityError):
        SharedFile.objects.create(
            owner_id='owner-1',
            name='empty.txt',
            size_bytes=0,
            mime_type='text/plain',
            storage_path='files/empty.txt',
            share_token='a' * 64,
            expires_at=now,
        )


@pytest.mark.django_db
def test_share_token_is_unique(make_shared_file):
    """Test two records cannot share a token."""
    first = make_shared_file()
    second = make_shared_file()

    second.share_token = first.share_token
    with pytest.raises(IntegrityError):
        second.save()


@pytest.mark.django_db
def test_profile_space_helpers():
    """Test has_space_for and available_bytes."""
    profile = UserProfile.objects.create(
        owner_id='owner-1',
        storage_quota=1000,
        used_storage=400,
    )

    assert profile.has_space_for(600)
    assert not profile.has_space_for(601)
    assert profile.available_bytes() == 600
    assert str(profile) == 'owner-1: 400/1000'


@pytest.mark.django_db
def test_profile_used_storage_cannot_be_negative():
    """Test database refuses negative usage."""
    with pytest.raises(IntegrityError):
        UserProfile.objects.create(
            owner_id='owner-1',
            storage_quota=1000,
            used_storage=-1,
        )
