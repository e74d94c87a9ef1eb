"""Shared fixtures for files app tests."""

from datetime import timedelta
from io import BytesIO

import boto3
import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from moto import mock_aws
from PIL import Image

from server.apps.files.infrastructure.identity import Principal
from server.apps.files.logic.file_operations import create_file_record
from server.apps.files.logic.quota_operations import provision
from server.apps.files.policy import SharingPolicy


@pytest.fixture
def policy():
    """Sharing policy with small limits for testing.

    Returns:
        SharingPolicy instance.
    """
    return SharingPolicy(
        retention=timedelta(days=7),
        max_downloads=100,
        default_quota_bytes=10_000,
        max_upload_bytes=5_000,
        signed_url_ttl=timedelta(minutes=15),
    )


@pytest.fixture
def principal():
    """Principal acting in tests."""
    return Principal(owner_id='owner-1', email='owner@example.com')


@pytest.fixture
def other_principal():
    """Second principal for isolation tests."""
    return Principal(owner_id='owner-2', email='other@example.com')


@pytest.fixture
def profile(db, principal, policy):
    """Provisioned profile of ``principal``.

    Returns:
        UserProfile with the policy's default quota.
    """
    return provision(principal.owner_id, policy=policy, email=principal.email)


@pytest.fixture
def mock_s3():
    """Mock S3 service with quicksend bucket.

    Yields:
        boto3 S3 resource with quicksend bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket='quicksend')
        yield conn


@pytest.fixture
def sample_upload():
    """Small text upload.

    Returns:
        SimpleUploadedFile with test data.
    """
    return SimpleUploadedFile(
        'notes.txt',
        b'test file content',
        content_type='text/plain',
    )


@pytest.fixture
def png_bytes():
    """PNG image larger than the thumbnail box.

    Returns:
        Encoded 400x300 PNG.
    """
    buffer = BytesIO()
    Image.new('RGB', (400, 300), color=(200, 30, 30)).save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def make_shared_file(db, principal, policy):
    """Factory creating shared file records without touching storage.

    Returns:
        Callable creating a SharedFile.
    """
    counter = iter(range(1, 1000))

    def factory(owner_id=None, size_bytes=100, name='file.txt', **kwargs):
        index = next(counter)
        return create_file_record(
            owner_id or principal.owner_id,
            name,
            size_bytes,
            kwargs.pop('mime_type', 'text/plain'),
            kwargs.pop('storage_path', f'files/test-{index}.txt'),
            policy=kwargs.pop('policy', policy),
            **kwargs,
        )

    return factory
