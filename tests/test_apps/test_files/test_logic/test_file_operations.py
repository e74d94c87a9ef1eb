"""Tests for shared file record lifecycle."""

import uuid
from datetime import timedelta

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from server.apps.files.logic import file_operations
from server.apps.files.logic.token_operations import generate_share_token
from server.apps.files.models import SharedFile


def test_share_tokens_are_hex_and_distinct():
    """Test tokens are 64 lowercase hex chars and do not repeat."""
    tokens = {generate_share_token() for _ in range(1000)}

    assert len(tokens) == 1000
    for token in tokens:
        assert len(token) == 64
        assert set(token) <= set('0123456789abcdef')


@pytest.mark.django_db
def test_create_file_record_sets_expiry_from_upload(policy):
    """Test expiry is upload moment plus retention."""
    now = timezone.now()
    file_instance = file_operations.create_file_record(
        'owner-1',
        'a.txt',
        10,
        'text/plain',
        'files/a.txt',
        policy=policy,
        now=now,
    )

    assert file_instance.uploaded_at == now
    assert file_instance.expires_at == now + timedelta(days=7)


@pytest.mark.django_db
def test_create_file_record_uses_given_id(policy):
    """Test pre-allocated id is kept."""
    file_id = uuid.uuid4()
    file_instance = file_operations.create_file_record(
        'owner-1',
        'a.txt',
        10,
        'text/plain',
        'files/a.txt',
        policy=policy,
        file_id=file_id,
    )

    assert file_instance.id == file_id


@pytest.mark.django_db
@pytest.mark.parametrize('size_bytes', [0, -5])
def test_create_file_record_rejects_non_positive_size(policy, size_bytes):
    """Test empty and negative sizes are refused before any write."""
    with pytest.raises(ValidationError):
        file_operations.create_file_record(
            'owner-1',
            'a.txt',
            size_bytes,
            'text/plain',
            'files/a.txt',
            policy=policy,
        )

    assert not SharedFile.objects.exists()


@pytest.mark.django_db
def test_create_twice_gives_two_tokens(make_shared_file):
    """Test creation is not idempotent."""
    first = make_shared_file(name='same.txt')
    second = make_shared_file(name='same.txt')

    assert first.id != second.id
    assert first.share_token != second.share_token


@pytest.mark.django_db
def test_lookup_by_token(make_shared_file):
    """Test token lookup finds the record and is repeatable."""
    file_instance = make_shared_file()

    first = file_operations.lookup_by_token(file_instance.share_token)
    second = file_operations.lookup_by_token(file_instance.share_token)

    assert first == second == file_instance
    assert file_operations.lookup_by_token('0' * 64) is None


@pytest.mark.django_db
def test_lookup_by_id_handles_unknown_and_malformed(make_shared_file):
    """Test id lookup returns None for unknown or malformed ids."""
    file_instance = make_shared_file()

    assert file_operations.lookup_by_id(file_instance.id) == file_instance
    assert file_operations.lookup_by_id(str(file_instance.id)) == file_instance
    assert file_operations.lookup_by_id(uuid.uuid4()) is None
    assert file_operations.lookup_by_id('not-a-uuid') is None


@pytest.mark.django_db
def test_is_accessible_boundaries(make_shared_file):
    """Test accessibility at expiry and download limit boundaries."""
    file_instance = make_shared_file()
    just_before = file_instance.expires_at - timedelta(seconds=1)

    assert file_operations.is_accessible(file_instance, just_before, 100)
    assert not file_operations.is_accessible(
        file_instance,
        file_instance.expires_at,
        100,
    )

    file_instance.download_count = 99
    assert file_operations.is_accessible(file_instance, just_before, 100)
    file_instance.download_count = 100
    assert not file_operations.is_accessible(file_instance, just_before, 100)


@pytest.mark.django_db
def test_inaccessibility_reason(make_shared_file):
    """Test reason reports expiry before download limit."""
    file_instance = make_shared_file()
    file_instance.download_count = 100

    assert file_operations.inaccessibility_reason(
        file_instance,
        file_instance.expires_at,
        100,
    ) == 'File has expired'
    assert file_operations.inaccessibility_reason(
        file_instance,
        timezone.now(),
        100,
    ) == 'Download limit reached'
    assert file_operations.inaccessibility_reason(
        file_instance,
        timezone.now(),
        101,
    ) is None


@pytest.mark.django_db
def test_record_download_with_stale_instances(make_shared_file):
    """Test 100 downloads from stale copies all get counted."""
    file_instance = make_shared_file()
    stale_copies = [
        SharedFile.objects.get(pk=file_instance.id) for _ in range(100)
    ]

    for stale in stale_copies:
        file_operations.record_download(stale.id)

    file_instance.refresh_from_db()
    assert file_instance.download_count == 100
    assert file_instance.last_downloaded_at is not None


@pytest.mark.django_db
def test_record_download_for_missing_file_is_noop():
    """Test counting a missing file does not fail."""
    assert not file_operations.record_download(uuid.uuid4())


@pytest.mark.django_db
def test_record_download_stops_at_limit(make_shared_file):
    """Test a bounded count never passes the limit."""
    file_instance = make_shared_file()

    counted = [
        file_operations.record_download(file_instance.id, max_downloads=3)
        for _ in range(5)
    ]

    file_instance.refresh_from_db()
    assert counted == [True, True, True, False, False]
    assert file_instance.download_count == 3


@pytest.mark.django_db
def test_delete_file_record_reports_whether_deleted(make_shared_file):
    """Test second delete of the same record returns False."""
    file_instance = make_shared_file()

    assert file_operations.delete_file_record(file_instance.id)
    assert not file_operations.delete_file_record(file_instance.id)
    assert file_operations.lookup_by_token(file_instance.share_token) is None


@pytest.mark.django_db
def test_attach_thumbnail_only_once(make_shared_file):
    """Test thumbnail path is write-once and leaves other fields alone."""
    file_instance = make_shared_file()

    assert file_operations.attach_thumbnail(file_instance.id, 'files/thumb_a.png')
    assert not file_operations.attach_thumbnail(
        file_instance.id,
        'files/thumb_b.png',
    )

    refreshed = SharedFile.objects.get(pk=file_instance.id)
    assert refreshed.thumbnail_path == 'files/thumb_a.png'
    assert refreshed.share_token == file_instance.share_token
    assert refreshed.expires_at == file_instance.expires_at


@pytest.mark.django_db
def test_attach_thumbnail_to_missing_record(make_shared_file):
    """Test attaching to a deleted record updates nothing."""
    assert not file_operations.attach_thumbnail(uuid.uuid4(), 'files/thumb_a.png')


@pytest.mark.django_db
def test_list_owner_files_newest_first(make_shared_file):
    """Test listing is scoped to the owner and ordered by upload time."""
    now = timezone.now()
    older = make_shared_file(now=now - timedelta(hours=1))
    newer = make_shared_file(now=now)
    make_shared_file(owner_id='owner-2')

    assert list(file_operations.list_owner_files('owner-1')) == [newer, older]


@pytest.mark.django_db
def test_find_reclaimable(make_shared_file, policy):
    """Test expired and exhausted records are found, live ones are not."""
    now = timezone.now()
    expired = make_shared_file(now=now - timedelta(days=8))
    exhausted = make_shared_file()
    SharedFile.objects.filter(pk=exhausted.id).update(download_count=100)
    make_shared_file()

    found = list(file_operations.find_reclaimable(now, policy.max_downloads))

    assert found == [expired, exhausted]
