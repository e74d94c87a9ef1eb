"""Tests for sweep_expired_files and reconcile_storage commands."""

from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from server.apps.files.logic import quota_operations
from server.apps.files.models import SharedFile, UserProfile


@pytest.mark.django_db
class TestSweepExpiredFilesCommand:
    """Tests for sweep_expired_files management command."""

    def test_sweep_deletes_expired_files(self, mock_s3, profile, make_shared_file):
        """Test expired files are reclaimed and quota decremented."""
        expired = make_shared_file(
            size_bytes=100,
            now=timezone.now() - timedelta(days=8),
        )
        quota_operations.credit(profile.owner_id, 100)

        out = StringIO()
        call_command('sweep_expired_files', stdout=out)

        assert not SharedFile.objects.filter(pk=expired.id).exists()
        profile.refresh_from_db()
        assert profile.used_storage == 0
        assert 'Reclaimed 1 files, 0 failed' in out.getvalue()

    def test_sweep_preserves_live_files(self, mock_s3, make_shared_file):
        """Test files within retention and limit survive."""
        live = make_shared_file(now=timezone.now() - timedelta(days=6))

        out = StringIO()
        call_command('sweep_expired_files', stdout=out)

        assert SharedFile.objects.filter(pk=live.id).exists()
        assert 'Reclaimed 0 files' in out.getvalue()

    def test_dry_run_deletes_nothing(self, mock_s3, make_shared_file):
        """Test dry run only lists candidates."""
        expired = make_shared_file(
            name='old.txt',
            now=timezone.now() - timedelta(days=8),
        )

        out = StringIO()
        call_command('sweep_expired_files', '--dry-run', stdout=out)

        assert SharedFile.objects.filter(pk=expired.id).exists()
        assert 'Would reclaim: old.txt' in out.getvalue()
        assert 'Would reclaim 1 files' in out.getvalue()

    def test_batch_size(self, mock_s3, make_shared_file):
        """Test batch size limits processed files."""
        past = timezone.now() - timedelta(days=8)
        for _ in range(3):
            make_shared_file(now=past)

        out = StringIO()
        call_command('sweep_expired_files', '--batch-size', '2', stdout=out)

        assert SharedFile.objects.count() == 1
        assert 'Reclaimed 2 files' in out.getvalue()


@pytest.mark.django_db
class TestReconcileStorageCommand:
    """Tests for reconcile_storage management command."""

    def test_reconciles_all_owners(self, profile, make_shared_file):
        """Test every owner's usage is reset to the sum of its files."""
        make_shared_file(size_bytes=250)
        make_shared_file(owner_id='owner-2', size_bytes=40)
        quota_operations.credit(profile.owner_id, 9999)

        out = StringIO()
        call_command('reconcile_storage', stdout=out)

        assert UserProfile.objects.get(owner_id='owner-1').used_storage == 250
        assert UserProfile.objects.get(owner_id='owner-2').used_storage == 40
        assert 'Reconciled 2 owners' in out.getvalue()

    def test_reconciles_single_owner(self, profile, make_shared_file):
        """Test --owner limits reconciliation."""
        make_shared_file(size_bytes=250)
        make_shared_file(owner_id='owner-2', size_bytes=40)

        out = StringIO()
        call_command('reconcile_storage', '--owner', 'owner-1', stdout=out)

        assert 'owner-1: 250 bytes' in out.getvalue()
        assert not UserProfile.objects.filter(owner_id='owner-2').exists()
