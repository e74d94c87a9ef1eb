"""Integration tests for FileStorage against a running MinIO.

Skipped unless ``MINIO_ENDPOINT`` points at an S3-compatible server
(e.g. ``http://minio:9000`` under Docker Compose).
"""
import os
from datetime import timedelta
from io import BytesIO
from typing import Final

import boto3
import pytest
from botocore.client import BaseClient
from botocore.exceptions import ClientError

from server.apps.files.infrastructure.storage import FileStorage

_TEST_BUCKET: Final = 'quicksend-integration'
_TEST_FILE_KEY: Final = 'files/integration-test.txt'
_TEST_FILE_CONTENT: Final = b'Hello from MinIO integration test!'

_MINIO_ENDPOINT = os.getenv('MINIO_ENDPOINT')
_ACCESS_KEY = os.getenv('MINIO_ROOT_USER', 'minioadmin')
_SECRET_KEY = os.getenv('MINIO_ROOT_PASSWORD', 'minioadmin')

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not _MINIO_ENDPOINT,
        reason='MINIO_ENDPOINT is not set',
    ),
]


@pytest.fixture
def s3_client() -> BaseClient:
    """Create S3 client for MinIO.

    Returns:
        Configured boto3 S3 client for MinIO.
    """
    return boto3.client(
        's3',
        endpoint_url=_MINIO_ENDPOINT,
        aws_access_key_id=_ACCESS_KEY,
        aws_secret_access_key=_SECRET_KEY,
        region_name='us-east-1',
    )


@pytest.fixture
def storage(s3_client: BaseClient) -> FileStorage:
    """FileStorage bound to an existing test bucket.

    Args:
        s3_client: boto3 S3 client.

    Returns:
        FileStorage for the test bucket.
    """
    try:
        s3_client.head_bucket(Bucket=_TEST_BUCKET)
    except ClientError:
        s3_client.create_bucket(Bucket=_TEST_BUCKET)

    return FileStorage(
        bucket_name=_TEST_BUCKET,
        endpoint_url=_MINIO_ENDPOINT,
        access_key=_ACCESS_KEY,
        secret_key=_SECRET_KEY,
        region_name='us-east-1',
        file_overwrite=False,
        querystring_auth=True,
    )


def test_put_object_with_metadata(
    s3_client: BaseClient,
    storage: FileStorage,
) -> None:
    """Test uploads keep content type and metadata.

    Args:
        s3_client: boto3 S3 client.
        storage: Storage under test.
    """
    storage.put_object(
        _TEST_FILE_KEY,
        BytesIO(_TEST_FILE_CONTENT),
        'text/plain',
        metadata={'file-record-id': 'integration'},
    )

    response = s3_client.head_object(Bucket=_TEST_BUCKET, Key=_TEST_FILE_KEY)
    assert response['ContentLength'] == len(_TEST_FILE_CONTENT)
    assert response['ContentType'] == 'text/plain'
    assert response['Metadata'] == {'file-record-id': 'integration'}


def test_open_reads_back(storage: FileStorage) -> None:
    """Test stored bytes stream back unchanged.

    Args:
        storage: Storage under test.
    """
    storage.put_object(_TEST_FILE_KEY, BytesIO(_TEST_FILE_CONTENT), 'text/plain')

    with storage.open(_TEST_FILE_KEY, 'rb') as stream:
        assert stream.read() == _TEST_FILE_CONTENT


def test_signed_read_url(storage: FileStorage) -> None:
    """Test signed URLs point at the object.

    Args:
        storage: Storage under test.
    """
    url = storage.signed_read_url(_TEST_FILE_KEY, timedelta(minutes=1))

    assert url.startswith(_MINIO_ENDPOINT)
    assert _TEST_FILE_KEY in url


def test_delete_object(s3_client: BaseClient, storage: FileStorage) -> None:
    """Test deleting an object from MinIO.

    Args:
        s3_client: boto3 S3 client.
        storage: Storage under test.
    """
    storage.put_object(_TEST_FILE_KEY, BytesIO(_TEST_FILE_CONTENT), 'text/plain')

    storage.delete(_TEST_FILE_KEY)

    with pytest.raises(ClientError) as exc_info:
        s3_client.head_object(Bucket=_TEST_BUCKET, Key=_TEST_FILE_KEY)

    assert exc_info.value.response['Error']['Code'] == '404'
