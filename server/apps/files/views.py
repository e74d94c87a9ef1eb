"""HTTP endpoints for uploading, inspecting, downloading and deleting shares.

Views only translate HTTP to the workflows in ``logic`` and back.
"""

import functools
import logging
from collections.abc import Callable
from typing import Any, Final
from uuid import UUID

from botocore.exceptions import BotoCoreError, ClientError
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import DatabaseError
from django.http import (
    FileResponse,
    HttpRequest,
    HttpResponse,
    HttpResponseBase,
    JsonResponse,
)
from django.urls import reverse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from server.apps.files.exceptions import SharingError
from server.apps.files.infrastructure.identity import (
    Principal,
    principal_from_request,
)
from server.apps.files.logic import (
    file_operations,
    quota_operations,
    sharing_operations,
)
from server.apps.files.models import SharedFile
from server.apps.files.policy import SharingPolicy

logger = logging.getLogger(__name__)

_SERVICE_UNAVAILABLE: Final = 503

_View = Callable[..., HttpResponseBase]


def sharing_endpoint(view: _View) -> _View:
    """Map sharing errors and upstream failures to JSON responses."""

    @functools.wraps(view)
    def wrapper(
        request: HttpRequest,
        *args: Any,
        **kwargs: Any,
    ) -> HttpResponseBase:
        try:
            return view(request, *args, **kwargs)
        except SharingError as error:
            return JsonResponse(error.to_dict(), status=error.status_code)
        except ValidationError as error:
            return JsonResponse({'error': ' '.join(error.messages)}, status=400)
        except (BotoCoreError, ClientError, DatabaseError):
            logger.exception('Upstream failure in %s', request.path)
            return JsonResponse(
                {'error': 'Storage temporarily unavailable, try again'},
                status=_SERVICE_UNAVAILABLE,
            )

    return wrapper


def authenticated(view: _View) -> _View:
    """Verify the bearer credential and pass the principal on."""

    @functools.wraps(view)
    def wrapper(
        request: HttpRequest,
        *args: Any,
        **kwargs: Any,
    ) -> HttpResponseBase:
        principal = principal_from_request(request)
        return view(request, principal, *args, **kwargs)

    return wrapper


def _serialize_file(file_instance: SharedFile) -> dict[str, Any]:
    return {
        'id': str(file_instance.id),
        'filename': file_instance.name,
        'size': file_instance.size_bytes,
        'mimeType': file_instance.mime_type,
        'shareToken': file_instance.share_token,
        'uploadDate': file_instance.uploaded_at.isoformat(),
        'expiryDate': file_instance.expires_at.isoformat(),
        'downloads': file_instance.download_count,
        'hasThumbnail': bool(file_instance.thumbnail_path),
        'status': file_instance.status,
    }


@csrf_exempt
@require_http_methods(['POST'])
@sharing_endpoint
@authenticated
def upload(request: HttpRequest, principal: Principal) -> HttpResponse:
    """Upload a single file and return its share token."""
    uploaded_file = request.FILES.get('file')
    if uploaded_file is None:
        return JsonResponse({'error': 'No file uploaded'}, status=400)

    file_instance = sharing_operations.upload_file(
        principal,
        uploaded_file,
        policy=SharingPolicy.from_settings(),
    )
    return JsonResponse(
        {
            'message': 'File uploaded successfully',
            'fileId': str(file_instance.id),
            'shareToken': file_instance.share_token,
            'expiryDate': file_instance.expires_at.isoformat(),
        },
        status=201,
    )


@require_http_methods(['GET'])
@sharing_endpoint
@authenticated
def my_files(request: HttpRequest, principal: Principal) -> HttpResponse:
    """List the caller's shared files with storage usage."""
    usage = quota_operations.get_usage(principal.owner_id)
    files = file_operations.list_owner_files(principal.owner_id)
    return JsonResponse({
        'files': [_serialize_file(file_instance) for file_instance in files],
        'storage': {
            'used': usage.used if usage else 0,
            'quota': usage.quota if usage else None,
        },
    })


@require_http_methods(['GET'])
@sharing_endpoint
@authenticated
def storage_usage(request: HttpRequest, principal: Principal) -> HttpResponse:
    """Report the caller's used and total storage."""
    usage = quota_operations.get_usage(principal.owner_id)
    if usage is None:
        policy = SharingPolicy.from_settings()
        return JsonResponse({
            'used': 0,
            'quota': policy.default_quota_bytes,
            'available': policy.default_quota_bytes,
        })
    return JsonResponse({
        'used': usage.used,
        'quota': usage.quota,
        'available': usage.available,
    })


@require_http_methods(['GET'])
@sharing_endpoint
def file_info(request: HttpRequest, share_token: str) -> HttpResponse:
    """Describe a shared file without counting a download."""
    file_instance = sharing_operations.resolve_share(
        share_token,
        policy=SharingPolicy.from_settings(),
    )
    return JsonResponse({
        'filename': file_instance.name,
        'size': file_instance.size_bytes,
        'mimeType': file_instance.mime_type,
        'uploadDate': file_instance.uploaded_at.isoformat(),
        'expiryDate': file_instance.expires_at.isoformat(),
        'downloads': file_instance.download_count,
    })


@require_http_methods(['GET'])
@sharing_endpoint
def download(request: HttpRequest, share_token: str) -> HttpResponseBase:
    """Stream a shared file as an attachment."""
    file_instance = sharing_operations.authorize_download(
        share_token,
        policy=SharingPolicy.from_settings(),
    )
    return FileResponse(
        sharing_operations.open_download(file_instance),
        as_attachment=True,
        filename=file_instance.name,
        content_type=file_instance.mime_type,
    )


@require_http_methods(['GET'])
@sharing_endpoint
def download_url(request: HttpRequest, share_token: str) -> HttpResponse:
    """Hand out a signed, short-lived URL to the blob."""
    policy = SharingPolicy.from_settings()
    url = sharing_operations.get_download_url(share_token, policy=policy)
    return JsonResponse({
        'url': url,
        'expiresIn': int(policy.signed_url_ttl.total_seconds()),
    })


@csrf_exempt
@require_http_methods(['DELETE'])
@sharing_endpoint
@authenticated
def delete_file(
    request: HttpRequest,
    principal: Principal,
    file_id: UUID,
) -> HttpResponse:
    """Delete one of the caller's files."""
    sharing_operations.delete_owned_file(principal, file_id)
    return HttpResponse(status=204)


@csrf_exempt
@require_http_methods(['POST'])
@sharing_endpoint
@authenticated
def share_email(
    request: HttpRequest,
    principal: Principal,
    file_id: UUID,
) -> HttpResponse:
    """Email the share link of one of the caller's files."""
    recipient = request.POST.get('email', '').strip()
    validate_email(recipient)

    file_instance = sharing_operations.get_owned_file(principal, file_id)
    share_link = request.build_absolute_uri(
        reverse('files:download', args=[file_instance.share_token]),
    )
    sharing_operations.share_by_email(
        principal,
        file_id,
        recipient,
        share_link,
        policy=SharingPolicy.from_settings(),
    )
    return JsonResponse({'message': f'Share link sent to {recipient}'}, status=202)
