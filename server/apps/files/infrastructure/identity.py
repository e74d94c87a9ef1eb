"""Bearer credential verification.

The core only ever sees a ``Principal``. Which identity provider
stands behind it is chosen by ``SHARING_IDENTITY_VERIFIER``; the
default verifier accepts credentials signed with Django's signing
framework (see ``issue_credential``).
"""

import logging
from dataclasses import dataclass
from functools import cache
from typing import Final, Protocol, final

from django.conf import settings
from django.core import signing
from django.http import HttpRequest
from django.utils.module_loading import import_string

from server.apps.files.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

_SIGNING_SALT: Final = 'server.apps.files.identity'
_BEARER_PREFIX: Final = 'Bearer '


@final
@dataclass(frozen=True, slots=True)
class Principal:
    """Verified identity of a caller."""

    owner_id: str
    email: str | None = None


class IdentityVerifier(Protocol):
    """Turns a bearer credential into a principal."""

    def verify(self, credential: str) -> Principal:
        """Verify credential or raise ``AuthenticationError``."""


@final
class SignedTokenVerifier:
    """Verifies credentials produced by ``issue_credential``."""

    def __init__(self, max_age: int | None = None) -> None:
        """Initialize the verifier.

        Args:
            max_age: Maximum credential age in seconds. Defaults to
                ``SHARING_CREDENTIAL_MAX_AGE_SECONDS``.
        """
        if max_age is None:
            max_age = settings.SHARING_CREDENTIAL_MAX_AGE_SECONDS
        self._max_age = max_age

    def verify(self, credential: str) -> Principal:
        """Verify a signed credential.

        Args:
            credential: Token from the Authorization header.

        Returns:
            Principal the credential was issued for.

        Raises:
            AuthenticationError: If the signature is bad or expired.
        """
        try:
            payload = signing.loads(
                credential,
                salt=_SIGNING_SALT,
                max_age=self._max_age,
            )
        except signing.BadSignature as exc:
            logger.info('Rejected credential: %s', exc)
            raise AuthenticationError('Invalid or expired credential') from exc

        owner_id = payload.get('sub')
        if not owner_id:
            raise AuthenticationError('Credential has no subject')
        return Principal(owner_id=owner_id, email=payload.get('email'))


def issue_credential(owner_id: str, email: str | None = None) -> str:
    """Sign a credential for the default verifier.

    Args:
        owner_id: Stable principal identifier.
        email: Optional email of the principal.

    Returns:
        URL-safe signed token.
    """
    return signing.dumps({'sub': owner_id, 'email': email}, salt=_SIGNING_SALT)


@cache
def get_identity_verifier() -> IdentityVerifier:
    """Instantiate the configured verifier once per process."""
    verifier_class = import_string(settings.SHARING_IDENTITY_VERIFIER)
    return verifier_class()


def verify_credential(credential: str) -> Principal:
    """Verify a bearer credential with the configured verifier.

    Args:
        credential: Raw credential.

    Returns:
        Verified principal.

    Raises:
        AuthenticationError: If verification fails.
    """
    return get_identity_verifier().verify(credential)


def principal_from_request(request: HttpRequest) -> Principal:
    """Authenticate a request by its ``Authorization: Bearer`` header.

    Args:
        request: Incoming HTTP request.

    Returns:
        Verified principal.

    Raises:
        AuthenticationError: If the header is missing or invalid.
    """
    header = request.headers.get('Authorization', '')
    if not header.startswith(_BEARER_PREFIX):
        raise AuthenticationError('Missing bearer credential')
    credential = header.removeprefix(_BEARER_PREFIX).strip()
    if not credential:
        raise AuthenticationError('Missing bearer credential')
    return verify_credential(credential)
