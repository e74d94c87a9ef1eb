"""Policy constants for file sharing.

Read once here and handed to the core as a ``SharingPolicy``
value object (see ``server.apps.files.policy``).
"""

from server.settings.components import config

# Days after upload until a shared file stops being accessible
SHARING_RETENTION_DAYS = config('SHARING_RETENTION_DAYS', cast=int, default=7)

# Successful downloads allowed per shared file
SHARING_MAX_DOWNLOADS = config('SHARING_MAX_DOWNLOADS', cast=int, default=100)

# Storage quota for newly provisioned owners: 1 GB
SHARING_DEFAULT_QUOTA_BYTES = config(
    'SHARING_DEFAULT_QUOTA_BYTES',
    cast=int,
    default=1024 * 1024 * 1024,
)

# Largest single upload accepted: 10 MB
SHARING_MAX_UPLOAD_BYTES = config(
    'SHARING_MAX_UPLOAD_BYTES',
    cast=int,
    default=10 * 1024 * 1024,
)

# Lifetime of signed read URLs handed out for downloads
SHARING_SIGNED_URL_TTL_SECONDS = config(
    'SHARING_SIGNED_URL_TTL_SECONDS',
    cast=int,
    default=15 * 60,
)

# How often the retention sweep runs under celery beat
SHARING_SWEEP_INTERVAL_SECONDS = config(
    'SHARING_SWEEP_INTERVAL_SECONDS',
    cast=int,
    default=60 * 60,
)

# Dotted path of the class verifying bearer credentials
SHARING_IDENTITY_VERIFIER = config(
    'SHARING_IDENTITY_VERIFIER',
    default='server.apps.files.infrastructure.identity.SignedTokenVerifier',
)

# Maximum age of signed bearer credentials, in seconds
SHARING_CREDENTIAL_MAX_AGE_SECONDS = config(
    'SHARING_CREDENTIAL_MAX_AGE_SECONDS',
    cast=int,
    default=24 * 60 * 60,
)
