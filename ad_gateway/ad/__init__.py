"""Active Directory (LDAP) client package.

Public API:
    - ADConfig, ServiceCredentials
    - ADClient, ADSession
    - UserDetails, AuthResult, MessageStatus, OperationResult
"""

from .models import (
    ADConfig,
    AuthResult,
    DirectoryAccount,
    MessageStatus,
    OperationResult,
    ServiceCredentials,
    UserDetails,
)
from .errors import ADClientError, classify_bind_error, humanize_password_error
from .client import ADClient, ADSession

__all__ = [
    "ADConfig",
    "ServiceCredentials",
    "DirectoryAccount",
    "UserDetails",
    "AuthResult",
    "MessageStatus",
    "OperationResult",
    "ADClientError",
    "classify_bind_error",
    "humanize_password_error",
    "ADClient",
    "ADSession",
]
