"""Active Directory account helpers: user details, credential status, password change."""

from .ad import (
    ADClient,
    ADClientError,
    ADConfig,
    AuthResult,
    MessageStatus,
    OperationResult,
    ServiceCredentials,
    UserDetails,
    classify_bind_error,
)
from .log_config import setup_logging, setup_logging_from_env
from .services.accounts import (
    DirectoryAccountGateway,
    change_password,
    gateway_from_env,
    get_user_details,
    get_user_status,
)

__all__ = [
    "ADClient",
    "ADClientError",
    "ADConfig",
    "AuthResult",
    "MessageStatus",
    "OperationResult",
    "ServiceCredentials",
    "UserDetails",
    "classify_bind_error",
    "DirectoryAccountGateway",
    "change_password",
    "gateway_from_env",
    "get_user_details",
    "get_user_status",
    "setup_logging",
    "setup_logging_from_env",
]
