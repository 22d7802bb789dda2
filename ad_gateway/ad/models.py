from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime

from ..ad_utils import build_dc_fqdn, build_principal, domain_to_base_dn


@dataclass(frozen=True)
class ServiceCredentials:
    """Elevated identity used to query the directory on behalf of the caller."""
    username: str
    password: str = field(repr=False)

    def principal(self, domain: str) -> str:
        return build_principal(self.username, domain)


@dataclass
class ADConfig:
    dc_short: str
    domain: str
    port: int
    use_ssl: bool
    starttls: bool
    bind_username: str
    bind_password: str = field(repr=False)
    tls_validate: bool = False
    ca_pem: str = field(default="", repr=False)
    connect_timeout_s: float = 5.0

    @property
    def host(self) -> str:
        return build_dc_fqdn(self.dc_short, self.domain)

    @property
    def base_dn(self) -> str:
        return domain_to_base_dn(self.domain)

    @property
    def bind_principal(self) -> str:
        return build_principal(self.bind_username, self.domain)

    @property
    def service_credentials(self) -> ServiceCredentials:
        return ServiceCredentials(username=self.bind_username, password=self.bind_password)

    @property
    def is_protected(self) -> bool:
        return bool(self.use_ssl or self.starttls)


@dataclass
class DirectoryAccount:
    dn: str
    sam: str
    upn: str = ""
    is_locked: bool = False
    is_disabled: bool = False
    password_expires_at: datetime | None = None
    password_never_expires: bool = False
    password_last_set: datetime | None = None


@dataclass(frozen=True)
class UserDetails:
    """Snapshot of one account's state at query time."""
    is_user_exist: bool = False
    is_account_locked: bool = False
    is_account_active: bool = False
    has_password_expired: bool = False
    password_expiration_date: datetime | None = None
    password_never_expires: bool = False
    force_change_password: bool = False
    password_last_changed: datetime | None = None

    @classmethod
    def not_found(cls) -> "UserDetails":
        return cls(is_user_exist=False, is_account_active=False, has_password_expired=True)

    @classmethod
    def unavailable(cls) -> "UserDetails":
        # Directory unreachable: same fail-closed record as an unknown account.
        return cls.not_found()


class AuthResult(enum.Enum):
    USER_NOT_FOUND = "user_not_found"
    INVALID_CREDENTIALS = "invalid_credentials"
    NOT_PERMITTED_AT_THIS_TIME = "not_permitted_at_this_time"
    NOT_PERMITTED_AT_THIS_WORKSTATION = "not_permitted_at_this_workstation"
    PASSWORD_EXPIRED = "password_expired"
    ACCOUNT_DISABLED = "account_disabled"
    ACCOUNT_EXPIRED = "account_expired"
    MUST_RESET_PASSWORD = "must_reset_password"
    ACCOUNT_LOCKED = "account_locked"
    AUTHENTICATED = "authenticated"


class MessageStatus(enum.IntEnum):
    SUCCESS = 1
    ERROR = 2


@dataclass
class OperationResult:
    """Outcome of a mutating directory operation."""
    result: MessageStatus = MessageStatus.ERROR
    messages: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.result == MessageStatus.SUCCESS

    @classmethod
    def success(cls, message: str) -> "OperationResult":
        return cls(result=MessageStatus.SUCCESS, messages=[message])

    @classmethod
    def error(cls, message: str) -> "OperationResult":
        return cls(result=MessageStatus.ERROR, messages=[message])
