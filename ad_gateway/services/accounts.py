"""Account lookup, credential check and password change on top of ADClient.

No exception leaves DirectoryAccountGateway: directory failures are logged and
converted to fail-closed values (inactive account, USER_NOT_FOUND, ERROR result).
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, ContextManager, Optional, Protocol

from ldap3.core.exceptions import LDAPException
from pydantic import ValidationError

from ..ad import (
    ADClient,
    ADClientError,
    AuthResult,
    DirectoryAccount,
    OperationResult,
    ServiceCredentials,
    UserDetails,
    classify_bind_error,
    humanize_password_error,
)
from ..env_settings import EnvSettings, ad_cfg_from_env, get_env

log = logging.getLogger(__name__)

PASSWORD_CHANGED_MESSAGE = "The password has been successfully changed"


class DirectorySession(Protocol):
    def find_account(self, login: str) -> Optional[DirectoryAccount]:
        ...

    def change_password(self, account: DirectoryAccount, old_password: str, new_password: str) -> tuple[bool, str]:
        ...


class DirectoryClient(Protocol):
    """What the gateway needs from a directory client (ADClient implements it)."""

    @property
    def is_protected(self) -> bool:
        ...

    def service_session(self, credentials: ServiceCredentials | None = None) -> ContextManager[DirectorySession]:
        ...

    def bind_user(self, user: str, password: str) -> tuple[bool, str]:
        ...

    def service_bind(self, credentials: ServiceCredentials | None = None) -> tuple[bool, str]:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def details_from_account(account: DirectoryAccount, now: datetime) -> UserDetails:
    expires_at = account.password_expires_at
    if account.password_never_expires:
        expired = False
    else:
        expired = expires_at is not None and expires_at <= now

    return UserDetails(
        is_user_exist=True,
        is_account_locked=account.is_locked,
        is_account_active=not account.is_disabled,
        has_password_expired=expired,
        password_expiration_date=expires_at,
        password_never_expires=account.password_never_expires,
        force_change_password=account.password_last_set is None and not account.password_never_expires,
        password_last_changed=account.password_last_set,
    )


class DirectoryAccountGateway:
    def __init__(self, client: DirectoryClient, clock: Callable[[], datetime] = _utcnow) -> None:
        self.client = client
        self.clock = clock

    def get_user_details(self, username: str | None, credentials: ServiceCredentials | None = None) -> UserDetails | None:
        """Account state in AD.

        Returns:
            None when the login is empty (no query performed);
            UserDetails.not_found() for an unknown login;
            UserDetails.unavailable() when AD cannot be queried.
        """
        login = (username or "").strip()
        if not login:
            return None

        try:
            with self.client.service_session(credentials) as session:
                account = session.find_account(login)
        except Exception:
            log.warning("AD lookup failed for %s", login, exc_info=True)
            return UserDetails.unavailable()

        if account is None:
            return UserDetails.not_found()
        return details_from_account(account, self.clock())

    def get_user_status(self, username: str | None, password: str | None,
                        credentials: ServiceCredentials | None = None) -> AuthResult:
        """Check a login/password pair and decode the reason AD rejected it."""
        login = (username or "").strip()
        if not login:
            return AuthResult.USER_NOT_FOUND

        try:
            with self.client.service_session(credentials) as session:
                account = session.find_account(login)
        except Exception:
            log.warning("AD lookup failed for %s", login, exc_info=True)
            return AuthResult.USER_NOT_FOUND

        if account is None:
            return AuthResult.USER_NOT_FOUND

        # Simple bind with an empty password is an anonymous bind and succeeds.
        if not password:
            return AuthResult.INVALID_CREDENTIALS

        try:
            ok, message = self.client.bind_user(account.dn, password)
        except Exception:
            log.warning("AD bind failed for %s", login, exc_info=True)
            return AuthResult.USER_NOT_FOUND

        if ok:
            return AuthResult.AUTHENTICATED

        status = classify_bind_error(message)
        log.info("AD bind rejected for %s: %s", login, status.value)
        return status

    def change_password(self, username: str | None, current_password: str, new_password: str,
                        credentials: ServiceCredentials | None = None) -> OperationResult:
        login = (username or "").strip()
        if not login:
            return OperationResult.error("Username is required")
        # Without the old password ldap3 sends an administrative reset instead of a change.
        if not current_password:
            return OperationResult.error("Current password is required")
        if not new_password:
            return OperationResult.error("New password is required")
        if not self.client.is_protected:
            return OperationResult.error(
                "Password change requires a protected connection (LDAPS or StartTLS)"
            )

        try:
            with self.client.service_session(credentials) as session:
                account = session.find_account(login)
                if account is None:
                    return OperationResult.error(f"{login} not found")
                ok, message = session.change_password(account, current_password, new_password)
        except Exception as e:
            log.warning("AD password change failed for %s", login, exc_info=True)
            return OperationResult.error(str(e) or e.__class__.__name__)

        if not ok:
            log.info("AD rejected password change for %s: %s", login, message)
            return OperationResult.error(humanize_password_error(message))

        log.info("Password changed for %s", login)
        return OperationResult.success(PASSWORD_CHANGED_MESSAGE)

    def check_connection(self, credentials: ServiceCredentials | None = None) -> tuple[bool, str]:
        try:
            return self.client.service_bind(credentials)
        except Exception as e:
            log.warning("AD connection check failed", exc_info=True)
            return False, str(e)


def gateway_from_env(env: EnvSettings | None = None) -> DirectoryAccountGateway:
    if env is None:
        try:
            env = get_env()
        except ValidationError as e:
            raise ADClientError(f"Invalid AD settings in environment: {e}") from e
    cfg = ad_cfg_from_env(env)
    if not cfg:
        raise ADClientError("AD is not configured (set AD_DC_SHORT, AD_DOMAIN, AD_BIND_USERNAME)")
    try:
        client = ADClient(cfg)
    except (ValueError, LDAPException) as e:
        raise ADClientError(f"AD client setup failed: {e}") from e
    return DirectoryAccountGateway(client)


def get_user_details(username: str | None) -> UserDetails | None:
    if not (username or "").strip():
        return None
    try:
        gateway = gateway_from_env()
    except ADClientError:
        log.warning("AD gateway is not available", exc_info=True)
        return UserDetails.unavailable()
    return gateway.get_user_details(username)


def get_user_status(username: str | None, password: str | None) -> AuthResult:
    if not (username or "").strip():
        return AuthResult.USER_NOT_FOUND
    try:
        gateway = gateway_from_env()
    except ADClientError:
        log.warning("AD gateway is not available", exc_info=True)
        return AuthResult.USER_NOT_FOUND
    return gateway.get_user_status(username, password)


def change_password(username: str | None, current_password: str, new_password: str) -> OperationResult:
    try:
        gateway = gateway_from_env()
    except ADClientError as e:
        return OperationResult.error(str(e))
    return gateway.change_password(username, current_password, new_password)
