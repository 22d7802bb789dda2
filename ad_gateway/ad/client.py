from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional
import hashlib
import logging
import os
import ssl

from ldap3 import ALL, SUBTREE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPException

from ..ad_utils import is_upn
from .errors import ADClientError
from .models import ADConfig, DirectoryAccount, ServiceCredentials
from .utils import (
    UF_ACCOUNTDISABLE,
    UF_DONT_EXPIRE_PASSWD,
    UF_LOCKOUT,
    escape_ldap_filter_value,
    filetime_to_dt,
    password_expiry_to_dt,
    to_int,
)

log = logging.getLogger(__name__)

ACCOUNT_ATTRIBUTES = [
    "distinguishedName",
    "sAMAccountName",
    "userPrincipalName",
    "userAccountControl",
    "msDS-User-Account-Control-Computed",
    "msDS-UserPasswordExpiryTimeComputed",
    "pwdLastSet",
    "lockoutTime",
]

# LDAP result codes that mean "no such account" rather than a broken directory
_NOT_FOUND_RESULTS = {0, 4, 32}  # success (empty), sizeLimitExceeded, noSuchObject


def _safe_unbind(conn: Connection | None) -> None:
    if conn is None:
        return
    try:
        conn.unbind()
    except LDAPException:
        log.debug("LDAP unbind failed", exc_info=True)


def _raw_str(raw: dict, name: str) -> str:
    v = raw.get(name.lower())
    if isinstance(v, (list, tuple)):
        v = v[0] if v else None
    if v is None:
        return ""
    if isinstance(v, (bytes, bytearray)):
        return bytes(v).decode("utf-8", errors="replace").strip()
    return str(v).strip()


def account_from_entry(entry: dict) -> DirectoryAccount:
    """Build DirectoryAccount from one ldap3 search response item (raw attributes)."""
    raw = {str(k).lower(): v for k, v in (entry.get("raw_attributes") or {}).items()}

    uac = to_int(raw.get("useraccountcontrol"))
    computed_key = "msds-user-account-control-computed"
    if computed_key in raw:
        locked = bool(to_int(raw.get(computed_key)) & UF_LOCKOUT)
    else:
        locked = to_int(raw.get("lockouttime")) > 0

    never_expires = bool(uac & UF_DONT_EXPIRE_PASSWD)
    expiry_raw = raw.get("msds-userpasswordexpirytimecomputed")
    expires_at = password_expiry_to_dt(expiry_raw) if expiry_raw is not None else None

    return DirectoryAccount(
        dn=str(entry.get("dn") or _raw_str(raw, "distinguishedName")),
        sam=_raw_str(raw, "sAMAccountName"),
        upn=_raw_str(raw, "userPrincipalName"),
        is_locked=locked,
        is_disabled=bool(uac & UF_ACCOUNTDISABLE),
        password_expires_at=expires_at,
        password_never_expires=never_expires,
        password_last_set=filetime_to_dt(raw.get("pwdlastset")),
    )


class ADSession:
    """Connection bound with the service credentials. Valid only inside ADClient.service_session()."""

    def __init__(self, conn: Connection, cfg: ADConfig) -> None:
        self.conn = conn
        self.cfg = cfg

    def find_account(self, login: str) -> Optional[DirectoryAccount]:
        login = (login or "").strip()
        if not login:
            return None

        safe_login = escape_ldap_filter_value(login)
        if is_upn(login):
            flt = f"(userPrincipalName={safe_login})"
        else:
            flt = f"(sAMAccountName={safe_login})"

        self.conn.search(
            search_base=self.cfg.base_dn,
            search_filter=f"(&(objectCategory=person)(objectClass=user){flt})",
            search_scope=SUBTREE,
            attributes=ACCOUNT_ATTRIBUTES,
            size_limit=2,
        )
        res = dict(self.conn.result or {})
        code = res.get("result", 0)
        if code not in _NOT_FOUND_RESULTS:
            raise ADClientError(f"Search failed: {res.get('description', 'unknown error')}")

        entries = [r for r in (self.conn.response or []) if r.get("type") == "searchResEntry"]
        if len(entries) != 1:
            if len(entries) > 1:
                log.warning("Login %r matches more than one account", login)
            return None
        return account_from_entry(entries[0])

    def change_password(self, account: DirectoryAccount, old_password: str, new_password: str) -> tuple[bool, str]:
        """Change (not reset) the password: delete old unicodePwd, add new one.

        ldap3 falls back to an administrative reset (single replace) when old_password
        is empty, so an empty old password is refused here.
        """
        if not old_password:
            return False, "Current password is required"
        try:
            ok = bool(self.conn.extend.microsoft.modify_password(account.dn, new_password, old_password))
        except LDAPException as e:
            return False, str(e)
        if ok:
            return True, "OK"
        r = dict(self.conn.result or {})
        return False, r.get("message", "") or r.get("description", "") or "unknown error"


class ADClient:
    @staticmethod
    def _normalize_pem(pem: str) -> str:
        data = (pem or "").strip()
        return data.replace("\r\n", "\n").replace("\r", "\n")

    @staticmethod
    def _ensure_ca_file(pem: str) -> str:
        """Materialize CA PEM into a stable file path.

        ldap3.Tls takes ca_certs_file; the PEM is stored under /tmp keyed by content hash
        so several processes reuse the same file.
        """
        data = ADClient._normalize_pem(pem)
        if not data:
            return ""

        if "-----BEGIN CERTIFICATE-----" not in data or "-----END CERTIFICATE-----" not in data:
            raise ValueError("CA PEM does not look like a certificate (BEGIN/END CERTIFICATE block expected)")

        h = hashlib.sha256(data.encode("utf-8")).hexdigest()[:16]
        path = f"/tmp/ad_gateway_ca_{h}.pem"

        try:
            if os.path.exists(path):
                with open(path, "r", encoding="utf-8") as f:
                    if f.read().strip() == data:
                        return path

            with open(path, "w", encoding="utf-8") as f:
                f.write(data + "\n")
            os.chmod(path, 0o600)
        except OSError:
            # Read-only filesystem: fall back to the system trust store.
            log.warning("Cannot write CA file %s, falling back to the system trust store", path, exc_info=True)
            return ""

        return path

    def __init__(self, cfg: ADConfig) -> None:
        self.cfg = cfg

        tls_kwargs: dict[str, Any] = {
            "validate": ssl.CERT_REQUIRED if cfg.tls_validate else ssl.CERT_NONE,
        }
        # Custom CA only matters when verification is on.
        ca_pem = self._normalize_pem(cfg.ca_pem or "")
        if cfg.tls_validate and ca_pem:
            ca_file = self._ensure_ca_file(ca_pem)
            if ca_file:
                tls_kwargs["ca_certs_file"] = ca_file

        self.server = Server(
            host=cfg.host,
            port=cfg.port,
            use_ssl=cfg.use_ssl,
            get_info=ALL,
            tls=Tls(**tls_kwargs),
            connect_timeout=float(cfg.connect_timeout_s),
        )

    @property
    def is_protected(self) -> bool:
        """AD accepts unicodePwd changes only over LDAPS or StartTLS."""
        return self.cfg.is_protected

    def _conn(self, user: str, password: str) -> Connection:
        conn = Connection(self.server, user=user, password=password, auto_bind=False)
        conn.open()
        if self.cfg.starttls:
            conn.start_tls()
        return conn

    @contextmanager
    def service_session(self, credentials: ServiceCredentials | None = None) -> Iterator[ADSession]:
        """Bind with the service (elevated) credentials for the duration of the block.

        Raises ADClientError when the directory is not configured or the bind is rejected;
        LDAPException from ldap3 propagates. The connection is always unbound.
        """
        creds = credentials or self.cfg.service_credentials
        principal = creds.principal(self.cfg.domain)
        if not principal:
            raise ADClientError("Service account is not configured")
        if not self.cfg.base_dn:
            raise ADClientError("BaseDN is empty (check the AD domain)")

        conn: Connection | None = None
        try:
            conn = self._conn(principal, creds.password)
            if not conn.bind():
                res = dict(conn.result or {})
                raise ADClientError(f"Bind failed: {res.get('description', 'unknown error')}")
            yield ADSession(conn, self.cfg)
        finally:
            _safe_unbind(conn)

    def bind_user(self, user: str, password: str) -> tuple[bool, str]:
        """Try a simple bind with end-user credentials.

        Returns: (ok, message) where message is the server diagnostic text on rejection.
        """
        conn: Connection | None = None
        try:
            conn = self._conn(user, password)
            if conn.bind():
                return True, "OK"
            res = dict(conn.result or {})
            return False, res.get("message", "") or res.get("description", "")
        except LDAPException as e:
            return False, str(e)
        finally:
            _safe_unbind(conn)

    def service_bind(self, credentials: ServiceCredentials | None = None) -> tuple[bool, str]:
        creds = credentials or self.cfg.service_credentials
        conn: Connection | None = None
        try:
            conn = self._conn(creds.principal(self.cfg.domain), creds.password)
            if conn.bind():
                return True, "OK"
            res = dict(conn.result or {})
            return False, f"Bind failed: {res.get('description', 'unknown error')}"
        except LDAPException as e:
            return False, f"LDAP error: {e}"
        finally:
            _safe_unbind(conn)
