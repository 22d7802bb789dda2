from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

# userAccountControl flags
UF_ACCOUNTDISABLE = 0x0002
UF_LOCKOUT = 0x0010
UF_DONT_EXPIRE_PASSWD = 0x10000

# msDS-UserPasswordExpiryTimeComputed for accounts whose password never expires
FILETIME_NEVER = 0x7FFFFFFFFFFFFFFF
FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)


def escape_ldap_filter_value(value: str) -> str:
    """RFC 4515 escaping for LDAP filter values."""
    out: list[str] = []
    for ch in value:
        if ch == "\\":
            out.append("\\5c")
        elif ch == "*":
            out.append("\\2a")
        elif ch == "(":
            out.append("\\28")
        elif ch == ")":
            out.append("\\29")
        elif ch == "\x00":
            out.append("\\00")
        else:
            out.append(ch)
    return "".join(out)


def to_int(v: Any, default: int = 0) -> int:
    """Best-effort int() for LDAP attribute values (bytes, str, int, single-item lists)."""
    if isinstance(v, (list, tuple)):
        v = v[0] if v else None
    if v is None:
        return default
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def filetime_to_dt(v: Any) -> datetime | None:
    """Convert Windows FILETIME (100ns since 1601-01-01) to an aware UTC datetime.

    0 and the "never" sentinel both mean "no timestamp" and map to None.
    """
    n = to_int(v)
    if n <= 0 or n >= FILETIME_NEVER:
        return None
    return FILETIME_EPOCH + timedelta(microseconds=n // 10)


def password_expiry_to_dt(v: Any) -> datetime | None:
    """Decode msDS-UserPasswordExpiryTimeComputed.

    - sentinel (never expires) -> None
    - 0 (must change at next logon) -> FILETIME epoch, i.e. already expired
    """
    n = to_int(v)
    if n >= FILETIME_NEVER:
        return None
    if n <= 0:
        return FILETIME_EPOCH
    return FILETIME_EPOCH + timedelta(microseconds=n // 10)
