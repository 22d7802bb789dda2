"""Decoding of Active Directory error texts.

AD reports the precise reason of a rejected bind as a hex sub-code inside the
diagnostic message, e.g.::

    80090308: LdapErr: DSID-0C09044E, comment: AcceptSecurityContext error, data 52e, v4563

Password changes rejected by the domain policy carry ERROR_PASSWORD_RESTRICTION,
either as the Win32 HRESULT (``0x800708C5``) or as the LDAP extended error
(``0000052D``).
"""
from __future__ import annotations

from .models import AuthResult


class ADClientError(Exception):
    """Directory is not usable: not configured, unreachable or service bind rejected."""


BIND_ERROR_CODES: tuple[tuple[str, AuthResult], ...] = (
    ("data 525,", AuthResult.USER_NOT_FOUND),
    ("data 52e,", AuthResult.INVALID_CREDENTIALS),
    ("data 530,", AuthResult.NOT_PERMITTED_AT_THIS_TIME),
    ("data 531,", AuthResult.NOT_PERMITTED_AT_THIS_WORKSTATION),
    ("data 532,", AuthResult.PASSWORD_EXPIRED),
    ("data 533,", AuthResult.ACCOUNT_DISABLED),
    ("data 701,", AuthResult.ACCOUNT_EXPIRED),
    ("data 773,", AuthResult.MUST_RESET_PASSWORD),
    ("data 775,", AuthResult.ACCOUNT_LOCKED),
)

PASSWORD_POLICY_CODES: tuple[str, ...] = ("0x800708c5", "0000052d")

PASSWORD_POLICY_MESSAGE = (
    "Please check minimum password age, password history or other details "
    "on password policy with your network administrator."
)


def classify_bind_error(message: str | None) -> AuthResult:
    """Map a rejected-bind diagnostic message to AuthResult (unknown -> USER_NOT_FOUND)."""
    text = (message or "").lower()
    for token, status in BIND_ERROR_CODES:
        if token in text:
            return status
    return AuthResult.USER_NOT_FOUND


def is_password_policy_error(message: str | None) -> bool:
    text = (message or "").lower()
    return any(code in text for code in PASSWORD_POLICY_CODES)


def humanize_password_error(message: str | None) -> str:
    """Replace known policy-violation codes with a readable hint; pass anything else through."""
    if is_password_policy_error(message):
        return PASSWORD_POLICY_MESSAGE
    return (message or "").strip() or "Password change failed"
