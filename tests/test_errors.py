"""Unit tests for bind-error classification and password error humanizing."""

import pytest

from ad_gateway.ad import AuthResult
from ad_gateway.ad.errors import (
    PASSWORD_POLICY_MESSAGE,
    classify_bind_error,
    humanize_password_error,
    is_password_policy_error,
)

AD_BIND_MESSAGE = "80090308: LdapErr: DSID-0C09044E, comment: AcceptSecurityContext error, data {code}, v4563\x00"


@pytest.mark.parametrize(
    "code, expected",
    [
        ("525", AuthResult.USER_NOT_FOUND),
        ("52e", AuthResult.INVALID_CREDENTIALS),
        ("530", AuthResult.NOT_PERMITTED_AT_THIS_TIME),
        ("531", AuthResult.NOT_PERMITTED_AT_THIS_WORKSTATION),
        ("532", AuthResult.PASSWORD_EXPIRED),
        ("533", AuthResult.ACCOUNT_DISABLED),
        ("701", AuthResult.ACCOUNT_EXPIRED),
        ("773", AuthResult.MUST_RESET_PASSWORD),
        ("775", AuthResult.ACCOUNT_LOCKED),
    ],
)
def test_classify_bind_error_maps_ad_sub_codes(code: str, expected: AuthResult) -> None:
    assert classify_bind_error(AD_BIND_MESSAGE.format(code=code)) is expected


def test_classify_bind_error_ignores_surrounding_text() -> None:
    assert classify_bind_error("whatever prefix data 532, whatever suffix") is AuthResult.PASSWORD_EXPIRED
    assert classify_bind_error("data 532,") is AuthResult.PASSWORD_EXPIRED


def test_classify_bind_error_requires_the_comma_delimited_token() -> None:
    # "data 5320" is not sub-code 532
    assert classify_bind_error("comment: error, data 5320 v1") is AuthResult.USER_NOT_FOUND


@pytest.mark.parametrize("message", [None, "", "socket connection error", "invalidCredentials"])
def test_classify_bind_error_defaults_to_user_not_found(message) -> None:
    assert classify_bind_error(message) is AuthResult.USER_NOT_FOUND


def test_classify_bind_error_is_case_insensitive() -> None:
    assert classify_bind_error("AcceptSecurityContext error, DATA 52E, v2580") is AuthResult.INVALID_CREDENTIALS


def test_policy_codes_are_recognised_in_both_forms() -> None:
    assert is_password_policy_error("Exception from HRESULT: 0x800708C5")
    assert is_password_policy_error(
        "0000052D: Constraint violation - check_password_restrictions: the password is too short"
    )
    assert not is_password_policy_error("00000056: AtrErr: DSID-03190F80, #1: 0: 00000056: 9005a (unicodePwd)")


def test_humanize_password_error_hides_policy_code() -> None:
    msg = humanize_password_error("0000052D: SvcErr: DSID-031A12D2, problem 5003 (WILL_NOT_PERFORM), data 0")
    assert msg == PASSWORD_POLICY_MESSAGE
    assert "0000052D" not in msg


def test_humanize_password_error_passes_other_messages_through() -> None:
    raw = "00000056: AtrErr: DSID-03190F80, #1: 0: 00000056: 9005a (unicodePwd)"
    assert humanize_password_error(raw) == raw
    assert humanize_password_error("") == "Password change failed"
