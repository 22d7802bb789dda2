from datetime import datetime, timezone

import pytest

from ad_gateway.ad.utils import (
    FILETIME_EPOCH,
    FILETIME_NEVER,
    escape_ldap_filter_value,
    filetime_to_dt,
    password_expiry_to_dt,
    to_int,
)
from ad_gateway.ad_utils import build_dc_fqdn, build_principal, domain_to_base_dn, is_upn, normalize_domain


def test_escape_ldap_filter_value() -> None:
    assert escape_ldap_filter_value("a*b(c)d\\e\x00") == "a\\2ab\\28c\\29d\\5ce\\00"
    assert escape_ldap_filter_value("jdoe") == "jdoe"


@pytest.mark.parametrize(
    "value, expected",
    [([b"512"], 512), (b"66048", 66048), ("16", 16), (7, 7), ([], 0), (None, 0), ([b"junk"], 0)],
)
def test_to_int(value, expected) -> None:
    assert to_int(value) == expected


def test_filetime_to_dt() -> None:
    # 2024-01-01T00:00:00Z
    assert filetime_to_dt([b"133485408000000000"]) == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert filetime_to_dt(0) is None
    assert filetime_to_dt(FILETIME_NEVER) is None


def test_password_expiry_to_dt() -> None:
    assert password_expiry_to_dt(FILETIME_NEVER) is None
    assert password_expiry_to_dt(0) == FILETIME_EPOCH
    assert password_expiry_to_dt("133485408000000000") == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_domain_to_base_dn() -> None:
    assert domain_to_base_dn("corp.example.com.") == "DC=corp,DC=example,DC=com"
    assert domain_to_base_dn("localdomain") == ""
    assert domain_to_base_dn("") == ""


def test_build_dc_fqdn() -> None:
    assert build_dc_fqdn("dc01", "corp.example") == "dc01.corp.example"
    assert build_dc_fqdn("dc01.other.example", "corp.example") == "dc01.other.example"
    assert build_dc_fqdn("10.0.0.5", "corp.example") == "10.0.0.5"
    assert build_dc_fqdn("", "corp.example") == "corp.example"


def test_build_principal() -> None:
    assert build_principal("svc", "corp.example") == "svc@corp.example"
    assert build_principal("svc@other.example", "corp.example") == "svc@other.example"
    assert build_principal("CORP\\svc", "corp.example") == "CORP\\svc"
    assert build_principal(" ", "corp.example") == ""
    assert build_principal("svc", "") == "svc"


def test_normalize_domain_and_is_upn() -> None:
    assert normalize_domain(" corp.example. ") == "corp.example"
    assert normalize_domain(None) == ""
    assert is_upn("jdoe@corp.example")
    assert not is_upn("CORP\\jdoe")
