from __future__ import annotations

import ipaddress


def normalize_domain(domain: str | None) -> str:
    """' corp.example. ' -> 'corp.example'"""
    return (domain or "").strip().strip(".")


def is_upn(login: str) -> bool:
    return "@" in login


def domain_to_base_dn(domain: str) -> str:
    labels = [p for p in normalize_domain(domain).split(".") if p]
    # Single-label names (e.g. "localdomain") have no usable search base.
    if len(labels) < 2:
        return ""
    return ",".join(f"DC={p}" for p in labels)


def _is_ip(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def build_dc_fqdn(dc_short: str, domain: str) -> str:
    """Host to connect to: an IP or dotted name as given, otherwise '<dc>.<domain>'."""
    host = (dc_short or "").strip()
    domain = normalize_domain(domain)
    if not host:
        return domain
    if _is_ip(host) or "." in host or not domain:
        return host
    return f"{host}.{domain}"


def build_principal(username: str, domain: str) -> str:
    """user -> user@domain; UPN and DOMAIN\\user forms are returned unchanged."""
    user = (username or "").strip()
    domain = normalize_domain(domain)
    if not user or is_upn(user) or "\\" in user or not domain:
        return user
    return f"{user}@{domain}"
