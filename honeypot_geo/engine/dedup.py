"""Reduce login records to the set of distinct attacker hosts."""

from __future__ import annotations

import ipaddress
from typing import Iterable

from .records import Address, LoginRecord


def strip_port(remote: str) -> Address:
    """Return the host part of a ``host:port`` string.

    Bare IPv4/IPv6 literals and strings without a colon are returned as is;
    bracketed IPv6 (``[::1]:22``) loses the brackets and the port. Anything
    else with more than one colon is left untouched so stripping stays
    idempotent.
    """

    value = remote.strip()
    if _is_ip(value):
        return value
    if value.startswith("["):
        host, bracket, _ = value[1:].partition("]")
        if bracket and _is_ip(host):
            return host
    if value.count(":") == 1:
        return value.partition(":")[0]
    return value


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def dedupe(records: Iterable[LoginRecord]) -> set[Address]:
    """Collect every distinct host seen across ``records``."""

    addresses = {strip_port(record.remote_ip) for record in records}
    addresses.discard("")
    return addresses


__all__ = ["dedupe", "strip_port"]
