"""Registrable-domain lookups backed by Mozilla's Public Suffix List."""

# Standard Python Libraries
import ipaddress
import threading

# Third-Party Libraries
from publicsuffixlist import PublicSuffixList

# Loaded on first use, the bundled list takes a moment to parse.
_suffix_list = None
_suffix_list_lock = threading.Lock()


class InvalidRegistrableDomain(ValueError):
    """The host has no registrable domain (IP literal, single label, suffix)."""


def load_suffix_list(lines=None):
    """Return the PublicSuffixList to use, parsing ``lines`` when given.

    Without ``lines`` the copy bundled with publicsuffixlist is used and
    shared by every caller.
    """
    global _suffix_list

    if lines is not None:
        return PublicSuffixList(lines)

    with _suffix_list_lock:
        if _suffix_list is None:
            _suffix_list = PublicSuffixList()
    return _suffix_list


def registrable_domain(host, suffix_list=None):
    """For "x.y.domain.gov", return "domain.gov"."""
    if not host:
        raise InvalidRegistrableDomain("empty host")

    host = host.strip().rstrip(".").lower()
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        pass
    else:
        raise InvalidRegistrableDomain("%s is an IP address" % host)

    if "." not in host:
        raise InvalidRegistrableDomain("%s is a single-label host" % host)

    suffix_list = suffix_list or load_suffix_list()
    base = suffix_list.privatesuffix(host)
    if base is None:
        raise InvalidRegistrableDomain("%s is a public suffix" % host)
    return base


def same_registrable_domain(host_a, host_b, suffix_list=None):
    """Whether two hosts belong to the same registrable domain.

    Hosts that have no registrable domain are compared as plain strings.
    """
    try:
        return registrable_domain(host_a, suffix_list) == registrable_domain(
            host_b, suffix_list
        )
    except InvalidRegistrableDomain:
        return (host_a or "").lower() == (host_b or "").lower()
