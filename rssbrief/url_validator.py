"""
URL Validator - refuse to fetch internal network addresses.

Feed items come from third-party feeds, so their links are untrusted.
Before the extractor (or feed parser) requests a URL we make sure it does
not point at loopback, private ranges, or cloud metadata endpoints.
"""

import ipaddress
from urllib.parse import urlparse


class UnsafeURLError(ValueError):
    """Raised when a URL targets a blocked scheme or host."""
    pass


BLOCKED_IP_RANGES = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

BLOCKED_HOSTNAMES = {
    "localhost",
    "localhost.localdomain",
    "metadata",
    "metadata.google.internal",
}

BLOCKED_SUFFIXES = (".local", ".internal", ".localhost")

ALLOWED_SCHEMES = {"http", "https"}


def is_ip_blocked(ip_str: str) -> bool:
    """Check if an IP address is in a blocked range."""
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return any(ip in network for network in BLOCKED_IP_RANGES)


def validate_url(url: str) -> str:
    """
    Validate a URL before fetching it.

    Only the scheme and host are inspected; DNS is not resolved here so the
    check never blocks the event loop.

    Raises:
        UnsafeURLError: If the URL fails validation
    """
    parsed = urlparse(url)

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise UnsafeURLError(f"URL scheme '{parsed.scheme}' is not allowed")

    if not parsed.hostname:
        raise UnsafeURLError("URL must include a hostname")

    hostname = parsed.hostname.lower()
    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(BLOCKED_SUFFIXES):
        raise UnsafeURLError(f"Access to '{hostname}' is not allowed")

    if is_ip_blocked(hostname):
        raise UnsafeURLError(f"Access to IP address '{hostname}' is not allowed")

    return url
