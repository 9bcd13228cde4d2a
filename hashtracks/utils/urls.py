"""URL validation (SSRF guard) and normalization utilities."""

import ipaddress
import re
import socket
from urllib.parse import urljoin, urlparse, urlunparse

from hashtracks.core.exceptions import UnsafeURLError

ALLOWED_SCHEMES = ("http", "https")
BLOCKED_HOSTNAMES = ("localhost",)

PRIVATE_NETWORKS = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
)
UNSPECIFIED_NETWORK = ipaddress.ip_network("0.0.0.0/8")

# Hosts the resolver reads as IPv4 even though they are not dotted quads:
# 127.1, 2130706433, 0x7f000001, 0177.0.0.1
NUMERIC_HOST_RE = re.compile(r"^(?:0x[0-9a-f]*|\d+)(?:\.(?:0x[0-9a-f]*|\d+)){0,3}$", re.IGNORECASE)


def _parse_ip(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    """Parse an IP literal the way the resolver would, or return None for names."""
    try:
        ip = ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        if not NUMERIC_HOST_RE.match(host):
            return None
        try:
            ip = ipaddress.IPv4Address(socket.inet_aton(host))
        except OSError:
            return None

    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped:
        return ip.ipv4_mapped
    return ip


def _check_ip(host: str) -> str | None:
    """Return a block reason if host is an IP literal in a forbidden range."""
    ip = _parse_ip(host)
    if ip is None:
        return None
    if ip.is_loopback:
        return "loopback address"
    if ip.is_unspecified or (ip.version == 4 and ip in UNSPECIFIED_NETWORK):
        return "unspecified address"
    if ip.is_link_local:
        return "link-local address"
    if any(ip in network for network in PRIVATE_NETWORKS if network.version == ip.version):
        return "private network address"
    return None


def validate_url(url: str) -> str:
    """Validate that a URL is safe to fetch.

    Only http(s) URLs with a public host are allowed. Loopback, private and
    link-local IP literals and localhost names are rejected.

    Args:
        url: URL to validate

    Returns:
        The URL unchanged

    Raises:
        UnsafeURLError: If the URL must not be fetched
    """
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise UnsafeURLError(url, f"malformed URL ({e})") from e

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise UnsafeURLError(url, f"scheme {parsed.scheme or '(none)'!r} not allowed")

    host = (parsed.hostname or "").lower().rstrip(".")
    if not host:
        raise UnsafeURLError(url, "missing host")

    if host in BLOCKED_HOSTNAMES or host.endswith(".localhost"):
        raise UnsafeURLError(url, "local hostname")

    reason = _check_ip(host)
    if reason:
        raise UnsafeURLError(url, reason)

    return url


def is_safe_url(url: str | None) -> bool:
    """Check a URL against the SSRF guard without raising."""
    if not url:
        return False
    try:
        validate_url(url)
    except UnsafeURLError:
        return False
    return True


def make_absolute_url(url: str | None, base_url: str) -> str | None:
    """Convert a relative URL to absolute.

    Args:
        url: URL (may be relative)
        base_url: Base URL for resolution

    Returns:
        Absolute URL or None
    """
    if not url:
        return None

    url = url.strip()
    if url.startswith(("http://", "https://")):
        return url

    return urljoin(base_url, url)


def extract_domain(url: str | None) -> str | None:
    """Extract the host (with port, if any) from a URL."""
    if not url:
        return None
    parsed = urlparse(url)
    return parsed.netloc or None


def _toggle_www(host: str) -> str:
    return host[4:] if host.startswith("www.") else f"www.{host}"


def url_variants(url: str) -> list[str]:
    """Build fallback URL variants for hosts with flaky routing.

    Order: original, www/non-www variant, http/https variant, then both
    swapped. Trailing slashes are dropped and duplicates removed.

    Args:
        url: Base URL

    Returns:
        Ordered, de-duplicated candidate URLs
    """
    base = url.rstrip("/")
    candidates = [base]

    parsed = urlparse(base)
    if parsed.scheme not in ALLOWED_SCHEMES or not parsed.netloc:
        return candidates

    host_variant = parsed._replace(netloc=_toggle_www(parsed.netloc))
    swapped_scheme = "http" if parsed.scheme == "https" else "https"
    scheme_variant = parsed._replace(scheme=swapped_scheme)
    both_variant = host_variant._replace(scheme=swapped_scheme)

    for variant in (host_variant, scheme_variant, both_variant):
        candidates.append(urlunparse(variant).rstrip("/"))

    return list(dict.fromkeys(candidates))
