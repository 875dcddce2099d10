"""Hostname and address helpers for DNS queries."""

import ipaddress


def is_valid_ip(address: str) -> bool:
    """Validate if string is a valid IPv4 or IPv6 address.

    Args:
        address: IP address string to validate.

    Returns:
        bool: True if valid, False otherwise.

    Examples:
        >>> is_valid_ip("192.0.2.53")
        True
        >>> is_valid_ip("2001:db8::53")
        True
        >>> is_valid_ip("256.0.0.1")
        False
    """
    try:
        ipaddress.ip_address(address)
        return True
    except ValueError:
        return False


def normalize_name(name: str) -> str:
    """Normalize a DNS name for comparisons and cache keys.

    Lower-cases the name and strips the trailing root dot. The root zone
    itself is returned as ".".

    Examples:
        >>> normalize_name("NS1.Example.COM.")
        'ns1.example.com'
        >>> normalize_name(".")
        '.'
    """
    stripped = name.strip().lower().rstrip(".")
    return stripped or "."


def absolute_name(name: str) -> str:
    """Return the fully-qualified (dot terminated) form of a name.

    Examples:
        >>> absolute_name("example.com")
        'example.com.'
        >>> absolute_name(".")
        '.'
    """
    normalized = normalize_name(name)
    if normalized == ".":
        return normalized
    return f"{normalized}."


def parent_zone(domain: str) -> str:
    """Derive the delegating parent zone by dropping the leftmost label.

    Args:
        domain: Domain name (e.g., "example.co.nz").

    Returns:
        str: Parent zone name (e.g., "co.nz"), "." for a single label.

    Examples:
        >>> parent_zone("example.com")
        'com'
        >>> parent_zone("com")
        '.'
    """
    normalized = normalize_name(domain)
    if "." not in normalized or normalized == ".":
        return "."
    return normalized.split(".", 1)[1]
