"""
IPv4 address validation helpers.

All functions are pure and never raise on bad input: a malformed address is
reported as ``False`` so callers can log and carry on.
"""
from __future__ import annotations
from typing import Optional


# ─── Constants ───────────────────────────────────────────────────────────────

DEFAULT_SUBNET_MASK = "255.255.255.0"

# (network, mask) pairs for RFC 1918 space
PRIVATE_RANGES = (
    ("10.0.0.0", "255.0.0.0"),
    ("172.16.0.0", "255.240.0.0"),
    ("192.168.0.0", "255.255.0.0"),
)

_DIGITS = frozenset("0123456789")


# ─── Syntax ──────────────────────────────────────────────────────────────────

def _parse_octet(segment: str) -> Optional[int]:
    if not segment or len(segment) > 3:
        return None
    if not all(ch in _DIGITS for ch in segment):
        return None
    if len(segment) > 1 and segment[0] == "0":
        return None
    value = int(segment)
    return value if value <= 255 else None


def is_valid_ip(ip) -> bool:
    """
    True iff ``ip`` is four dot-separated decimal octets in [0, 255].

    Whitespace, signs, empty segments and leading zeros ("01") are rejected.
    """
    if not isinstance(ip, str) or not ip:
        return False
    parts = ip.split(".")
    if len(parts) != 4:
        return False
    return all(_parse_octet(p) is not None for p in parts)


def ip_to_number(ip: str) -> int:
    """Converts an IP string (e.g. '192.168.1.1') to an unsigned 32-bit integer."""
    parts = list(map(int, ip.split('.')))
    return ((parts[0] << 24) | (parts[1] << 16) | (parts[2] << 8) | parts[3]) & 0xFFFFFFFF


def is_valid_subnet_mask(mask) -> bool:
    """True iff ``mask`` is a valid dotted quad whose one-bits are contiguous."""
    if not is_valid_ip(mask):
        return False
    value = ip_to_number(mask)
    inverted = ~value & 0xFFFFFFFF
    return (inverted & (inverted + 1)) == 0


def network_of(ip: str, mask: str) -> int:
    """Returns the network address as an integer (IP AND mask)."""
    return ip_to_number(ip) & ip_to_number(mask)


# ─── Range / Subnet Checks ───────────────────────────────────────────────────

def is_private_ip(ip) -> bool:
    """True iff ``ip`` lies in 10/8, 172.16/12 or 192.168/16."""
    if not is_valid_ip(ip):
        return False
    return any(network_of(ip, mask) == ip_to_number(net) for net, mask in PRIVATE_RANGES)


def is_in_same_subnet(ip_a, ip_b, mask=DEFAULT_SUBNET_MASK) -> bool:
    """True if ip_a and ip_b are on the same subnet given mask."""
    if not (is_valid_ip(ip_a) and is_valid_ip(ip_b) and is_valid_ip(mask)):
        return False
    return network_of(ip_a, mask) == network_of(ip_b, mask)
