"""Client address classification: private networks and the explicit allow-list."""

from dataclasses import dataclass, field
from typing import Iterable

LOCAL_ADDRESSES = frozenset({"127.0.0.1", "0.0.0.0", "::1", "::ffff:127.0.0.1"})
PRIVATE_PREFIXES = ("192.168.", "10.")

# 172.16.0.0/12 covers second octets 16 through 31
PRIVATE_172_RANGE = range(16, 32)


def is_private_network(address: str) -> bool:
    """True for loopback, unspecified and RFC 1918 private addresses.

    Malformed input returns False.
    """
    if not isinstance(address, str) or not address:
        return False

    if address in LOCAL_ADDRESSES or address.startswith(PRIVATE_PREFIXES):
        return True

    if address.startswith("172."):
        segments = address.split(".")
        try:
            second = int(segments[1])
        except (IndexError, ValueError):
            return False
        return second in PRIVATE_172_RANGE

    return False


@dataclass(frozen=True)
class AddressPolicy:
    """Decides which client addresses skip upstream verification."""

    allowed_ips: frozenset[str] = field(default_factory=frozenset)
    auto_validate_local_ip: bool = False

    @classmethod
    def create(cls, allowed_ips: Iterable[str], auto_validate_local_ip: bool = False) -> "AddressPolicy":
        return cls(frozenset(allowed_ips), auto_validate_local_ip)

    def is_explicitly_allowed(self, address: str) -> bool:
        """Exact string membership in the allow-list, no CIDR matching."""
        return isinstance(address, str) and address in self.allowed_ips

    def should_bypass(self, address: str) -> bool:
        if self.is_explicitly_allowed(address):
            return True
        return self.auto_validate_local_ip and is_private_network(address)
