from __future__ import annotations

import ipaddress
from typing import List, Optional, Tuple


DEFAULT_MAX_HOSTS = 65536


class InvalidRange(ValueError):
    pass


def expand_cidr(cidr_text: str, limit: Optional[int] = DEFAULT_MAX_HOSTS) -> List[str]:
    """
    Expands a network block into its host addresses, ascending.

    Supports:
      - CIDR: "192.168.1.0/24" (host bits are masked off: "10.0.0.5/30" -> 10.0.0.0/30)
      - Single IP: "172.20.0.10" (treated as /32 or /128)

    Blocks with more than two addresses lose the network and broadcast
    address; /31, /32 (and the IPv6 equivalents) keep everything.

    Blocks larger than `limit` addresses raise InvalidRange before anything
    is built; pass limit=None to lift the bound.
    """
    text = (cidr_text or "").strip()
    if not text:
        raise InvalidRange("Empty target range")

    try:
        net = ipaddress.ip_network(text, strict=False)
    except ValueError as e:
        raise InvalidRange(f"Invalid CIDR notation '{cidr_text}': {e}") from e

    if limit is not None and net.num_addresses > limit:
        raise InvalidRange(
            f"Range {net} has {net.num_addresses} addresses, more than the allowed {limit}"
        )

    addrs = [str(ip) for ip in net]

    # network + broadcast only exist when there is an interior host range
    if len(addrs) > 2:
        addrs = addrs[1:-1]

    return addrs


def address_key(address: str) -> Tuple[int, int]:
    """
    Big-endian numeric sort key. Unparsable text sorts first instead of
    aborting the sort.
    """
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return (0, -1)
    return (ip.version, int(ip))
