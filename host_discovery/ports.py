from __future__ import annotations

import logging
import os
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_PORTS = [21, 22, 23, 25, 53, 80, 110, 135, 139, 143, 443, 445, 993, 995, 3389, 8080]

MIN_PORT = 1
MAX_PORT = 65535

COMMON_PORTS_FILE = os.path.join(os.path.dirname(__file__), "common_ports.txt")


def _port(text: str) -> int:
    port = int(text)
    if not MIN_PORT <= port <= MAX_PORT:
        raise ValueError(f"Port {port} out of range ({MIN_PORT}-{MAX_PORT})")
    return port


def parse_ports(text: str) -> List[int]:
    """
    Turns a --ports value such as "22,80,8000-8010" into a sorted,
    de-duplicated candidate list. Unlike the ports file, any bad entry is
    an error.
    """
    ports = set()
    for entry in text.split(","):
        entry = entry.strip()
        if not entry:
            continue
        low, sep, high = entry.partition("-")
        if not sep:
            ports.add(_port(low))
            continue
        first, last = _port(low), _port(high)
        if first > last:
            raise ValueError(f"Invalid port range: {entry}")
        ports.update(range(first, last + 1))

    if not ports:
        raise ValueError("Empty port list")
    return sorted(ports)


def load_candidate_ports(path: Optional[str] = None) -> List[int]:
    """
    Reads the comma-separated candidate port list used by the TCP sweep.

    Bad entries are skipped. A missing file, or one with nothing usable in
    it, falls back to DEFAULT_PORTS.
    """
    path = path or COMMON_PORTS_FILE
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = f.read()
    except OSError as e:
        logger.warning("Could not read %s, using minimal port list: %s", path, e)
        return list(DEFAULT_PORTS)

    ports = set()
    for entry in data.replace("\n", ",").split(","):
        entry = entry.strip()
        if not entry:
            continue
        try:
            port = int(entry)
        except ValueError:
            logger.warning("Invalid port number '%s', skipping", entry)
            continue
        if not MIN_PORT <= port <= MAX_PORT:
            logger.warning("Port %d out of range (1-65535), skipping", port)
            continue
        ports.add(port)

    if not ports:
        logger.warning("No valid ports found in %s, using minimal port list", path)
        return list(DEFAULT_PORTS)

    logger.debug("Loaded %d ports from %s", len(ports), path)
    return sorted(ports)
