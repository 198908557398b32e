from __future__ import annotations

import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from .models import Probe, ProbeResult
from .ports import load_candidate_ports

DEFAULT_SWEEP_WORKERS = 64


def is_port_open(address: str, port: int, timeout_s: float) -> bool:
    sock: Optional[socket.socket] = None
    try:
        sock = socket.create_connection((address, port), timeout=timeout_s)
        return True
    except (socket.timeout, ConnectionRefusedError, OSError):
        return False
    finally:
        if sock:
            try:
                sock.close()
            except OSError:
                pass


def sweep(
    address: str,
    ports: Iterable[int],
    timeout_s: float,
    cancel: Optional[threading.Event] = None,
    max_workers: int = DEFAULT_SWEEP_WORKERS,
) -> List[int]:
    """
    Tries every candidate port on one host concurrently and returns the open
    ones in ascending order. Returns only after every attempt has finished
    or been skipped because of cancellation.
    """
    ports = list(ports)
    if not ports:
        return []

    open_ports = set()
    lock = threading.Lock()

    def attempt(port: int) -> None:
        if cancel is not None and cancel.is_set():
            return
        if is_port_open(address, port, timeout_s):
            with lock:
                open_ports.add(port)

    with ThreadPoolExecutor(max_workers=max(1, min(len(ports), max_workers))) as pool:
        # list() drains the iterator so worker exceptions surface here
        list(pool.map(attempt, ports))

    return sorted(open_ports)


def format_ports(ports: Iterable[int]) -> str:
    return ",".join(str(p) for p in ports)


class TcpConnectProbe(Probe):
    name = "TCP Connect Scan"

    def __init__(
        self,
        timeout_s: float,
        ports: Optional[Iterable[int]] = None,
        ports_file: Optional[str] = None,
        max_workers: int = DEFAULT_SWEEP_WORKERS,
    ):
        self.timeout_s = timeout_s
        self.ports = tuple(sorted(set(ports))) if ports else tuple(load_candidate_ports(ports_file))
        self.max_workers = max_workers

    def probe(self, address: str, cancel: Optional[threading.Event] = None) -> ProbeResult:
        start = time.perf_counter()
        open_ports = sweep(address, self.ports, self.timeout_s, cancel, self.max_workers)
        elapsed = round(time.perf_counter() - start, 4)

        if open_ports:
            return ProbeResult(
                address=address,
                alive=True,
                probe_name=self.name,
                detail=f"Ports: {format_ports(open_ports)}",
                elapsed_s=elapsed,
            )
        return ProbeResult(
            address=address,
            alive=False,
            probe_name=self.name,
            detail="No open ports",
            elapsed_s=elapsed,
        )
