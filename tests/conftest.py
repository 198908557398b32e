import random
import socket
import threading
import time

import pytest

from host_discovery.models import Probe, ProbeResult


class StubProbe(Probe):
    """Marks a fixed set of addresses alive, with optional random latency."""

    name = "Stub"

    def __init__(self, alive=(), jitter_s=0.0, seed=None):
        self.alive = set(alive)
        self.jitter_s = jitter_s
        self._rng = random.Random(seed)
        self._rng_lock = threading.Lock()
        self.calls = []
        self._calls_lock = threading.Lock()

    def probe(self, address, cancel=None):
        if self.jitter_s:
            with self._rng_lock:
                delay = self._rng.uniform(0, self.jitter_s)
            time.sleep(delay)
        with self._calls_lock:
            self.calls.append(address)
        is_alive = address in self.alive
        return ProbeResult(
            address=address,
            alive=is_alive,
            probe_name=self.name,
            detail="up" if is_alive else "down",
            elapsed_s=0.0,
        )


@pytest.fixture
def stub_probe_cls():
    return StubProbe


@pytest.fixture
def listeners():
    """Two listening loopback sockets; yields their port numbers."""
    socks = []
    for _ in range(2):
        s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.bind(("127.0.0.1", 0))
        s.listen(16)
        socks.append(s)
    yield sorted(s.getsockname()[1] for s in socks)
    for s in socks:
        s.close()


@pytest.fixture
def closed_ports():
    """Port numbers that were free a moment ago and have nothing listening."""
    ports = []
    for _ in range(2):
        s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        s.bind(("127.0.0.1", 0))
        ports.append(s.getsockname()[1])
        s.close()
    return ports
