from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ProbeResult:
    address: str
    alive: bool
    probe_name: str
    detail: str
    elapsed_s: float


class Probe(ABC):
    """
    One host-liveness strategy.

    probe() is called for many addresses from many worker threads at once,
    so implementations keep only read-only configuration on the instance.
    A host that does not answer is a normal result (alive=False), not an
    exception.
    """

    name: str = "probe"

    @abstractmethod
    def probe(self, address: str, cancel: Optional[threading.Event] = None) -> ProbeResult:
        raise NotImplementedError
