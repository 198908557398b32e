from __future__ import annotations

import ipaddress
import logging
import platform
import subprocess
import threading
import time
from typing import List, Optional

from .models import Probe, ProbeResult

logger = logging.getLogger(__name__)


class PingProbe(Probe):
    """
    Reachability check through the system ping binary, one echo request
    per address.
    """

    name = "ICMP Ping"

    def __init__(self, timeout_s: float, system: Optional[str] = None):
        self.timeout_s = timeout_s
        self.system = (system or platform.system()).lower()
        self._warned = False
        self._warn_lock = threading.Lock()

    def build_command(self, address: str) -> List[str]:
        timeout_ms = max(1, int(self.timeout_s * 1000))
        if self.system == "windows":
            return ["ping", "-n", "1", "-w", str(timeout_ms), address]
        if self.system == "darwin":
            return ["ping", "-c", "1", "-W", str(timeout_ms), address]

        cmd = ["ping", "-c", "1", "-W", str(max(1, int(self.timeout_s))), address]
        if ":" in address:
            cmd.insert(1, "-6")
        return cmd

    def _warn_once(self, msg: str, *args) -> None:
        with self._warn_lock:
            if self._warned:
                return
            self._warned = True
        logger.warning(msg, *args)

    def probe(self, address: str, cancel: Optional[threading.Event] = None) -> ProbeResult:
        start = time.perf_counter()

        if cancel is not None and cancel.is_set():
            return self._result(address, False, "Cancelled", start)

        try:
            ipaddress.ip_address(address)
        except ValueError:
            return self._result(address, False, "Invalid address", start)

        try:
            # ping's own -W/-w bounds the wait; the extra second covers process startup.
            # own session: terminal SIGINT must not reach the ping child
            res = subprocess.run(
                self.build_command(address),
                capture_output=True,
                text=True,
                timeout=self.timeout_s + 1.0,
                start_new_session=True,
            )
        except subprocess.TimeoutExpired:
            return self._result(address, False, "No response", start)
        except FileNotFoundError as e:
            self._warn_once("ping command not found, ICMP scan unavailable: %s", e)
            return self._result(address, False, "ping unavailable", start)
        except PermissionError as e:
            self._warn_once("Not permitted to run ping: %s", e)
            return self._result(address, False, "ping not permitted", start)

        if res.returncode == 0:
            elapsed_ms = round((time.perf_counter() - start) * 1000)
            return self._result(address, True, f"Response in {elapsed_ms}ms", start)
        return self._result(address, False, "No response", start)

    def _result(self, address: str, alive: bool, detail: str, start: float) -> ProbeResult:
        return ProbeResult(
            address=address,
            alive=alive,
            probe_name=self.name,
            detail=detail,
            elapsed_s=round(time.perf_counter() - start, 4),
        )
