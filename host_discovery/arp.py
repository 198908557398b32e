from __future__ import annotations

import ipaddress
import logging
import threading
import time
from typing import Optional

from scapy.layers.l2 import ARP, Ether
from scapy.sendrecv import srp

from .models import Probe, ProbeResult

logger = logging.getLogger(__name__)

BROADCAST_MAC = "ff:ff:ff:ff:ff:ff"


class ArpProbe(Probe):
    """
    Link-layer discovery: broadcasts one ARP who-has per address and reports
    the hardware address of whoever answers. Only meaningful on the local
    segment, and raw sockets need root / CAP_NET_RAW.
    """

    name = "ARP Scan"

    def __init__(self, timeout_s: float, iface: Optional[str] = None):
        self.timeout_s = timeout_s
        self.iface = iface
        self._warned = False
        self._warn_lock = threading.Lock()

    def _warn_once(self, msg: str, *args) -> None:
        with self._warn_lock:
            if self._warned:
                return
            self._warned = True
        logger.warning(msg, *args)

    def resolve(self, address: str) -> Optional[str]:
        answered, _ = srp(
            Ether(dst=BROADCAST_MAC) / ARP(pdst=address),
            iface=self.iface,
            timeout=self.timeout_s,
            verbose=False,
        )
        for _, received in answered:
            mac = getattr(received, "hwsrc", None)
            if mac:
                return str(mac).upper()
        return None

    def probe(self, address: str, cancel: Optional[threading.Event] = None) -> ProbeResult:
        start = time.perf_counter()

        if cancel is not None and cancel.is_set():
            return self._result(address, False, "Cancelled", start)

        try:
            ip = ipaddress.ip_address(address)
        except ValueError:
            return self._result(address, False, "Invalid address", start)
        if ip.version != 4:
            return self._result(address, False, "ARP requires IPv4", start)

        try:
            mac = self.resolve(address)
        except PermissionError as e:
            self._warn_once("ARP scan requires root/sudo privileges (%s)", e)
            return self._result(address, False, "ARP not permitted", start)
        except OSError as e:
            self._warn_once("ARP scan failed on interface %s: %s", self.iface or "default", e)
            return self._result(address, False, f"ARP error: {e}", start)

        if mac:
            return self._result(address, True, f"MAC: {mac}", start)
        return self._result(address, False, "No ARP response", start)

    def _result(self, address: str, alive: bool, detail: str, start: float) -> ProbeResult:
        return ProbeResult(
            address=address,
            alive=alive,
            probe_name=self.name,
            detail=detail,
            elapsed_s=round(time.perf_counter() - start, 4),
        )
