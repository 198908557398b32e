from __future__ import annotations

import argparse
import logging
import signal
import threading
from typing import List, Optional

from .arp import ArpProbe
from .icmp import PingProbe
from .models import Probe
from .output import Report, ScanType, print_results, save_report
from .ports import parse_ports
from .scanner import ScanEngine
from .targets import DEFAULT_MAX_HOSTS, InvalidRange, expand_cidr
from .tcp import TcpConnectProbe

DEFAULT_TARGET = "192.168.1.0/24"
DEFAULT_TIMEOUT = 2.0
# ARP needs more time for broadcast/response
DEFAULT_ARP_TIMEOUT = 5.0

METHODS = {
    "icmp": ["icmp"],
    "tcp": ["tcp"],
    "arp": ["arp"],
    "all": ["icmp", "tcp", "arp"],
}


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Network host discovery (ICMP / TCP / ARP)")
    p.add_argument("--target", default=DEFAULT_TARGET, help=f"CIDR block or single IP (default: {DEFAULT_TARGET})")
    p.add_argument("--method", choices=sorted(METHODS), default="icmp", help="Probe to run (default: icmp)")
    p.add_argument("--iface", help="Network interface for ARP scan (e.g. eth0, wlan0)")
    p.add_argument("--workers", type=int, default=0, help="Worker threads per scan (default: 0 = auto, max 100)")
    p.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="ICMP/TCP timeout seconds (default: 2.0)")
    p.add_argument("--arp-timeout", type=float, default=DEFAULT_ARP_TIMEOUT, help="ARP timeout seconds (default: 5.0)")
    p.add_argument("--ports", help="TCP ports to try, e.g. 22,80,443 or 1-1024 (overrides --ports-file)")
    p.add_argument("--ports-file", help="Comma-separated candidate port list for the TCP scan")
    p.add_argument("--max-hosts", type=int, default=DEFAULT_MAX_HOSTS, help="Refuse ranges larger than this")
    p.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    p.add_argument("--format", choices=["txt", "csv", "json"], help="Save results to file")
    p.add_argument("--out-dir", default="SCANS", help="Output directory for saved files")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def build_probe(method: str, args: argparse.Namespace) -> Probe:
    if method == "icmp":
        return PingProbe(args.timeout)
    if method == "tcp":
        return TcpConnectProbe(args.timeout, ports=args.port_list, ports_file=args.ports_file)
    return ArpProbe(args.arp_timeout, iface=args.iface)


SCAN_TYPES = {"icmp": ScanType.ICMP, "tcp": ScanType.TCP, "arp": ScanType.ARP}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.method in ("arp", "all") and not args.iface:
        parser.error("--iface is required for ARP scan")
    if args.workers < 0:
        raise SystemExit("--workers must be >= 0")
    if args.timeout <= 0 or args.arp_timeout <= 0:
        raise SystemExit("timeouts must be > 0")

    args.port_list = None
    if args.ports:
        try:
            args.port_list = parse_ports(args.ports)
        except ValueError as e:
            raise SystemExit(f"Invalid --ports: {e}")

    try:
        targets = expand_cidr(args.target, limit=args.max_hosts)
    except InvalidRange as e:
        raise SystemExit(f"Error: {e}")

    print(f"[*] Target range: {args.target} ({len(targets)} hosts)")

    report = Report(args.target)
    cancel = threading.Event()

    def _on_sigint(signum, frame):
        print("\n[!] Interrupted, finishing in-flight probes...")
        cancel.set()

    previous = None
    if threading.current_thread() is threading.main_thread():
        previous = signal.signal(signal.SIGINT, _on_sigint)

    try:
        for method in METHODS[args.method]:
            if cancel.is_set():
                break
            probe = build_probe(method, args)
            print(f"\n[*] Starting {probe.name}...")

            engine = ScanEngine(probe, workers=args.workers, show_progress=not args.no_progress)
            results = engine.run(targets, cancel)

            report.add_scan(SCAN_TYPES[method], results)
            print_results(results, probe.name)
    finally:
        if previous is not None:
            signal.signal(signal.SIGINT, previous)

    if args.format:
        try:
            path = save_report(report, out_dir=args.out_dir, fmt=args.format)
        except OSError as e:
            raise SystemExit(f"Error saving results: {e}")
        print(f"\nSaved results to {path}")

    return 130 if cancel.is_set() else 0
