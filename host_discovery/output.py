from __future__ import annotations

import csv
import json
import os
from datetime import datetime
from enum import Enum
from typing import List, Tuple

from .models import ProbeResult

SEPARATOR = "-" * 50


class ScanType(str, Enum):
    ICMP = "ICMP_SCAN"
    TCP = "TCP_SCAN"
    ARP = "ARP_SCAN"


class Report:
    def __init__(self, subnet: str):
        self.subnet = subnet
        self.timestamp = datetime.now()
        self.scans: List[Tuple[ScanType, List[ProbeResult]]] = []

    def add_scan(self, scan_type: ScanType, results: List[ProbeResult]) -> None:
        self.scans.append((scan_type, list(results)))

    def format(self) -> str:
        lines = [
            f"Result of: {self.subnet}",
            f"Scan time: {self.timestamp.strftime('%Y-%m-%d %H:%M:%S')}",
            SEPARATOR,
            "",
        ]

        for scan_type, results in self.scans:
            lines.append(f"{scan_type.value}:")
            alive = [r for r in results if r.alive]
            for r in alive:
                lines.append(f"{r.address} ({r.detail})" if r.detail else r.address)
            if not alive:
                lines.append("No live hosts found")
            lines.append("")

        lines.append(SEPARATOR)
        lines.append("SUMMARY:")
        for scan_type, results in self.scans:
            lines.append(f"  {scan_type.value}: {count_alive(results)} hosts alive")

        return "\n".join(lines) + "\n"


def count_alive(results: List[ProbeResult]) -> int:
    return sum(1 for r in results if r.alive)


def print_results(results: List[ProbeResult], scan_name: str) -> None:
    print()
    print("=" * 64)
    print(f"{scan_name.upper()} RESULTS".center(64))
    print("=" * 64)

    alive = count_alive(results)
    for r in results:
        if r.alive:
            print(f"  [+] {r.address:<15}  {r.detail}")
    if alive == 0:
        print("  No live hosts found.")

    print("-" * 64)
    print(f"  Total: {len(results)} hosts | Alive: {alive} | No response: {len(results) - alive}")
    print("=" * 64)


def _rows(report: Report):
    for scan_type, results in report.scans:
        for r in results:
            yield scan_type, r


def save_report(report: Report, out_dir: str = "SCANS", fmt: str = "txt") -> str:
    if fmt not in ("txt", "csv", "json"):
        raise ValueError(f"Unsupported format: {fmt}")

    out_dir = os.path.expanduser(out_dir)
    os.makedirs(out_dir, exist_ok=True)
    ts = report.timestamp.strftime("%Y-%m-%d_%H-%M-%S")
    path = os.path.join(out_dir, f"{ts}_host_discovery.{fmt}")

    if fmt == "txt":
        with open(path, "w", encoding="utf-8") as f:
            f.write(report.format())

    elif fmt == "csv":
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["scan", "address", "status", "probe", "detail", "elapsed_s"])
            for scan_type, r in _rows(report):
                w.writerow([
                    scan_type.value,
                    r.address,
                    "alive" if r.alive else "down",
                    r.probe_name,
                    r.detail,
                    r.elapsed_s,
                ])

    else:
        payload = {
            "subnet": report.subnet,
            "timestamp": report.timestamp.isoformat(timespec="seconds"),
            "scans": [
                {
                    "type": scan_type.value,
                    "alive": count_alive(results),
                    "results": [
                        {
                            "address": r.address,
                            "alive": r.alive,
                            "probe": r.probe_name,
                            "detail": r.detail,
                            "elapsed_s": r.elapsed_s,
                        }
                        for r in results
                    ],
                }
                for scan_type, results in report.scans
            ],
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

    return path
