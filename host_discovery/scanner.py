from __future__ import annotations

import logging
import os
import sys
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Iterator, List, Optional, Sequence, Set, TextIO

from .models import Probe, ProbeResult
from .targets import address_key

logger = logging.getLogger(__name__)

MAX_DEFAULT_WORKERS = 100
WORKERS_PER_CPU = 10
BAR_WIDTH = 40


def default_worker_count() -> int:
    return min((os.cpu_count() or 1) * WORKERS_PER_CPU, MAX_DEFAULT_WORKERS)


def render_progress(current: int, total: int, width: int = BAR_WIDTH) -> str:
    frac = current / total if total else 1.0
    filled = int(width * frac)
    bar = "#" * filled + "." * (width - filled)
    return f"\r[{bar}] {frac * 100:3.0f}% ({current}/{total})"


class ScanEngine:
    """
    Runs one probe against every target on a fixed-size thread pool and
    returns the results sorted by address.
    """

    def __init__(
        self,
        probe: Probe,
        workers: int = 0,
        show_progress: bool = True,
        stream: Optional[TextIO] = None,
    ):
        self.probe = probe
        self.workers = workers if workers > 0 else default_worker_count()
        self.show_progress = show_progress
        self.stream = stream
        self.abandoned = 0

    def set_show_progress(self, show: bool) -> None:
        self.show_progress = show

    def _probe_one(self, address: str, cancel: threading.Event) -> Optional[ProbeResult]:
        # claim point: a cancelled run drops the target without a result
        if cancel.is_set():
            return None
        start = time.perf_counter()
        try:
            result = self.probe.probe(address, cancel)
        except Exception as e:
            logger.exception("%s failed on %s", self.probe.name, address)
            result = ProbeResult(
                address=address,
                alive=False,
                probe_name=self.probe.name,
                detail=f"Probe error: {e}",
                elapsed_s=round(time.perf_counter() - start, 4),
            )
        # a probe that saw the cancel flag may have skipped work; its
        # result is not trustworthy, so the target is dropped as well
        if cancel.is_set():
            return None
        return result

    def run(self, targets: Sequence[str], cancel: Optional[threading.Event] = None) -> List[ProbeResult]:
        """
        Bounded-futures pool: at most workers * 4 targets are queued at a time,
        and results are collected by this thread as they complete, so the
        result list has a single writer.

        Targets not yet started when `cancel` is set are dropped, and so are
        probes still in flight when it is set, since they may have cut their
        work short. Results collected before that are kept. `self.abandoned`
        holds the dropped count.
        """
        cancel = cancel or threading.Event()
        total = len(targets)
        results: List[ProbeResult] = []
        self.abandoned = 0

        if total == 0:
            return results

        stream = self.stream or sys.stderr
        jobs: Iterator[str] = iter(targets)
        completed = 0
        start_all = time.perf_counter()
        max_pending = max(self.workers * 4, 100)

        logger.debug("%s: %d targets, %d workers", self.probe.name, total, self.workers)

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            pending: Set[Future] = set()

            def submit_next() -> bool:
                if cancel.is_set():
                    return False
                try:
                    address = next(jobs)
                except StopIteration:
                    return False
                pending.add(pool.submit(self._probe_one, address, cancel))
                return True

            # Prime the queue
            while len(pending) < max_pending and submit_next():
                pass

            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for fut in done:
                    r = fut.result()
                    if r is None:
                        continue
                    results.append(r)

                    completed += 1
                    if self.show_progress:
                        stream.write(render_progress(completed, total))
                        stream.flush()

                # Refill queue
                while len(pending) < max_pending and submit_next():
                    pass

        if self.show_progress:
            stream.write("\n")  # newline after progress
            stream.flush()

        self.abandoned = total - len(results)
        if self.abandoned:
            logger.warning(
                "%s cancelled: %d of %d targets not scanned", self.probe.name, self.abandoned, total
            )
        logger.debug("%s finished in %.2fs", self.probe.name, time.perf_counter() - start_all)

        return sorted(results, key=lambda r: address_key(r.address))
