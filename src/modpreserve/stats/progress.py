"""
Cancellation and progress reporting for the permutation procedure.

The permutation workers and the monitoring (calling) thread share exactly two
pieces of mutable state:

- a CancellationToken, set at most once by anyone and polled by every worker
- ProgressCounters, one slot per worker; only that worker increments it

The ProgressMonitor runs in the calling thread while the workers run. It sums
the counters, reports throttled updates to a callback (and a tqdm bar when
verbose), and turns a host interrupt request, or Ctrl-C while it waits, into
a cancellation of the shared token.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Sequence

from tqdm import tqdm

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class ComputationInterrupted(RuntimeError):
    """Raised when the host requests an interrupt before the parallel phase."""


def check_interrupt(interrupt_check: Callable[[], bool] | None) -> None:
    """Poll the host interrupt signal during single-threaded work."""
    if interrupt_check is not None and interrupt_check():
        raise ComputationInterrupted("Computation interrupted by user request")


class CancellationToken:
    """Shared cooperative cancellation flag backed by ``threading.Event``."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __bool__(self) -> bool:
        return self._event.is_set()


class ProgressCounters:
    """
    Completed-permutation counters, one slot per worker thread.

    Each slot has a single writer (its worker), so increments need no lock;
    readers may observe a slightly stale total.
    """

    def __init__(self, n_threads: int):
        self._counts = [0] * n_threads

    def increment(self, thread: int) -> None:
        self._counts[thread] += 1

    def __getitem__(self, thread: int) -> int:
        return self._counts[thread]

    def __len__(self) -> int:
        return len(self._counts)

    @property
    def total(self) -> int:
        return sum(self._counts)


class ProgressMonitor:
    """
    Poll worker progress until every worker thread has finished.

    Args:
        total: Total number of permutations requested.
        counters: Shared per-thread counters.
        token: Shared cancellation token observed by the workers.
        progress_callback: Called with (completed, total) on each update.
        interrupt_check: Host interrupt signal; a True poll cancels the token.
        verbose: Show a tqdm progress bar.
        poll_interval: Seconds between polls.
        min_update_interval: Minimum seconds between callback updates.
    """

    def __init__(
        self,
        total: int,
        counters: ProgressCounters,
        token: CancellationToken,
        progress_callback: ProgressCallback | None = None,
        interrupt_check: Callable[[], bool] | None = None,
        verbose: bool = False,
        poll_interval: float = 0.05,
        min_update_interval: float = 0.5,
    ):
        self.total = total
        self.counters = counters
        self.token = token
        self.progress_callback = progress_callback
        self.interrupt_check = interrupt_check
        self.verbose = verbose
        self.poll_interval = poll_interval
        self.min_update_interval = min_update_interval
        self._last_reported = -1
        self._last_update = 0.0

    def _report(self, completed: int, force: bool = False) -> None:
        now = time.monotonic()
        if completed == self._last_reported:
            return
        if not force and now - self._last_update < self.min_update_interval:
            return
        self._last_reported = completed
        self._last_update = now
        if self.progress_callback is not None:
            self.progress_callback(completed, self.total)

    def _poll_interrupt(self) -> None:
        if self.token.cancelled or self.interrupt_check is None:
            return
        if self.interrupt_check():
            logger.warning("Interrupt requested, cancelling permutation workers")
            self.token.cancel()

    def watch(self, threads: Sequence[threading.Thread]) -> int:
        """
        Block until all ``threads`` have exited.

        Returns:
            Number of permutations completed across all workers.
        """
        bar = tqdm(total=self.total, desc="Permutations", unit="perm", disable=not self.verbose)
        shown = 0
        try:
            while any(t.is_alive() for t in threads):
                try:
                    for t in threads:
                        if t.is_alive():
                            t.join(self.poll_interval)
                            break
                    self._poll_interrupt()
                except KeyboardInterrupt:
                    logger.warning("Keyboard interrupt, cancelling permutation workers")
                    self.token.cancel()

                completed = self.counters.total
                bar.update(completed - shown)
                shown = completed
                self._report(completed)
        finally:
            completed = self.counters.total
            bar.update(completed - shown)
            bar.close()

        self._report(completed, force=True)
        return completed
