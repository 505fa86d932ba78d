"""
Multi-threaded null distribution generation for preservation statistics.

Null design:
    The permutable pool of test-dataset node indices is shuffled as a whole.
    Each module then looks its member *names* up in the pool's position table
    and takes whatever indices now sit in those slots, so module sizes are
    preserved while membership is randomised. All seven statistics are then
    recomputed exactly as for the observed assignment.

Work partitioning:
    The requested permutations are split into contiguous chunks, one per
    worker thread; chunk sizes differ by at most one. Each worker writes only
    its own depth slice of the modules × 7 × permutations result cube, so no
    two workers ever touch the same cell and no locking is needed.

Cancellation:
    Workers poll the shared CancellationToken before each module and after
    each of the four property computations. The cube starts filled with the
    missing marker, so an interrupted (module, permutation) cell stays
    missing instead of partially written.

Reproducibility:
    Each worker owns a ``numpy.random.Generator`` spawned from one
    SeedSequence. A fixed ``seed`` reproduces results for a fixed thread
    count only; changing ``n_threads`` changes the draws.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable, Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from modpreserve.core.index_maps import PermutableIndexPool
from modpreserve.stats.discovery_cache import DiscoveryStatisticsCache
from modpreserve.stats.network_stats import MISSING
from modpreserve.stats.observed import N_STATISTICS, preservation_statistics
from modpreserve.stats.progress import (
    CancellationToken,
    ProgressCallback,
    ProgressCounters,
    ProgressMonitor,
)

if TYPE_CHECKING:
    from modpreserve.core.dataset import Dataset

logger = logging.getLogger(__name__)


def partition_permutations(
    n_permutations: int,
    n_threads: int,
) -> tuple[list[int], list[int]]:
    """
    Split permutations into contiguous per-thread chunks.

    Every thread gets ``n_permutations // n_threads``; the first
    ``n_permutations % n_threads`` threads get one extra.

    Returns:
        (chunk sizes, start offsets into the permutation axis)

    Example:
        >>> partition_permutations(10, 3)
        ([4, 3, 3], [0, 4, 7])
    """
    base, extra = divmod(n_permutations, n_threads)
    chunks = [base + (1 if i < extra else 0) for i in range(n_threads)]
    starts = [0] * n_threads
    for i in range(1, n_threads):
        starts[i] = starts[i - 1] + chunks[i - 1]
    return chunks, starts


class NullDistributionEngine:
    """
    Generate null distributions for the seven preservation statistics.

    All inputs are shared read-only by the worker threads.

    Args:
        test: Test dataset.
        cache: Discovery-side reference vectors.
        modules: Modules to analyse; row order of the result cube.
        module_map: Module label → member node names.
        pool: Permutable test-dataset index pool.
        n_permutations: Total permutations to generate.
        n_threads: Number of worker threads.
        seed: Optional seed for the per-thread generators.
    """

    def __init__(
        self,
        test: Dataset,
        cache: DiscoveryStatisticsCache,
        modules: Sequence[str],
        module_map: Mapping[str, list[str]],
        pool: PermutableIndexPool,
        n_permutations: int,
        n_threads: int = 1,
        seed: int | None = None,
    ):
        self.test = test
        self.cache = cache
        self.modules = list(modules)
        self.module_map = module_map
        self.pool = pool
        self.n_permutations = n_permutations
        self.n_threads = n_threads
        self.seed = seed
        self._errors: list[BaseException] = []

    def _worker(
        self,
        thread: int,
        n_perm: int,
        start: int,
        rng: np.random.Generator,
        nulls: NDArray[np.float64],
        counters: ProgressCounters,
        token: CancellationToken,
    ) -> None:
        """Fill permutations ``start .. start + n_perm`` of the cube."""
        shuffled = self.pool.indices.copy()

        def cancelled() -> bool:
            return token.cancelled

        for depth in range(start, start + n_perm):
            rng.shuffle(shuffled)
            for row, module in enumerate(self.modules):
                if token.cancelled:
                    return
                idx = self.pool.draw(self.module_map.get(module, []), shuffled)
                if len(idx) == 0:
                    continue
                stats = preservation_statistics(self.test, idx, self.cache[module], cancelled)
                if stats is None:
                    return
                nulls[row, :, depth] = stats
            counters.increment(thread)

    def _run_worker(self, *args, token: CancellationToken) -> None:
        try:
            self._worker(*args, token)
        except Exception as exc:
            # Stop the other workers; the error is re-raised after join
            self._errors.append(exc)
            token.cancel()

    def run(
        self,
        token: CancellationToken | None = None,
        progress_callback: ProgressCallback | None = None,
        interrupt_check: Callable[[], bool] | None = None,
        verbose: bool = False,
    ) -> tuple[NDArray[np.float64], int]:
        """
        Spawn the workers, monitor them from the calling thread, and join.

        Args:
            token: Shared cancellation token; a fresh one is used if omitted.
            progress_callback: Called with (completed, total) as
                permutations finish.
            interrupt_check: Host interrupt signal; a True poll cancels the
                workers.
            verbose: Log at INFO level and show a progress bar.

        Returns:
            (null cube of shape modules × 7 × permutations, number of
            completed permutations). Cancelled runs return the partial cube.

        Raises:
            Exception: The first exception raised by any worker.
        """
        say = logger.info if verbose else logger.debug
        token = token if token is not None else CancellationToken()
        nulls = np.full((len(self.modules), N_STATISTICS, self.n_permutations), MISSING)
        counters = ProgressCounters(self.n_threads)
        chunks, starts = partition_permutations(self.n_permutations, self.n_threads)
        seeds = np.random.SeedSequence(self.seed).spawn(self.n_threads)
        self._errors = []
        # Cached on first access; computed here so workers only read it
        self.test.scaled_data

        say(
            "Generating null distributions from %d permutations using %d thread%s...",
            self.n_permutations, self.n_threads, "" if self.n_threads == 1 else "s",
        )

        threads = [
            threading.Thread(
                target=self._run_worker,
                args=(i, chunks[i], starts[i], np.random.default_rng(seeds[i]), nulls, counters),
                kwargs={"token": token},
                name=f"modpreserve-null-{i}",
                daemon=True,
            )
            for i in range(self.n_threads)
        ]
        for t in threads:
            t.start()

        monitor = ProgressMonitor(
            total=self.n_permutations,
            counters=counters,
            token=token,
            progress_callback=progress_callback,
            interrupt_check=interrupt_check,
            verbose=verbose,
        )
        completed = monitor.watch(threads)

        for t in threads:
            t.join()

        if self._errors:
            raise self._errors[0]
        if token.cancelled:
            logger.warning(
                "Permutation procedure cancelled after %d of %d permutations",
                completed, self.n_permutations,
            )
        return nulls, completed
