"""
Module preservation: observed statistics and permutation null distributions.

``module_preservation`` is the entry point. Given a discovery and a test
Dataset and a discovery-side module assignment it:

1. builds the node/module index tables and the permutable pool
2. caches the discovery-side reference vectors of every module
3. computes the observed statistics on the real test assignment
4. generates null distributions in parallel worker threads
5. returns both as a labelled PreservationResult

Inputs are assumed validated upstream: consistent node ordering within each
dataset, square symmetric matrices, and module labels that occur in the
assignment. For comparison statistics to be defined, the assignment should be
restricted to nodes present in both datasets; modules whose discovery and test
vectors differ in length get missing ``cor.*``/``avg.*`` values.

Example:
    >>> result = module_preservation(
    ...     discovery, test, assignment, modules=["1", "2"],
    ...     n_permutations=1000, n_threads=4,
    ... )
    >>> result.observed.loc["1", "cor.degree"]
    >>> result.p_values()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Literal, Mapping, Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from modpreserve.core.index_maps import (
    NullHypothesis,
    PermutableIndexPool,
    make_module_map,
)
from modpreserve.stats.discovery_cache import DiscoveryStatisticsCache
from modpreserve.stats.network_stats import MISSING
from modpreserve.stats.null_distribution import NullDistributionEngine
from modpreserve.stats.observed import STATISTIC_NAMES, compute_observed_statistics
from modpreserve.stats.progress import (
    CancellationToken,
    ProgressCallback,
    check_interrupt,
)

if TYPE_CHECKING:
    from modpreserve.core.dataset import Dataset

logger = logging.getLogger(__name__)

Alternative = Literal["greater", "less", "two.sided"]


def _as_missing(values: NDArray[np.float64]) -> NDArray[np.float64]:
    """Replace non-finite values with the missing marker in place."""
    values[~np.isfinite(values)] = MISSING
    return values


@dataclass
class PreservationResult:
    """
    Observed preservation statistics and their null distributions.

    Attributes:
        observed: modules × statistics DataFrame.
        nulls: modules × statistics × permutations array, missing (NaN)
            where a permutation was not completed or the statistic is
            undefined.
        permutation_names: ``permutation.1`` ... ``permutation.N``.
        completed_permutations: Permutations fully computed; lower than
            ``n_permutations`` when the run was cancelled.
        null_hypothesis: Pool used for the permutations.
    """

    observed: pd.DataFrame
    nulls: NDArray[np.float64]
    permutation_names: list[str]
    completed_permutations: int
    null_hypothesis: NullHypothesis = "overlap"

    @property
    def modules(self) -> list[str]:
        return list(self.observed.index)

    @property
    def statistics(self) -> list[str]:
        return list(self.observed.columns)

    @property
    def n_permutations(self) -> int:
        return self.nulls.shape[2]

    @property
    def cancelled(self) -> bool:
        return self.completed_permutations < self.n_permutations

    def null_frame(self) -> pd.DataFrame:
        """Null distributions in long form: one row per (module, statistic, permutation)."""
        index = pd.MultiIndex.from_product(
            [self.modules, self.statistics, self.permutation_names],
            names=["module", "statistic", "permutation"],
        )
        return pd.DataFrame({"value": self.nulls.ravel()}, index=index)

    def p_values(self, alternative: Alternative = "greater") -> pd.DataFrame:
        """
        Empirical permutation p-values for every observed statistic.

        Computed as (n_extreme + 1) / (n_valid + 1) over the non-missing null
        observations. Missing when the observed value is missing or no null
        observation exists.

        Args:
            alternative: "greater" tests for preservation (observed larger
                than null), "less" the reverse, "two.sided" doubles the
                smaller one-sided p-value.
        """
        if alternative not in ("greater", "less", "two.sided"):
            raise ValueError(f"Unknown alternative: {alternative!r}")

        obs = self.observed.to_numpy()[:, :, np.newaxis]
        valid = np.isfinite(self.nulls)
        n_valid = valid.sum(axis=2)

        with np.errstate(invalid='ignore'):
            n_greater = (valid & (self.nulls >= obs)).sum(axis=2)
            n_less = (valid & (self.nulls <= obs)).sum(axis=2)
        p_greater = (n_greater + 1) / (n_valid + 1)
        p_less = (n_less + 1) / (n_valid + 1)

        if alternative == "greater":
            p = p_greater
        elif alternative == "less":
            p = p_less
        else:
            p = np.minimum(1.0, 2 * np.minimum(p_greater, p_less))

        p = p.astype(np.float64)
        p[(n_valid == 0) | ~np.isfinite(obs[:, :, 0])] = MISSING
        return pd.DataFrame(p, index=self.observed.index, columns=self.observed.columns)


def module_preservation(
    discovery: Dataset,
    test: Dataset,
    module_assignments: Mapping[str, str] | pd.Series,
    modules: Sequence[str],
    n_permutations: int,
    n_threads: int = 1,
    null_hypothesis: NullHypothesis = "overlap",
    verbose: bool = False,
    progress_callback: ProgressCallback | None = None,
    cancel_token: CancellationToken | None = None,
    interrupt_check: Callable[[], bool] | None = None,
    seed: int | None = None,
) -> PreservationResult:
    """
    Observed module preservation statistics and their null distributions.

    Args:
        discovery: Discovery dataset (data, correlation and network).
        test: Test dataset (data, correlation and network).
        module_assignments: Discovery node name → module label.
        modules: Modules to analyse; sets the row order of both outputs.
        n_permutations: Number of permutations (> 0).
        n_threads: Number of worker threads (> 0).
        null_hypothesis: "overlap" permutes only nodes of the assignment that
            are present in the test dataset; "all" permutes every test node.
        verbose: Log progress messages at INFO level and show a progress bar.
        progress_callback: Called with (completed, total) as permutations
            finish.
        cancel_token: Shared token; cancelling it stops the workers and
            yields a partial null cube.
        interrupt_check: Host interrupt signal. Raises ComputationInterrupted
            if it fires before the permutation phase; cancels the workers if
            it fires during it.
        seed: Seed for the permutation generators.

    Returns:
        PreservationResult with the observed table and the null cube.
    """
    say = logger.info if verbose else logger.debug
    modules = [str(m) for m in modules]

    module_map = make_module_map(module_assignments)
    check_interrupt(interrupt_check)
    pool = PermutableIndexPool.build(
        null_hypothesis, module_assignments, test.index_map, test.node_names,
    )
    check_interrupt(interrupt_check)

    cache = DiscoveryStatisticsCache.build(discovery, module_map, modules, interrupt_check)

    say("Calculating observed test statistics...")
    observed = compute_observed_statistics(test, module_map, modules, cache, interrupt_check)

    token = cancel_token if cancel_token is not None else CancellationToken()
    engine = NullDistributionEngine(
        test=test,
        cache=cache,
        modules=modules,
        module_map=module_map,
        pool=pool,
        n_permutations=n_permutations,
        n_threads=n_threads,
        seed=seed,
    )
    nulls, completed = engine.run(
        token=token,
        progress_callback=progress_callback,
        interrupt_check=interrupt_check,
        verbose=verbose,
    )

    say("Completed %d of %d permutations", completed, n_permutations)

    return PreservationResult(
        observed=pd.DataFrame(_as_missing(observed), index=modules, columns=list(STATISTIC_NAMES)),
        nulls=_as_missing(nulls),
        permutation_names=[f"permutation.{i + 1}" for i in range(n_permutations)],
        completed_permutations=completed,
        null_hypothesis=null_hypothesis,
    )
