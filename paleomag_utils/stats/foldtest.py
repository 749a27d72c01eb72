"""
Bootstrapped eigenvalue fold test (Tauxe & Watson, 1994).

Directions are progressively unfolded and the unfolding percentage giving
the largest principal eigenvalue tau1 is recorded, for the data and for
pseudo-samples drawn from it. A 95% range of those percentages that
includes 100 indicates magnetization before folding, one including
0 magnetization after it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import List

import numpy as np
from numpy import array as arr

from paleomag_utils.errors import InsufficientPoints
from paleomag_utils.math_utils.eigen import eigenvalues, orientation_matrix
from paleomag_utils.math_utils.general import validate_directions
from paleomag_utils.set_config import get_setting, log
from paleomag_utils.stats.sampling import pseudo
from paleomag_utils.utils.algo import run_parallel

N_CURVES = 25


@dataclass
class FoldtestResult:
    untilt: np.ndarray  # sorted bootstrapped percentages of maximum tau1
    cdf: np.ndarray
    lower: float
    upper: float
    unfolding: np.ndarray  # 10% grid the tau curves are sampled on
    taus: np.ndarray  # tau1 of the data over the grid
    max_unfolding: float  # percentage of maximum tau1 for the data
    bootstrap_taus: List[np.ndarray] = field(default_factory=list)

    @property
    def n_bootstraps(self):
        return len(self.untilt)


def unfold(rows, percentage):
    """
    Unit vectors of (dec, inc, strike, dip) rows with the bedding correction
    applied for percentage % of the dip.
    """
    rows = np.asarray(rows, dtype=float)
    dec, inc, strike, dip = rows[:, 0], rows[:, 1], rows[:, 2], rows[:, 3]
    dip_direction = np.radians(strike + 90)
    dip = np.radians(dip * 0.01 * percentage)
    dec = np.radians(dec) - dip_direction
    inc = np.radians(inc)

    x = np.cos(dec) * np.cos(inc)
    y = np.sin(dec) * np.cos(inc)
    z = np.sin(inc)

    x_tilt = np.cos(dip) * x + np.sin(dip) * z
    z_tilt = -np.sin(dip) * x + np.cos(dip) * z

    return np.column_stack([
        np.cos(dip_direction) * x_tilt - np.sin(dip_direction) * y,
        np.sin(dip_direction) * x_tilt + np.cos(dip_direction) * y,
        z_tilt,
    ])


def principal_tau(rows, percentage):
    return float(eigenvalues(orientation_matrix(unfold(rows, percentage)))[0])


def unfold_data(rows, unfolding_min=-50, unfolding_max=150):
    """
    Returns (percentage of maximum tau1, tau1 on the 10% grid).
    The coarse maximum is refined in 1% steps within 9% either side,
    never leaving [unfolding_min, unfolding_max].
    """
    best_tau = 0.0
    best = unfolding_min
    taus = []
    for percentage in range(unfolding_min, unfolding_max + 1, 10):
        tau = principal_tau(rows, percentage)
        taus.append(tau)
        if tau > best_tau:
            best_tau, best = tau, percentage

    coarse = best
    for offset in range(-9, 10):
        percentage = coarse + offset
        if not unfolding_min <= percentage <= unfolding_max:
            continue
        tau = principal_tau(rows, percentage)
        if tau > best_tau:
            best_tau, best = tau, percentage
    return best, arr(taus)


def _bootstrap(idx, rng, rows=None, unfolding_min=-50, unfolding_max=150):
    return unfold_data(pseudo(rows, rng), unfolding_min, unfolding_max)


def foldtest(rows,
             n_bootstraps=None,
             unfolding_min=None,
             unfolding_max=None,
             seed=None,
             n_jobs=None,
             progress=None) -> FoldtestResult:
    """
    Runs the fold test on rows of (dec, inc, bedding strike, bedding dip).

    Args:
        rows: geographic directions with their bedding
        n_bootstraps: number of pseudo-samples, [foldtest] n_bootstraps
        unfolding_min, unfolding_max: unfolding range in percent
        seed: int or SeedSequence, each bootstrap gets its own generator
        n_jobs: joblib workers
        progress: optional callable(done, total)
    """
    n_bootstraps = get_setting('foldtest', 'n_bootstraps', 1000) if n_bootstraps is None else n_bootstraps
    unfolding_min = int(get_setting('foldtest', 'unfolding_min', -50) if unfolding_min is None else unfolding_min)
    unfolding_max = int(get_setting('foldtest', 'unfolding_max', 150) if unfolding_max is None else unfolding_max)
    rows = [tuple(row[:4]) for row in rows]
    if len(rows) < 2:
        raise InsufficientPoints(2, len(rows), what="fold test")
    validate_directions(rows)

    max_unfolding, taus = unfold_data(rows, unfolding_min, unfolding_max)
    log.info(f'Maximum clustering of the data at {max_unfolding}% unfolding')

    results = run_parallel(
        partial(_bootstrap, rows=rows, unfolding_min=unfolding_min, unfolding_max=unfolding_max),
        range(n_bootstraps),
        seed=seed,
        n_jobs=n_jobs,
        progress=progress,
    )
    untilt = np.sort(arr([index for index, _ in results], dtype=float))
    cdf = np.arange(n_bootstraps) / max(n_bootstraps - 1, 1)
    lower = float(untilt[int(0.025 * n_bootstraps)])
    upper = float(untilt[int(0.975 * n_bootstraps)])
    log.info(f'Fold test 95% bounds: {lower}% to {upper}% unfolding')

    return FoldtestResult(
        untilt=untilt,
        cdf=cdf,
        lower=lower,
        upper=upper,
        unfolding=np.arange(unfolding_min, unfolding_max + 1, 10),
        taus=taus,
        max_unfolding=float(max_unfolding),
        bootstrap_taus=[curve for _, curve in results[:N_CURVES]],
    )
