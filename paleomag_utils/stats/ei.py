"""
Elongation/inclination correction of inclination shallowing
(Tauxe & Kent, 2004).

Directions are unflattened with tan(If) = tan(Io) / f (King, 1955) for
flattening factors f from 1.00 down to 0.20. The f where the elongation
tau2/tau3 of the unflattened data meets the TK03.GAD elongation for its
mean inclination gives the corrected inclination. Bootstrapping the
sweep gives its confidence bounds.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import List

import numpy as np
from numpy import array as arr

from paleomag_utils.errors import InsufficientPoints
from paleomag_utils.math_utils.eigen import eigenvalues, orientation_matrix
from paleomag_utils.math_utils.general import directions_to_vectors, to_dir, validate_directions
from paleomag_utils.set_config import get_setting, log
from paleomag_utils.stats.sampling import pseudo
from paleomag_utils.utils.algo import run_parallel

# Third order fit of TK03.GAD elongation against inclination (PmagPy)
TK03_COEFFICIENTS = (3.15976125e-06, -3.52459817e-04, -1.46641090e-02, 2.89538539e+00)
N_CURVES = 25


def tk03_elongation(inc):
    """Expected elongation of TK03.GAD directions with mean inclination inc"""
    return np.polyval(TK03_COEFFICIENTS, inc)


def unflatten(directions, f):
    """(N, 2) array of (dec, inc) with tan(inc) divided by the flattening factor f"""
    angles = validate_directions(directions)
    inc = np.degrees(np.arctan(np.tan(np.radians(angles[:, 1])) / f))
    return np.column_stack([angles[:, 0], inc])


@dataclass
class UnflatteningCurve:
    """
    Mean inclination and elongation of the unflattened data per flattening
    factor. The last entry is the intersection with TK03.GAD, the curve is
    empty when there is none.
    """
    flattening_factors: np.ndarray
    elongations: np.ndarray
    inclinations: np.ndarray

    @property
    def intersects(self):
        return len(self.flattening_factors) > 0

    @property
    def inclination(self):
        return float(self.inclinations[-1]) if self.intersects else np.nan

    @property
    def elongation(self):
        return float(self.elongations[-1]) if self.intersects else np.nan

    @property
    def flattening(self):
        return float(self.flattening_factors[-1]) if self.intersects else np.nan


def _elongation(vectors):
    tau = eigenvalues(orientation_matrix(vectors))
    with np.errstate(divide='ignore', invalid='ignore'):
        return float(tau[1] / tau[2])


def unflatten_directions(directions) -> UnflatteningCurve:
    """
    Sweeps f from 1.00 to 0.20 in steps of 0.01.
    Points with an elongation at or above TK03.GAD before the first point
    below it are dropped. The sweep stops at the first point at or above
    the polynomial after that, which is kept as the intersection.
    """
    factors, elongations, inclinations = [], [], []
    for step in range(100, 19, -1):
        f = step / 100
        vectors = directions_to_vectors(unflatten(directions, f))
        mean_inc = abs(to_dir(*vectors.sum(axis=0)).inc)
        elongation = _elongation(vectors)

        if abs(tk03_elongation(mean_inc)) <= elongation:
            if factors:
                factors.append(f)
                elongations.append(elongation)
                inclinations.append(mean_inc)
                return UnflatteningCurve(arr(factors), arr(elongations), arr(inclinations))
            continue

        factors.append(f)
        elongations.append(elongation)
        inclinations.append(mean_inc)

    return UnflatteningCurve(arr([]), arr([]), arr([]))


@dataclass
class EIResult:
    original_inclination: float  # absolute mean inclination of the data
    unflattened_inclination: float  # intersection for the data, nan without one
    curve: UnflatteningCurve
    inclinations: np.ndarray  # sorted intersections of the bootstraps
    cdf: np.ndarray
    average_inclination: float
    lower: float
    upper: float
    n_bootstraps: int
    bootstrap_curves: List[UnflatteningCurve] = field(default_factory=list)

    @property
    def n_intersections(self):
        return len(self.inclinations)


def _bootstrap(idx, rng, directions=None):
    return unflatten_directions(pseudo(directions, rng))


def inclination_shallowing(directions,
                           n_bootstraps=None,
                           seed=None,
                           n_jobs=None,
                           progress=None) -> EIResult:
    """
    Runs the E/I correction on (dec, inc) directions.

    Args:
        directions: observed directions
        n_bootstraps: number of pseudo-samples, [ei] n_bootstraps
        seed: int or SeedSequence, each bootstrap gets its own generator
        n_jobs: joblib workers
        progress: optional callable(done, total)

    Bootstraps without an intersection are left out of the distribution.
    Without any intersection the bounds and average are nan.
    """
    n_bootstraps = get_setting('ei', 'n_bootstraps', 5000) if n_bootstraps is None else n_bootstraps
    directions = [tuple(direction[:2]) for direction in directions]
    if len(directions) < 2:
        raise InsufficientPoints(2, len(directions), what="E/I correction")
    validate_directions(directions)

    original = abs(to_dir(*directions_to_vectors(directions).sum(axis=0)).inc)
    curve = unflatten_directions(directions)
    if curve.intersects:
        log.info(f'Data meet TK03.GAD at f={curve.flattening:.2f}, inclination {curve.inclination:.1f}')
    else:
        log.warning('Data do not intersect the TK03.GAD elongation curve')

    results = run_parallel(
        partial(_bootstrap, directions=directions),
        range(n_bootstraps),
        seed=seed,
        n_jobs=n_jobs,
        progress=progress,
    )
    intersecting = [result for result in results if result.intersects]
    inclinations = np.sort(arr([result.inclination for result in intersecting], dtype=float))
    n = len(inclinations)
    cdf = np.arange(n) / max(n - 1, 1)

    if n == 0:
        log.warning(f'None of {n_bootstraps} bootstraps intersect TK03.GAD')
        lower = upper = average = np.nan
    else:
        lower = float(inclinations[int(0.025 * n)])
        upper = float(inclinations[int(0.975 * n)])
        average = float(np.mean(inclinations))
        log.info(f'{n} of {n_bootstraps} bootstraps intersect, 95% bounds {lower:.1f} to {upper:.1f}')

    return EIResult(
        original_inclination=float(original),
        unflattened_inclination=curve.inclination,
        curve=curve,
        inclinations=inclinations,
        cdf=cdf,
        average_inclination=average,
        lower=lower,
        upper=upper,
        n_bootstraps=n_bootstraps,
        bootstrap_curves=intersecting[:N_CURVES],
    )
