"""
Test for a common true mean direction (CTMD) between two populations
after McFadden & McElhinny (1990), using Watson's V statistic with a
Monte Carlo null distribution (Tauxe, C.2.1).

    V = 2 * (Sw - Rw),  Sw = sum(k_i * R_i),  Rw = |sum(k_i * R_i * mean_i)|

Classification, at alpha (default 0.05):
    Negative       the observed V is significant, the means differ
    A / B / C      a 5 / 10 / 20 degree separation would have been detected
    Indeterminate  none of the synthetic angles is detectable
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass, replace
from functools import partial
from typing import Dict, Tuple

import numpy as np
from numpy import array as arr

from paleomag_utils.errors import InsufficientPoints, InvalidInput
from paleomag_utils.math_utils.general import Vector3, cart, directions_to_vectors, unit_vector
from paleomag_utils.set_config import get_setting, log
from paleomag_utils.stats.fisher import dispersion, mean_direction
from paleomag_utils.stats.sampling import get_rng, pseudo, pseudo_vectors
from paleomag_utils.utils.algo import run_parallel

CLASSIFICATIONS = ('A', 'B', 'C', 'Negative', 'Indeterminate')


@dataclass(frozen=True)
class CTMDSample:
    """Sufficient statistics of one population"""
    N: int
    R: float
    k: float
    mean: Vector3

    @classmethod
    def from_directions(cls, directions):
        vectors = directions_to_vectors(directions)
        N = len(vectors)
        if N < 1:
            raise InsufficientPoints(1, N, what="CTMD sample")
        total = vectors.sum(axis=0)
        R = float(np.linalg.norm(total))
        k = 0.0 if N == 1 else dispersion(N, R)
        return cls(N, R, k, Vector3(*unit_vector(total)))


@dataclass(frozen=True)
class WatsonDistribution:
    parameters: np.ndarray  # simulated V, sorted ascending
    v95: float
    v99: float

    def probability(self, v):
        return find_probability(v, self)


@dataclass(frozen=True)
class CTMDResult:
    classification: str
    critical_angle: float
    observed_angle: float
    probability: float
    v_observed: float
    v95: float
    flipped: bool = False


def find_watson_param(samples):
    """Watson's V for two populations (sequence of CTMDSample)"""
    Sw = 0.0
    X = np.zeros(3)
    for sample in samples:
        weight = sample.k * sample.R
        Sw += weight
        X += weight * np.asarray(sample.mean, dtype=float)
    return float(2 * (Sw - np.linalg.norm(X)))


def cap_kappa(k, max_kappa=None):
    """
    Replaces precision parameters above max_kappa ([ctmd] max_kappa),
    including the infinite k of identical directions, with max_kappa.
    """
    max_kappa = get_setting('ctmd', 'max_kappa', 1.0e6) if max_kappa is None else max_kappa
    k = np.asarray(k, dtype=float)
    return np.where(np.isfinite(k), np.minimum(k, max_kappa), max_kappa)


def _with_finite_kappa(sample: CTMDSample) -> CTMDSample:
    k = float(cap_kappa(sample.k))
    if k == sample.k:
        return sample
    log.warning(f'Precision parameter {sample.k} of a population of {sample.N} capped at {k}')
    return replace(sample, k=k)


def _simulate(n, kappa, n_simulations, rng):
    """(weighted resultant vectors, weights) of n_simulations Fisher draws of size n"""
    vectors = pseudo_vectors(n * n_simulations, kappa, rng).reshape(n_simulations, n, 3)
    totals = vectors.sum(axis=1)
    R = np.linalg.norm(totals, axis=1)
    if n == 1:
        k = np.zeros(n_simulations)
    else:
        with np.errstate(divide='ignore'):
            k = cap_kappa((n - 1) / np.maximum(n - R, 0))
    # k * R * mean == k * total
    return k[:, None] * totals, k * R


def sample_watson(N, K, n_simulations=None, rng=None) -> WatsonDistribution:
    """
    Null distribution of V: for each simulation both populations are drawn
    from Fisher distributions (N_i, K_i) sharing one mean.
    """
    n_simulations = get_setting('ctmd', 'n_simulations', 2500) if n_simulations is None else n_simulations
    K = cap_kappa(K)
    rng = get_rng(rng)

    weighted_one, sw_one = _simulate(int(N[0]), K[0], n_simulations, rng)
    weighted_two, sw_two = _simulate(int(N[1]), K[1], n_simulations, rng)
    V = 2 * (sw_one + sw_two - np.linalg.norm(weighted_one + weighted_two, axis=1))

    parameters = np.sort(V)
    v95 = float(parameters[int(0.95 * n_simulations)])
    v99 = float(parameters[int(0.99 * n_simulations)])
    log.debug(f'Simulated {n_simulations} Watson parameters, v95={v95:.3f} v99={v99:.3f}')
    return WatsonDistribution(parameters, v95, v99)


def find_probability(v, distribution: WatsonDistribution):
    """
    Fraction of simulated V at or above v, from the rank of the first
    simulated value not smaller than v: 1 - i / (n - 1).
    """
    parameters = distribution.parameters
    n = len(parameters)
    if v <= parameters[0]:
        return 1.0
    idx = int(np.searchsorted(parameters, v, side='left'))
    if idx >= n:
        return 0.0
    return 1 - idx / (n - 1)


def v_make(R, K, angle):
    """V of two populations with the given R and K whose means are angle degrees apart"""
    theta = np.radians(angle)
    means = [Vector3(0.0, 0.0, 1.0), Vector3(np.sin(theta), 0.0, np.cos(theta))]
    return find_watson_param([
        CTMDSample(0, R[idx], K[idx], means[idx]) for idx in range(2)
    ])


def resmonte(v95, R, K):
    """
    Critical angle (degrees) from the critical V
    (McFadden & McElhinny, 1990, eq. 18-19). 0 when unresolvable.
    """
    one, two = K[0] * R[0], K[1] * R[1]
    Rwc = one + two - 0.5 * v95
    A = (Rwc**2 - one**2 - two**2) / (2 * one * two)
    if A <= -0.9999:
        log.warning('Critical angle is not resolvable, reporting 0')
        return 0.0
    return float(np.degrees(np.arccos(min(A, 1.0))))


def classify(one: CTMDSample,
             two: CTMDSample,
             n_simulations=None,
             alpha=None,
             synthetic_angles=None,
             rng=None) -> CTMDResult:
    """
    Classifies the common mean direction test of two populations.
    Population two is flipped to the antipode when the observed means are
    more than 90 degrees apart, making this a reversal test.
    All synthetic angles are evaluated against the same simulated null distribution.
    Infinite or very large precision parameters are capped with cap_kappa.
    """
    alpha = get_setting('ctmd', 'alpha', 0.05) if alpha is None else alpha
    synthetic_angles = get_setting('ctmd', 'synthetic_angles', [5.0, 10.0, 20.0]) if synthetic_angles is None else synthetic_angles
    if len(synthetic_angles) != 3:
        raise InvalidInput(f"Expected three synthetic angles for A/B/C, received {synthetic_angles}")

    one, two = _with_finite_kappa(one), _with_finite_kappa(two)
    R = (one.R, two.R)
    K = (one.k, two.k)
    distribution = sample_watson((one.N, two.N), K, n_simulations, rng)

    dot = float(np.dot(one.mean, two.mean))
    flipped = dot < 0
    if flipped:
        two = CTMDSample(two.N, two.R, two.k, Vector3(*two.mean).negate())
    observed_angle = float(np.degrees(np.arccos(min(abs(dot), 1.0))))

    v_observed = find_watson_param([one, two])
    probability = find_probability(v_observed, distribution)
    critical_angle = resmonte(distribution.v95, R, K)

    if probability <= alpha:
        classification = 'Negative'
    else:
        classification = 'Indeterminate'
        for label, synthetic in zip('ABC', synthetic_angles):
            if find_probability(v_make(R, K, synthetic), distribution) <= alpha:
                classification = label
                break

    log.info(f'CTMD {classification}: observed {observed_angle:.2f}, critical {critical_angle:.2f}, p={probability:.3f}')
    return CTMDResult(
        classification=classification,
        critical_angle=critical_angle,
        observed_angle=observed_angle,
        probability=probability,
        v_observed=v_observed,
        v95=distribution.v95,
        flipped=flipped,
    )


def _classify_pair(pair, rng, **options):
    one, two = pair
    return classify(one, two, rng=rng, **options)


def pairwise_ctmd(samples: Dict[str, CTMDSample],
                  n_jobs=None,
                  seed=None,
                  progress=None,
                  **options) -> Dict[Tuple[str, str], CTMDResult]:
    """
    Classifies every unordered pair of named populations.
    Each pair gets its own generator spawned from seed.
    options are passed on to classify.
    """
    names = list(samples)
    pairs = list(itertools.combinations(names, 2))
    log.info(f'Running CTMD on {len(pairs)} site pairs')
    results = run_parallel(
        partial(_classify_pair, **options),
        [(samples[a], samples[b]) for a, b in pairs],
        seed=seed,
        n_jobs=n_jobs,
        progress=progress,
    )
    return dict(zip(pairs, results))


@dataclass(frozen=True)
class BootstrapCoordinates:
    one: np.ndarray  # (n_bootstraps, 3) Cartesian bootstrapped means
    two: np.ndarray
    bounds_one: np.ndarray  # (2, 3) lower and upper bound per axis
    bounds_two: np.ndarray
    overlap: Tuple[bool, bool, bool]

    @property
    def overlapping(self):
        """True when the 95% intervals overlap on all three axes"""
        return all(self.overlap)


def _normal_polarity(direction):
    if direction.inc < 0:
        return (direction.dec + 180) % 360, abs(direction.inc)
    return direction.dec, direction.inc


def _bounds(coordinates):
    ordered = np.sort(coordinates, axis=0)
    n = len(ordered)
    return arr([ordered[int(0.025 * n)], ordered[int(0.975 * n)]])


def bootstrap_coordinates(dirs_one, dirs_two, n_bootstraps=None, rng=None) -> BootstrapCoordinates:
    """
    Bootstraps the mean directions of two sites and returns their Cartesian
    coordinates. A pair of means more than 120 degrees apart in declination
    or 60 in inclination is taken as a reversal and both are brought to
    normal polarity.
    """
    n_bootstraps = get_setting('ctmd', 'n_bootstraps', 5000) if n_bootstraps is None else n_bootstraps
    rng = get_rng(rng)
    if len(dirs_one) < 1 or len(dirs_two) < 1:
        raise InsufficientPoints(1, min(len(dirs_one), len(dirs_two)), what="bootstrap")

    one = np.empty((n_bootstraps, 3))
    two = np.empty((n_bootstraps, 3))
    for idx in range(n_bootstraps):
        mean_one = mean_direction(pseudo(dirs_one, rng))
        mean_two = mean_direction(pseudo(dirs_two, rng))
        first = (mean_one.dec, mean_one.inc)
        second = (mean_two.dec, mean_two.inc)
        if abs(mean_one.dec - mean_two.dec) > 120 or abs(mean_one.inc - mean_two.inc) > 60:
            first = _normal_polarity(mean_one)
            second = _normal_polarity(mean_two)
        one[idx] = cart(*first).as_array()
        two[idx] = cart(*second).as_array()

    bounds_one = _bounds(one)
    bounds_two = _bounds(two)
    overlap = tuple(
        bool(max(bounds_one[0, axis], bounds_two[0, axis]) <= min(bounds_one[1, axis], bounds_two[1, axis]))
        for axis in range(3)
    )
    log.info(f'Bootstrapped coordinates ({n_bootstraps}), overlap per axis: {overlap}')
    return BootstrapCoordinates(one, two, bounds_one, bounds_two, overlap)
