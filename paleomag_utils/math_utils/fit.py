"""
Fitting of demagnetization data.

 - fit_pca: principal component lines and planes through stepwise
   demagnetization data (Kirschvink, 1980; Tauxe A.3.5)
 - fit_great_circles: iterative combination of great circles and
   set point directions (McFadden & McElhinny, 1988)
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from numpy import array as arr

from paleomag_utils.errors import InsufficientPoints, InvalidInput
from paleomag_utils.math_utils.eigen import eigen_decomposition, orientation_matrix
from paleomag_utils.math_utils.general import (
    Direction,
    cart,
    correct_bedding,
    directions_to_vectors,
    rotate_to,
    to_dir,
    unit_vector,
    validate_direction,
)
from paleomag_utils.set_config import get_setting, log

MIN_POINTS = {'line': 2, 'plane': 3}


@dataclass(frozen=True)
class DemagnetizationStep:
    """One measurement in specimen coordinates"""
    x: float
    y: float
    z: float
    step: str = ''
    include: bool = True
    visible: bool = True

    @property
    def vector(self):
        return arr([self.x, self.y, self.z], dtype=float)


@dataclass(frozen=True)
class Orientation:
    """
    Core and bedding orientation of a specimen.
    core_dip is the plunge of the core; it is reduced to the
    hade (dip - 90) before rotating to geographic coordinates.
    """
    core_azimuth: float = 0.0
    core_dip: float = 90.0
    bedding_strike: float = 0.0
    bedding_dip: float = 0.0


@dataclass(frozen=True)
class PCAComponent:
    dec: float
    inc: float
    mad: float
    kind: str
    forced: bool
    intensity: float
    centre_of_mass: Tuple[float, float, float]
    n_steps: int
    steps: Tuple[str, ...] = ()
    origin: bool = False

    @property
    def direction(self):
        return Direction(self.dec, self.inc)


def _rotate_point(point, orientation: Orientation, tectonic=False):
    """Specimen vector -> geographic (optionally tectonic) Cartesian vector"""
    if not np.any(point):
        return np.zeros(3)
    direction = rotate_to(orientation.core_azimuth, orientation.core_dip - 90, point)
    if tectonic:
        direction = correct_bedding(orientation.bedding_strike, orientation.bedding_dip, direction)
    return cart(direction.dec, direction.inc, direction.R).as_array()


def to_geographic(steps, orientation: Orientation, tectonic=False):
    """Included steps rotated to geographic (or tectonic) directions"""
    rotated = []
    for step in steps:
        if not step.include:
            continue
        rotated.append(to_dir(*_rotate_point(step.vector, orientation, tectonic)))
    return rotated


def line_mad(tau):
    """Maximum angular deviation of a line fit"""
    t1, t2, t3 = np.clip(tau, 0, None)
    with np.errstate(divide='ignore', invalid='ignore'):
        mad = np.degrees(np.arctan(np.sqrt(t2 + t3) / np.sqrt(t1)))
    return 0.0 if np.isnan(mad) else float(mad)


def plane_mad(tau):
    """Maximum angular deviation of a plane fit"""
    t1, t2, t3 = np.clip(tau, 0, None)
    with np.errstate(divide='ignore', invalid='ignore'):
        mad = np.degrees(np.arctan(np.sqrt(t3 / t2 + t3 / t1)))
    return 0.0 if np.isnan(mad) else float(mad)


def fit_pca(steps,
            orientation: Optional[Orientation] = None,
            kind='line',
            anchored=False,
            include_origin=False,
            tectonic=False) -> PCAComponent:
    """
    Principal component of the included demagnetization steps.

    Args:
        steps: sequence of DemagnetizationStep in specimen coordinates
        orientation: core/bedding orientation (defaults to a vertical core)
        kind: 'line' uses the major eigenvector, 'plane' the minor one (pole)
        anchored: mirror each point through the origin, forcing the fit
            through it. The MAD of such a fit is not a true MAD.
        include_origin: add the origin as a data point (free fits only)
        tectonic: apply the bedding correction after rotating to geographic

    Returns:
        PCAComponent
    """
    if kind not in MIN_POINTS:
        raise InvalidInput(f"Unknown fit type {kind}, expected 'line' or 'plane'")
    orientation = orientation or Orientation()

    points = []
    labels = []
    for step in steps:
        if not step.include:
            continue
        points.append(step.vector)
        labels.append(step.step)
        if anchored:
            points.append(-step.vector)

    if anchored:
        include_origin = False
    elif include_origin:
        points.append(np.zeros(3))

    n_points = len(points)
    if n_points < MIN_POINTS[kind]:
        # tau2 and tau3 can not be told apart with only two points
        raise InsufficientPoints(MIN_POINTS[kind], n_points, what=f"{kind} fit")

    rotated = arr([_rotate_point(p, orientation, tectonic) for p in points])
    centre_of_mass = rotated.mean(axis=0)
    centred = rotated if anchored else rotated - centre_of_mass

    eig = eigen_decomposition(orientation_matrix(centred))

    # polarity follows the demagnetization trajectory, first minus last
    control = rotated[0] - rotated[-1]
    intensity = float(np.linalg.norm(control))

    if kind == 'line':
        vector = eig.v1
        mad = line_mad(eig.tau)
    else:
        vector = eig.v3
        mad = plane_mad(eig.tau)

    if np.dot(vector, control) <= 0:
        vector = -vector
    direction = to_dir(*vector)

    if kind == 'plane' and direction.inc > 0:
        # planes are reported by their negative pole
        direction = Direction((direction.dec + 180) % 360, -direction.inc)

    log.debug(f'PCA {kind} fit on {len(labels)} steps: {direction.dec:.1f}/{direction.inc:.1f}, MAD {mad:.2f}')
    return PCAComponent(
        dec=direction.dec,
        inc=direction.inc,
        mad=mad,
        kind=kind,
        forced=anchored,
        intensity=intensity,
        centre_of_mass=tuple(float(c) for c in centre_of_mass),
        n_steps=len(labels),
        steps=tuple(labels),
        origin=include_origin,
    )


@dataclass
class GreatCircleFit:
    mean: Direction
    points: List[Direction] = field(default_factory=list)
    n_points: int = 0
    n_circles: int = 0
    n_iterations: int = 0
    converged: bool = True
    k: float = float('nan')
    a95: float = float('nan')
    k_modified: float = float('nan')
    t95: float = float('nan')


def v_close(pole, mean_vector):
    """
    Point on the great circle with the given pole closest to mean_vector
    (McFadden & McElhinny, 1988, eq. 20). Both inputs are unit vectors.
    """
    pole = np.asarray(pole, dtype=float)
    mean_vector = np.asarray(mean_vector, dtype=float)
    tau = np.dot(mean_vector, pole)
    rho = np.sqrt(max(0.0, 1 - tau * tau))
    if rho == 0:
        # mean coincides with the pole, every point on the circle is equally close
        log.warning('Mean vector parallel to great circle pole, picking an arbitrary point')
        axis = np.eye(3)[int(np.argmin(np.abs(pole)))]
        return unit_vector(np.cross(pole, axis))
    return (mean_vector - tau * pole) / rho


def _modified_statistics(n_points, n_circles, R):
    """k, a95 and the McFadden & McElhinny (1988) k and t95 of a combined fit"""
    n_total = n_points + n_circles
    n_prime = max(1.1, n_points + n_circles / 2)

    if n_total - R > 0:
        k = (n_total - 1) / (n_total - R)
        k_modified = (2 * n_points + n_circles - 2) / (2 * (n_total - R))
    else:
        k = k_modified = math.inf

    t95 = math.nan
    if k_modified > 0:
        t95 = np.degrees(np.arccos(np.clip(
            1 - ((n_prime - 1) / k_modified) * (20 ** (1 / (n_prime - 1)) - 1), -1, 1
        )))
    a95 = math.nan
    if n_total > 1 and R > 0:
        a95 = np.degrees(np.arccos(np.clip(
            1 - ((n_total - R) / R) * (20 ** (1 / (n_total - 1)) - 1), -1, 1
        )))
    return float(k), float(a95), float(k_modified), float(t95)


def fit_great_circles(set_points,
                      circle_poles,
                      forced_guess=None,
                      max_iterations=None,
                      tolerance=None,
                      progress=None) -> GreatCircleFit:
    """
    Finds, for each great circle, the point closest to the mean of all set
    points and fitted points, iterating until no fitted point moves more
    than `tolerance` degrees in a sweep.

    Args:
        set_points: (dec, inc) directions fixed during the fit
        circle_poles: (dec, inc) poles of the great circles
        forced_guess: (dec, inc) starting mean, only used without set points.
            It picks which of the two antipodal intersections the fit converges to.
        max_iterations: cap on the number of sweeps, hitting it returns
            converged=False
        tolerance: convergence threshold in degrees
        progress: optional callable(n_iterations, max_change)
    """
    max_iterations = get_setting('great_circles', 'max_iterations', 1000) if max_iterations is None else max_iterations
    tolerance = get_setting('great_circles', 'tolerance', 0.01) if tolerance is None else tolerance

    set_vectors = directions_to_vectors(set_points)
    circles = directions_to_vectors(circle_poles)
    n_points, n_circles = len(set_vectors), len(circles)
    set_sum = set_vectors.sum(axis=0)

    if n_points > 0:
        unit_mean = unit_vector(set_sum)
        if forced_guess is not None:
            log.debug('Set points present, ignoring the forced guess')
    elif forced_guess is not None:
        validate_direction(forced_guess[0], forced_guess[1])
        unit_mean = cart(forced_guess[0], forced_guess[1]).as_array()
    else:
        raise InvalidInput('Great circle fit needs set points or a forced guess direction')

    fitted = arr([v_close(pole, unit_mean) for pole in circles]).reshape(-1, 3)
    mean_vector = set_sum + fitted.sum(axis=0)

    n_iterations = 0
    converged = n_circles == 0
    while not converged and n_iterations < max_iterations:
        n_iterations += 1
        max_change = 0.0
        for idx in range(n_circles):
            mean_vector = mean_vector - fitted[idx]
            norm = np.linalg.norm(mean_vector)
            if norm > 0:
                unit_mean = mean_vector / norm
            new_close = v_close(circles[idx], unit_mean)
            dot = min(1.0, float(np.dot(new_close, fitted[idx])))
            max_change = max(max_change, float(np.degrees(np.arccos(dot))))
            mean_vector = mean_vector + new_close
            fitted[idx] = new_close
        if progress is not None:
            progress(n_iterations, max_change)
        if max_change < tolerance:
            converged = True

    if not converged:
        log.warning(f'Great circle fit did not converge in {max_iterations} sweeps')
    else:
        log.info(f'Great circle solutions fitted in {n_iterations} iteration(s)')

    final = set_sum + fitted.sum(axis=0)
    mean = to_dir(*final)
    k, a95, k_modified, t95 = _modified_statistics(n_points, n_circles, mean.R)
    return GreatCircleFit(
        mean=Direction(mean.dec, mean.inc, mean.R),
        points=[Direction(*to_dir(*point)[:2]) for point in fitted],
        n_points=n_points,
        n_circles=n_circles,
        n_iterations=n_iterations,
        converged=converged,
        k=k,
        a95=a95,
        k_modified=k_modified,
        t95=t95,
    )
