"""
Fisher (1953) statistics for directions and virtual geomagnetic poles,
the Kent (1982) confidence ellipse and Butler (1992) parameters.

Direction inputs are sequences of rows whose first two entries are
(dec, inc) for directions or (lon, lat) for poles; extra entries
(bedding, labels) are ignored.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy import array as arr

from paleomag_utils.errors import InsufficientPoints, InvalidInput
from paleomag_utils.math_utils.eigen import orientation_matrix
from paleomag_utils.math_utils.general import (
    Direction,
    directions_to_vectors,
    paleolatitude,
    to_dir,
)
from paleomag_utils.set_config import log


@dataclass(frozen=True)
class FisherStatistics:
    """Fields shared by direction and pole statistics"""
    N: int
    R: float
    k: float
    a95: float
    mean: Direction


@dataclass(frozen=True)
class DirectionStatistics(FisherStatistics):
    palat: float
    kind = 'dir'

    @property
    def mean_dec(self):
        return self.mean.dec

    @property
    def mean_inc(self):
        return self.mean.inc


@dataclass(frozen=True)
class PoleStatistics(FisherStatistics):
    A95min: float
    A95max: float
    kind = 'vgp'

    @property
    def mean_lon(self):
        return self.mean.dec

    @property
    def mean_lat(self):
        return self.mean.inc

    @property
    def A95(self):
        return self.a95

    @property
    def K(self):
        return self.k


@dataclass(frozen=True)
class KentParameters:
    eta: float
    zeta: float
    z_dec: float
    z_inc: float
    e_dec: float
    e_inc: float


@dataclass(frozen=True)
class ButlerParameters:
    dDx: float
    dIx: float
    min_palat: float
    max_palat: float


def mean_direction(directions) -> Direction:
    """Mean direction of unit vectors; R of the result is the resultant length"""
    vectors = directions_to_vectors(directions)
    if len(vectors) == 0:
        raise InsufficientPoints(1, 0, what="mean direction")
    return to_dir(*vectors.sum(axis=0))


def dispersion(N, R):
    """Precision parameter k = (N - 1) / (N - R), +inf when all vectors coincide"""
    if R >= N:
        return math.inf
    return (N - 1) / (N - R)


def confidence_cone(N, R, confidence=95):
    """
    Half angle (degrees) of the cone of confidence around the mean.
    Lisa Tauxe, 11.9
    """
    if N < 2:
        raise InsufficientPoints(2, N, what="confidence cone")
    if R <= 0:
        raise InvalidInput(f"Resultant length must be positive, received {R}")
    p = 0.01 * (100 - confidence)
    cos_a = 1 - (np.power(1 / p, 1 / (N - 1)) - 1) * (N - R) / R
    return float(np.degrees(np.arccos(np.clip(cos_a, -1.0, 1.0))))


def psv_bounds(N):
    """A95min and A95max envelope for VGP scatter (Deenen et al., 2011)"""
    return 12 * N ** -0.40, 82 * N ** -0.63


def fisher(directions, kind='dir', confidence=95):
    """
    Fisher parameters for a set of directions (kind='dir')
    or poles (kind='vgp').
    """
    if kind not in ('dir', 'vgp'):
        raise InvalidInput(f"Unknown kind {kind}, expected 'dir' or 'vgp'")
    N = len(directions)
    if N < 2:
        raise InsufficientPoints(2, N, what="Fisher statistics")

    resultant = mean_direction(directions)
    R = resultant.R
    k = dispersion(N, R)
    a95 = confidence_cone(N, R, confidence)
    mean = Direction(resultant.dec, resultant.inc)

    if kind == 'dir':
        return DirectionStatistics(N, R, k, a95, mean, paleolatitude(mean.inc))
    A95min, A95max = psv_bounds(N)
    return PoleStatistics(N, R, k, a95, mean, A95min, A95max)


def _lower_hemisphere(direction):
    """Flips axes pointing up (inc < 0) to their antipode"""
    if direction.inc < 0:
        return Direction((direction.dec + 180) % 360, -direction.inc)
    return Direction(direction.dec, direction.inc)


def kent(directions) -> KentParameters:
    """
    Kent (1982) confidence ellipse after the eqarea_ell routine of PmagPy.

    The orientation matrix is rotated into the frame of the mean
    direction, a rotation about that mean diagonalises its upper block
    and the data are projected on the resulting axes (gamma).
    """
    N = len(directions)
    if N < 2:
        raise InsufficientPoints(2, N, what="Kent ellipse")

    mean = mean_direction(directions)
    p_bar = np.radians(mean.dec)
    t_bar = np.radians(90 - mean.inc)

    H = arr([
        [np.cos(t_bar) * np.cos(p_bar), -np.sin(p_bar), np.sin(t_bar) * np.cos(p_bar)],
        [np.cos(t_bar) * np.sin(p_bar), np.cos(p_bar), np.sin(p_bar) * np.sin(t_bar)],
        [-np.sin(t_bar), 0, np.cos(t_bar)],
    ])

    P = directions_to_vectors(directions)
    T = orientation_matrix(P) / N
    B = H.T @ T @ H

    with np.errstate(divide='ignore', invalid='ignore'):
        psi = 0.5 * np.arctan(2 * B[0, 1] / (B[0, 0] - B[1, 1]))
    if np.isnan(psi):
        psi = 0.0

    w = arr([
        [np.cos(psi), -np.sin(psi), 0],
        [np.sin(psi), np.cos(psi), 0],
        [0, 0, 1],
    ])
    gam = H @ w
    xg = P @ gam

    xmu = np.mean(xg[:, 2])
    sigma1 = np.mean(xg[:, 1] ** 2)
    sigma2 = np.mean(xg[:, 0] ** 2)

    if xmu == 0:
        log.warning('Kent ellipse undefined for a zero mean projection, using 90 degree axes')
        zeta = eta = np.pi / 2
    else:
        g = -2 * np.log(0.05) / (N * xmu**2)
        zeta = np.arcsin(np.sqrt(sigma1 * g)) if np.sqrt(sigma1 * g) < 1 else np.pi / 2
        eta = np.arcsin(np.sqrt(sigma2 * g)) if np.sqrt(sigma2 * g) < 1 else np.pi / 2

    z_dir = _lower_hemisphere(to_dir(*gam[:, 1]))
    e_dir = _lower_hemisphere(to_dir(*gam[:, 0]))

    return KentParameters(
        eta=float(np.degrees(eta)),
        zeta=float(np.degrees(zeta)),
        z_dec=z_dir.dec,
        z_inc=z_dir.inc,
        e_dec=e_dir.dec,
        e_inc=e_dir.inc,
    )


def butler(palat, A95, inc) -> ButlerParameters:
    """
    Errors on declination and inclination from the A95 of the mean pole
    (Butler, 1992) and the paleolatitude range implied by dIx.
    Near the poles the declination error is ill-defined and capped at 90.
    """
    A95_r = np.radians(A95)
    palat_r = np.radians(palat)
    inc_r = np.radians(inc)

    dDx = np.degrees(np.arcsin(np.clip(np.sin(A95_r) / np.cos(palat_r), -1.0, 1.0)))
    dIx = np.degrees(2 * A95_r / (1 + 3 * np.sin(palat_r) ** 2))

    max_palat = np.degrees(np.arctan(0.5 * np.tan(inc_r + np.radians(dIx))))
    min_palat = np.degrees(np.arctan(0.5 * np.tan(inc_r - np.radians(dIx))))
    return ButlerParameters(float(dDx), float(dIx), float(min_palat), float(max_palat))
