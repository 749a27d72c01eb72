"""Random sampling of Fisher distributed directions and bootstrap resampling."""
from __future__ import annotations

import numpy as np
from numpy import array as arr


def get_rng(seed=None) -> np.random.Generator:
    """Generator from None, an int, a SeedSequence or an existing Generator"""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def pseudo_directions(n, kappa, rng=None):
    """
    Draws n directions from a Fisher distribution with concentration kappa
    centred on inclination 90 (straight down).
    Colatitudes come from the inverse of the Fisher CDF, declinations are uniform.

    Returns an (n, 2) array of (dec, inc).
    """
    rng = get_rng(rng)
    dec = 360 * rng.random(n)
    u = rng.random(n)
    if kappa == np.inf:
        inc = np.full(n, 90.0)
    elif kappa <= 0:
        # uniform on the sphere
        inc = np.degrees(np.arcsin(2 * u - 1))
    else:
        L = np.exp(-2 * kappa)
        a = u * (1 - L) + L
        fac = np.sqrt(-np.log(a) / (2 * kappa))
        inc = 90 - np.degrees(2 * np.arcsin(np.clip(fac, 0, 1)))
    return np.column_stack([dec, inc])


def pseudo_vectors(n, kappa, rng=None):
    """Unit vectors (n, 3) of Fisher distributed directions around +z"""
    samples = pseudo_directions(n, kappa, rng)
    dec = np.radians(samples[:, 0])
    inc = np.radians(samples[:, 1])
    return np.column_stack([
        np.cos(dec) * np.cos(inc),
        np.sin(dec) * np.cos(inc),
        np.sin(inc),
    ])


def fisher_sample(n, kappa, mean_dec=0.0, mean_inc=90.0, rng=None):
    """
    Draws n Fisher distributed directions around (mean_dec, mean_inc).
    Samples around the vertical are tilted to the requested mean inclination
    and turned to the requested declination.
    """
    vectors = pseudo_vectors(n, kappa, rng)
    phi = np.radians(90 - mean_inc)
    tilt = arr([
        [np.cos(phi), 0, np.sin(phi)],
        [0, 1, 0],
        [-np.sin(phi), 0, np.cos(phi)],
    ])
    rotated = vectors @ tilt.T
    dec = (np.degrees(np.arctan2(rotated[:, 1], rotated[:, 0])) + mean_dec + 360) % 360
    inc = np.degrees(np.arcsin(np.clip(rotated[:, 2], -1, 1)))
    return np.column_stack([dec, inc])


def pseudo(data, rng=None):
    """Bootstrap resample: len(data) rows drawn with replacement"""
    rng = get_rng(rng)
    idxs = rng.integers(0, len(data), size=len(data))
    return [data[idx] for idx in idxs]
