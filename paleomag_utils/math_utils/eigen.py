"""
Eigen analysis of orientation matrices.

`eigenvalues` is the closed-form solution of O.K. Smith (1961) for symmetric
3x3 matrices. It only returns eigenvalues and is what the fold test bootstraps call.
`eigen_decomposition` also returns the matched eigenvectors and is what
PCA and the Kent ellipse use.
"""
from __future__ import annotations

from typing import NamedTuple

import numpy as np
import scipy.linalg as spl
from numpy import array as arr

from paleomag_utils.math_utils.general import directions_to_vectors
from paleomag_utils.set_config import log


class EigenResult(NamedTuple):
    tau: np.ndarray  # normalised eigenvalues, tau1 >= tau2 >= tau3
    v1: np.ndarray
    v2: np.ndarray
    v3: np.ndarray

    @property
    def vectors(self):
        """Eigenvectors as columns, in the order of tau"""
        return np.column_stack([self.v1, self.v2, self.v3])


def orientation_matrix(vectors):
    """T = sum of the outer products of the (N, 3) vectors"""
    vectors = np.asarray(vectors, dtype=float).reshape(-1, 3)
    return vectors.T @ vectors


def eigenvalues(T):
    """
    Normalised eigenvalues (tau1, tau2, tau3) of a symmetric 3x3 matrix.
    r = det(B)/2 is clamped to [-1, 1] before the arccos.
    """
    T = np.asarray(T, dtype=float)
    m = np.trace(T) / 3
    shifted = T - m * np.eye(3)
    p = np.sqrt(np.sum(shifted**2) / 6)

    if p == 0:
        # Multiple of the identity, all three eigenvalues equal m
        eigs = arr([m, m, m])
    else:
        B = shifted / p
        r = 0.5 * spl.det(B)
        if r <= -1:
            phi = np.pi / 3
        elif r >= 1:
            phi = 0.0
        else:
            phi = np.arccos(r) / 3
        eig1 = m + 2 * p * np.cos(phi)
        eig3 = m + 2 * p * np.cos(phi + (2 * np.pi / 3))
        eig2 = 3 * m - eig1 - eig3
        eigs = arr([eig1, eig2, eig3])

    total = np.sum(eigs)
    if total == 0:
        log.warning('Orientation matrix has zero trace, eigenvalues left unnormalised')
        return eigs
    return eigs / total


def sort_eigen(values, vectors):
    """
    Orders eigenvalues high to low and permutes the eigenvector
    columns to match. Equal eigenvalues keep their original order.
    """
    values = np.asarray(values, dtype=float)
    vectors = np.asarray(vectors, dtype=float)
    order = sorted(range(len(values)), key=lambda idx: -values[idx])
    tau = values[order]
    sorted_vectors = vectors[:, order]
    return EigenResult(
        tau,
        sorted_vectors[:, 0].copy(),
        sorted_vectors[:, 1].copy(),
        sorted_vectors[:, 2].copy(),
    )


def eigen_decomposition(T, normalize=True) -> EigenResult:
    """Full symmetric decomposition, eigenvalues normalised by their sum"""
    T = np.asarray(T, dtype=float)
    values, vectors = spl.eigh(T)
    if normalize:
        total = np.sum(values)
        if total != 0:
            values = values / total
    return sort_eigen(values, vectors)


def direction_eigenvalues(directions):
    """Normalised eigenvalues of the orientation matrix of (dec, inc) rows"""
    return eigenvalues(orientation_matrix(directions_to_vectors(directions)))
