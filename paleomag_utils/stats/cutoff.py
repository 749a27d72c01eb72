"""
Iterative rejection of outlying VGPs.

    none      keep everything
    45        reject VGPs further than 45 degrees from the mean VGP
    vandamme  adaptive cutoff A = 1.8 * ASD + 5 (Vandamme, 1994)

Each pass rejects only the single VGP furthest from the current mean
(first one in scan order on exact ties) together with its direction,
then recomputes the mean.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import numpy as np

from paleomag_utils.errors import InsufficientPoints, InvalidInput
from paleomag_utils.math_utils.general import angle, validate_directions
from paleomag_utils.set_config import get_setting, log
from paleomag_utils.stats.fisher import mean_direction

CUTOFF_MODES = ('none', '45', 'vandamme')
_ALIASES = {'fixed45': '45', 45: '45', None: 'none'}


@dataclass
class CutoffResult:
    accepted_directions: List[tuple]
    accepted_vgps: List[tuple]
    rejected_directions: List[tuple] = field(default_factory=list)
    rejected_vgps: List[tuple] = field(default_factory=list)
    cut: float = 0.0
    asd: float = 0.0
    n_iterations: int = 0
    converged: bool = True

    @property
    def n_accepted(self):
        return len(self.accepted_vgps)

    @property
    def n_total(self):
        return len(self.accepted_vgps) + len(self.rejected_vgps)


def normalize_mode(mode):
    mode = _ALIASES.get(mode, mode)
    if mode not in CUTOFF_MODES:
        raise InvalidInput(f"Unknown cutoff {mode}, expected one of {CUTOFF_MODES}")
    return mode


def scatter(vgps, mean_pole):
    """
    Angular distances of each VGP to the mean pole.
    Returns (angles, index of the first maximum, ASD).
    """
    angles = np.array([angle(mean_pole[0], mean_pole[1], vgp[0], vgp[1]) for vgp in vgps])
    max_idx = int(np.argmax(angles))
    asd = float(np.sqrt(np.sum(angles**2) / (len(vgps) - 1)))
    return angles, max_idx, asd


def apply_cutoff(directions, vgps, mode='45', max_iterations=None) -> CutoffResult:
    """
    Applies the cutoff to paired directions and VGPs.
    Inputs are copied; the caller's sequences are never modified.
    """
    mode = normalize_mode(mode)
    if len(directions) != len(vgps):
        raise InvalidInput(f"Got {len(directions)} directions but {len(vgps)} VGPs")
    if len(vgps) < 2:
        raise InsufficientPoints(2, len(vgps), what="cutoff")
    validate_directions(directions)
    validate_directions(vgps)
    max_iterations = get_setting('cutoff', 'max_iterations', 10000) if max_iterations is None else max_iterations

    accepted_dirs = [tuple(d) for d in directions]
    accepted_vgps = [tuple(v) for v in vgps]
    rejected_dirs, rejected_vgps = [], []

    n_iterations = 0
    cut = 0.0
    asd = 0.0
    converged = True
    while True:
        n_iterations += 1
        mean_pole = mean_direction(accepted_vgps)
        angles, max_idx, asd = scatter(accepted_vgps, mean_pole)
        max_angle = angles[max_idx]
        A = 1.8 * asd + 5

        if mode == 'none':
            cut = 0.0
            break
        if mode == 'vandamme' and max_angle < A:
            cut = A
            break
        if mode == '45' and max_angle <= 45:
            cut = 45.0
            break

        if len(accepted_vgps) <= 2:
            # two points are always equidistant from their mean
            log.warning(f'Cutoff {mode} stopped with {len(accepted_vgps)} VGPs remaining')
            cut = A if mode == 'vandamme' else 45.0
            break
        if n_iterations >= max_iterations:
            log.warning(f'Cutoff {mode} did not converge in {max_iterations} iterations')
            cut = A if mode == 'vandamme' else 45.0
            converged = False
            break

        log.debug(f'Rejecting VGP {max_idx} at {max_angle:.2f} degrees from the mean')
        rejected_vgps.append(accepted_vgps.pop(max_idx))
        rejected_dirs.append(accepted_dirs.pop(max_idx))

    log.info(f'Cutoff {mode}: accepted {len(accepted_vgps)}, rejected {len(rejected_vgps)}')
    return CutoffResult(
        accepted_directions=accepted_dirs,
        accepted_vgps=accepted_vgps,
        rejected_directions=rejected_dirs,
        rejected_vgps=rejected_vgps,
        cut=float(cut),
        asd=asd,
        n_iterations=n_iterations,
        converged=converged,
    )
