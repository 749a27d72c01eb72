"""
Site level processing: directions -> VGPs -> cutoff -> Fisher, Kent
and Butler parameters, in geographic and in tectonic coordinates.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from paleomag_utils.math_utils.general import Direction, correct_bedding, poles, rotate_to_pole
from paleomag_utils.set_config import log
from paleomag_utils.stats.cutoff import CutoffResult, apply_cutoff
from paleomag_utils.stats.fisher import (
    ButlerParameters,
    DirectionStatistics,
    KentParameters,
    PoleStatistics,
    butler,
    fisher,
    kent,
)
from paleomag_utils.utils.io import DirectionRow, parse_direction_rows, vgp_rows


@dataclass
class FrameStatistics:
    cutoff: CutoffResult
    directions: DirectionStatistics
    vgps: PoleStatistics
    kent: KentParameters
    butler: ButlerParameters
    rotated_accepted: List[Direction]
    rotated_rejected: List[Direction]

    @property
    def S(self):
        """Angular standard deviation of the accepted VGPs"""
        return self.cutoff.asd

    @property
    def Ns(self):
        return self.cutoff.n_total

    @property
    def cut(self):
        return self.cutoff.cut


@dataclass
class SiteResult:
    name: str
    site_lat: float
    site_lon: float
    geographic: FrameStatistics
    tectonic: FrameStatistics


def tectonic_rows(rows: List[DirectionRow]) -> List[DirectionRow]:
    """Bedding corrected copies of direction rows"""
    corrected = []
    for row in rows:
        direction = correct_bedding(row.strike, row.dip, (row.dec, row.inc))
        corrected.append(DirectionRow(direction.dec, direction.inc, row.strike, row.dip, row.label))
    return corrected


def frame_statistics(rows, cutoff='45', site_lat=0.0, site_lon=0.0) -> FrameStatistics:
    vgps = vgp_rows([poles(site_lat, site_lon, row) for row in rows])
    result = apply_cutoff(rows, vgps, cutoff)

    dir_stats = fisher(result.accepted_directions, 'dir')
    vgp_stats = fisher(result.accepted_vgps, 'vgp')
    kent_params = kent(result.accepted_directions)
    butler_params = butler(dir_stats.palat, vgp_stats.A95, dir_stats.mean_inc)

    # VGPs relative to their mean, the mean pole ends up at the geographic pole
    def rotate(vgp):
        return rotate_to_pole(vgp_stats.mean_lon, vgp_stats.mean_lat, vgp)

    return FrameStatistics(
        cutoff=result,
        directions=dir_stats,
        vgps=vgp_stats,
        kent=kent_params,
        butler=butler_params,
        rotated_accepted=[rotate(vgp) for vgp in result.accepted_vgps],
        rotated_rejected=[rotate(vgp) for vgp in result.rejected_vgps],
    )


def process_site(rows, cutoff='45', site_lat=0.0, site_lon=0.0, name='') -> SiteResult:
    """
    Statistics of one site from rows of (dec, inc, bedding strike, bedding dip, label).

    Args:
        rows: direction rows in geographic coordinates
        cutoff: 'none', '45' or 'vandamme'
        site_lat, site_lon: site location used for the VGPs
        name: site name, carried into the result
    """
    parsed = parse_direction_rows(rows)
    log.info(f'Processing site {name} with {len(parsed)} directions, cutoff {cutoff}')
    geographic = frame_statistics(parsed, cutoff, site_lat, site_lon)
    tectonic = frame_statistics(tectonic_rows(parsed), cutoff, site_lat, site_lon)
    return SiteResult(name, site_lat, site_lon, geographic, tectonic)
