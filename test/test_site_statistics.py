from __future__ import annotations

import numpy as np
import pytest

from paleomag_utils import process_site
from paleomag_utils.errors import InvalidInput
from paleomag_utils.math_utils.general import angle, correct_bedding
from paleomag_utils.stats.sampling import fisher_sample


@pytest.fixture
def site_rows():
    """Twenty well grouped directions with flat bedding."""
    directions = fisher_sample(20, 100, 0, 50, rng=np.random.default_rng(11))
    return [(dec, inc, 0, 0, f'S{idx}') for idx, (dec, inc) in enumerate(directions)]


def test_process_site_rejects_outlier(site_rows):
    rows = site_rows + [(90.0, 0.0, 0, 0, 'outlier')]
    result = process_site(rows, cutoff='45', name='SS1')
    geographic = result.geographic
    assert result.name == 'SS1'
    assert geographic.Ns == 21
    assert geographic.directions.N == 20
    assert geographic.cut == 45
    assert geographic.cutoff.rejected_directions[0][4] == 'outlier'
    assert len(geographic.rotated_accepted) == 20
    assert len(geographic.rotated_rejected) == 1
    assert geographic.S == pytest.approx(geographic.cutoff.asd)


def test_flat_bedding_frames_agree(site_rows):
    result = process_site(site_rows, cutoff='vandamme')
    geographic, tectonic = result.geographic.directions, result.tectonic.directions
    assert angle(geographic.mean_dec, geographic.mean_inc, tectonic.mean_dec, tectonic.mean_inc) < 1e-6
    assert geographic.k == pytest.approx(tectonic.k)


def test_dipping_bedding_rotates_mean(site_rows):
    rows = [(dec, inc, 0, 30, label) for dec, inc, _, _, label in site_rows]
    result = process_site(rows, cutoff='none')
    geographic = result.geographic.directions
    expected = correct_bedding(0, 30, (geographic.mean_dec, geographic.mean_inc))
    tectonic = result.tectonic.directions
    assert angle(tectonic.mean_dec, tectonic.mean_inc, expected.dec, expected.inc) < 1e-6
    assert tectonic.k == pytest.approx(geographic.k)


def test_rotated_vgps_centre_on_pole(site_rows):
    result = process_site(site_rows, site_lat=45, site_lon=10)
    rotated = result.geographic.rotated_accepted
    mean_lat = np.degrees(np.arcsin(np.mean([np.sin(np.radians(vgp[1])) for vgp in rotated])))
    assert mean_lat > 70
    assert result.geographic.butler.dDx >= 0


def test_process_site_rejects_bad_rows(site_rows):
    with pytest.raises(InvalidInput):
        process_site(site_rows + [(400, 10)])
