from __future__ import annotations

import numpy as np
import pytest

from paleomag_utils.errors import InsufficientPoints, InvalidInput
from paleomag_utils.math_utils.general import cart
from paleomag_utils.stats.ctmd import (
    CLASSIFICATIONS,
    CTMDSample,
    WatsonDistribution,
    bootstrap_coordinates,
    cap_kappa,
    classify,
    find_probability,
    find_watson_param,
    pairwise_ctmd,
    resmonte,
    sample_watson,
    v_make,
)
from paleomag_utils.stats.sampling import fisher_sample


def population(N, kappa, dec, inc):
    """Sufficient statistics of a population with the expected R for kappa."""
    R = N - (N - 1) / kappa
    return CTMDSample(N, R, kappa, cart(dec, inc))


@pytest.fixture
def distribution():
    """A small sorted null distribution."""
    return WatsonDistribution(np.array([1.0, 2.0, 3.0, 4.0, 5.0]), v95=5.0, v99=5.0)


def test_sample_from_directions():
    sample = CTMDSample.from_directions([(0, 0), (90, 0)])
    assert sample.N == 2
    assert sample.R == pytest.approx(np.sqrt(2))
    assert sample.k == pytest.approx(1 / (2 - np.sqrt(2)))
    np.testing.assert_array_almost_equal(sample.mean, cart(45, 0))


def test_single_direction_sample_has_zero_kappa():
    sample = CTMDSample.from_directions([(10, 20)])
    assert sample.k == 0


def test_empty_sample():
    with pytest.raises(InsufficientPoints):
        CTMDSample.from_directions([])


def test_watson_v_of_identical_means():
    one = population(20, 30, 0, 50)
    assert find_watson_param([one, one]) == pytest.approx(0, abs=1e-9)


def test_watson_v_grows_with_separation():
    R, K = (19.0, 19.0), (20.0, 20.0)
    values = [v_make(R, K, angle) for angle in (0, 5, 10, 20)]
    assert values[0] == pytest.approx(0, abs=1e-9)
    assert values == sorted(values)


# Test cases for find_probability
probability_test_cases = [
    pytest.param(0.5, 1.0, id="below all simulated"),
    pytest.param(1.0, 1.0, id="equal to the smallest"),
    pytest.param(2.5, 0.5, id="between ranks"),
    pytest.param(3.0, 0.5, id="equal to a rank"),
    pytest.param(5.0, 0.0, id="equal to the largest"),
    pytest.param(6.0, 0.0, id="above all simulated"),
]


@pytest.mark.parametrize("v,expected", probability_test_cases)
def test_find_probability(distribution, v, expected):
    assert find_probability(v, distribution) == pytest.approx(expected)
    assert distribution.probability(v) == pytest.approx(expected)


def test_sample_watson():
    result = sample_watson((20, 30), (40, 60), n_simulations=1000, rng=np.random.default_rng(0))
    assert len(result.parameters) == 1000
    assert np.all(np.diff(result.parameters) >= 0)
    assert result.v95 == result.parameters[950]
    assert result.v99 == result.parameters[990]
    assert 0 < result.v95 <= result.v99


def test_sample_watson_is_reproducible():
    first = sample_watson((10, 10), (30, 30), n_simulations=200, rng=np.random.default_rng(4))
    second = sample_watson((10, 10), (30, 30), n_simulations=200, rng=np.random.default_rng(4))
    np.testing.assert_array_equal(first.parameters, second.parameters)


def test_resmonte_zero_critical_value():
    assert resmonte(0, (10, 10), (20, 20)) == pytest.approx(0)


def test_resmonte_unresolvable():
    # the critical resultant vanishes, A = -1
    assert resmonte(800, (10, 10), (20, 20)) == 0


def test_resmonte_symmetric_weights():
    # Rwc = 195, A = (195^2 - 2 * 100^2) / (2 * 100^2)
    expected = np.degrees(np.arccos((195 ** 2 - 2 * 100 ** 2) / (2 * 100 ** 2)))
    assert resmonte(10, (10, 10), (10, 10)) == pytest.approx(expected)


def test_critical_angle_reproduces_critical_value():
    R, K = (18.0, 27.0), (25.0, 40.0)
    critical = resmonte(7.5, R, K)
    assert v_make(R, K, critical) == pytest.approx(7.5)


def test_classify_identical_means():
    one = population(50, 50, 0, 50)
    two = population(50, 50, 0, 50)
    result = classify(one, two, rng=np.random.default_rng(0))
    assert result.classification == 'A'
    assert result.observed_angle == pytest.approx(0, abs=1e-6)
    assert result.probability == 1.0
    assert result.critical_angle < 5
    assert not result.flipped


def test_classify_perpendicular_means():
    one = population(20, 50, 0, 0)
    two = population(20, 50, 90, 0)
    result = classify(one, two, rng=np.random.default_rng(0))
    assert result.classification == 'Negative'
    assert result.observed_angle == pytest.approx(90)
    assert result.probability <= 0.05


def test_classify_reversed_means():
    one = population(50, 50, 0, 50)
    two = population(50, 50, 180, -50)
    result = classify(one, two, rng=np.random.default_rng(1))
    assert result.flipped
    assert result.observed_angle == pytest.approx(0, abs=1e-6)
    assert result.classification == 'A'


def test_classify_small_populations_are_indeterminate():
    one = population(3, 5, 0, 50)
    two = population(3, 5, 0, 50)
    result = classify(one, two, n_simulations=500, rng=np.random.default_rng(0))
    assert result.classification == 'Indeterminate'
    assert result.classification in CLASSIFICATIONS


def test_classify_needs_three_synthetic_angles():
    one = population(10, 20, 0, 50)
    with pytest.raises(InvalidInput):
        classify(one, one, synthetic_angles=[5, 10])


@pytest.fixture
def sites():
    """Three named populations, two sharing a mean."""
    return {
        'SS1': population(30, 40, 0, 50),
        'SS2': population(30, 40, 2, 51),
        'SS3': population(30, 40, 90, 10),
    }


def test_pairwise_ctmd(sites):
    calls = []
    results = pairwise_ctmd(sites, seed=12, n_simulations=500,
                            progress=lambda done, total: calls.append((done, total)))
    assert set(results) == {('SS1', 'SS2'), ('SS1', 'SS3'), ('SS2', 'SS3')}
    assert results[('SS1', 'SS3')].classification == 'Negative'
    assert calls[-1] == (3, 3)


def test_pairwise_ctmd_is_reproducible(sites):
    first = pairwise_ctmd(sites, seed=3, n_simulations=300)
    second = pairwise_ctmd(sites, seed=3, n_simulations=300)
    assert first == second


def test_bootstrap_coordinates_same_population():
    rng = np.random.default_rng(5)
    dirs_one = fisher_sample(30, 40, 0, 50, rng=rng)
    dirs_two = fisher_sample(30, 40, 0, 50, rng=rng)
    result = bootstrap_coordinates(dirs_one, dirs_two, n_bootstraps=200, rng=rng)
    assert result.one.shape == (200, 3)
    assert np.all(result.bounds_one[0] <= result.bounds_one[1])
    assert result.overlapping


def test_bootstrap_coordinates_distinct_populations():
    rng = np.random.default_rng(6)
    dirs_one = fisher_sample(30, 40, 0, 50, rng=rng)
    dirs_two = fisher_sample(30, 40, 90, 0, rng=rng)
    result = bootstrap_coordinates(dirs_one, dirs_two, n_bootstraps=200, rng=rng)
    assert not result.overlapping


def test_bootstrap_coordinates_flip_reversals():
    rng = np.random.default_rng(7)
    dirs_one = fisher_sample(30, 40, 0, 50, rng=rng)
    dirs_two = fisher_sample(30, 40, 180, -50, rng=rng)
    result = bootstrap_coordinates(dirs_one, dirs_two, n_bootstraps=200, rng=rng)
    assert np.all(result.two[:, 2] > 0)
    assert result.overlapping


# Test cases for cap_kappa
cap_kappa_test_cases = [
    pytest.param(25.0, 25.0, id="finite"),
    pytest.param(np.inf, 1e6, id="identical directions"),
    pytest.param(5e15, 1e6, id="rounding of R == N"),
]


@pytest.mark.parametrize("k,expected", cap_kappa_test_cases)
def test_cap_kappa(k, expected):
    assert cap_kappa(k, max_kappa=1e6) == expected


def test_sample_watson_with_infinite_kappa():
    result = sample_watson((10, 10), (np.inf, np.inf), n_simulations=500, rng=np.random.default_rng(1))
    assert np.all(np.isfinite(result.parameters))
    assert np.isfinite(result.v95)


def test_classify_zero_scatter_distinct_means():
    one = CTMDSample.from_directions([(10, 40)] * 10)
    two = CTMDSample.from_directions([(100, 40)] * 10)
    result = classify(one, two, n_simulations=500, rng=np.random.default_rng(1))
    assert result.classification == 'Negative'
    assert result.observed_angle == pytest.approx(65.6, abs=0.1)
    assert np.isfinite(result.critical_angle)
    assert np.isfinite(result.v95)
    assert result.probability == 0.0


def test_classify_zero_scatter_shared_mean():
    one = CTMDSample.from_directions([(10, 40)] * 10)
    two = CTMDSample.from_directions([(10, 40)] * 10)
    result = classify(one, two, n_simulations=500, rng=np.random.default_rng(1))
    assert result.classification == 'A'
    assert 0 <= result.critical_angle < 1
    assert result.probability == 1.0


def test_classify_honours_zero_alpha():
    # nothing is significant at alpha 0 unless V exceeds every simulated value
    one = population(20, 50, 0, 0)
    two = population(20, 50, 90, 0)
    result = classify(one, two, n_simulations=300, alpha=0, rng=np.random.default_rng(0))
    assert result.probability == 0.0
    assert result.classification == 'Negative'
