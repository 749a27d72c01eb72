"""Fisher statistics, cutoffs and Monte Carlo significance tests."""

__version__ = "0.1.0"

from .ctmd import (
    CTMDResult,
    CTMDSample,
    bootstrap_coordinates,
    classify,
    pairwise_ctmd,
    sample_watson,
)
from .cutoff import CutoffResult, apply_cutoff
from .fisher import butler, fisher, kent, mean_direction
from .ei import EIResult, UnflatteningCurve, inclination_shallowing, tk03_elongation, unflatten_directions
from .foldtest import FoldtestResult, foldtest
from .sampling import fisher_sample, pseudo

__all__ = [
    # ctmd
    "CTMDResult",
    "CTMDSample",
    "bootstrap_coordinates",
    "classify",
    "pairwise_ctmd",
    "sample_watson",
    # cutoff
    "CutoffResult",
    "apply_cutoff",
    # fisher
    "butler",
    "fisher",
    "kent",
    "mean_direction",
    # ei
    "EIResult",
    "UnflatteningCurve",
    "inclination_shallowing",
    "tk03_elongation",
    "unflatten_directions",
    # foldtest
    "FoldtestResult",
    "foldtest",
    # sampling
    "fisher_sample",
    "pseudo",
]
