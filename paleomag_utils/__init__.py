"""Directional statistics for paleomagnetic data.

Fisher and Kent statistics, VGP cutoffs, principal component and great
circle fitting of demagnetization data, and Monte Carlo tests for a
common true mean direction, for folding and for inclination shallowing.
"""

__version__ = "0.1.0"

from .errors import DegenerateVector, InsufficientPoints, InvalidInput
from .site_statistics import SiteResult, process_site

__all__ = [
    # errors
    "InvalidInput",
    "InsufficientPoints",
    "DegenerateVector",
    # site_statistics
    "SiteResult",
    "process_site",
]
