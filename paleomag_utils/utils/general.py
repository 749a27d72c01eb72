import numbers

import numpy as np


def list_if(x):
    if isinstance(x, list):
        return x
    if isinstance(x, tuple):
        return list(x)
    else:
        return [x]


def rows_if(x):
    """Wraps a single (dec, inc, ...) row into a list of rows"""
    if isinstance(x, np.ndarray):
        return [tuple(row) for row in np.atleast_2d(x)]
    x = list_if(x)
    if len(x) > 0 and isinstance(x[0], numbers.Number):
        return [tuple(x)]
    return x


def is_number(value):
    return isinstance(value, numbers.Number) and not isinstance(value, bool) and np.isfinite(value)
