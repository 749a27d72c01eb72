"""Exceptions raised for input that cannot be processed.

Numeric degeneracies (R == N, |r| > 1 in the eigenvalue solution, an
unresolvable critical angle) are handled with sentinels and clamps instead,
and non-convergence is reported on the result records.
"""


class InvalidInput(ValueError):
    """Direction, pole or option outside its declared domain."""


class InsufficientPoints(InvalidInput):
    """Fewer points than the requested fit or statistic needs."""

    def __init__(self, required, received, what="fit"):
        self.required = required
        self.received = received
        super().__init__(
            f"{what} requires at least {required} points, received {received}"
        )


class DegenerateVector(ValueError):
    """A direction was requested for a vector of zero length."""
