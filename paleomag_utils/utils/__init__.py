"""General utilities for row parsing, tables and parallel execution."""

__version__ = "0.1.0"

from .algo import run_parallel, spawn_seeds
from .general import list_if, rows_if
from .io import (
    DirectionRow,
    create_table,
    parse_demagnetization_rows,
    parse_direction_rows,
    vgp_rows,
)

__all__ = [
    # algo
    "run_parallel",
    "spawn_seeds",
    # general
    "list_if",
    "rows_if",
    # io
    "DirectionRow",
    "create_table",
    "parse_demagnetization_rows",
    "parse_direction_rows",
    "vgp_rows",
]
