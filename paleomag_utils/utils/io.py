"""
Conversion between the plain tuple contract used by callers and the
records of this package.

    direction row  (dec, inc, bedding strike, bedding dip, label)
    VGP row        (lon, lat, 0, 0, 0)
    demag row      (step, x, y, z[, include])
"""
from dataclasses import asdict, is_dataclass
from itertools import product
from typing import NamedTuple

from prettytable import PrettyTable

from paleomag_utils.errors import InvalidInput
from paleomag_utils.math_utils.fit import DemagnetizationStep
from paleomag_utils.math_utils.general import validate_direction
from paleomag_utils.set_config import log
from paleomag_utils.utils.general import is_number, list_if, rows_if


class DirectionRow(NamedTuple):
    dec: float
    inc: float
    strike: float = 0.0
    dip: float = 0.0
    label: str = ''


def parse_direction_rows(rows):
    """
    Validates direction rows, filling in a flat bedding and an empty label
    when those are missing. Raises InvalidInput on the first bad row.
    """
    parsed = []
    for idx, row in enumerate(rows_if(rows)):
        row = list_if(row)
        if len(row) < 2 or len(row) > 5:
            raise InvalidInput(f"Row {idx} has {len(row)} entries, expected 2 to 5")
        if not all(is_number(value) for value in row[:4]):
            raise InvalidInput(f"Row {idx} has non numeric values: {row}")
        validate_direction(row[0], row[1])
        parsed.append(DirectionRow(*[float(v) for v in row[:4]], *[str(v) for v in row[4:]]))
    return parsed


def vgp_rows(vgps):
    """Poles as rows of the direction contract, (lon, lat, 0, 0, 0)"""
    return [(float(vgp[0]), float(vgp[1]), 0, 0, 0) for vgp in vgps]


def parse_demagnetization_rows(rows):
    """(step, x, y, z[, include]) rows to DemagnetizationStep"""
    steps = []
    for idx, row in enumerate(rows):
        if len(row) not in (4, 5):
            raise InvalidInput(f"Demagnetization row {idx} has {len(row)} entries, expected 4 or 5")
        if not all(is_number(value) for value in row[1:4]):
            raise InvalidInput(f"Demagnetization row {idx} has non numeric components: {row}")
        include = bool(row[4]) if len(row) == 5 else True
        steps.append(DemagnetizationStep(float(row[1]), float(row[2]), float(row[3]),
                                         step=str(row[0]), include=include))
    return steps


def _as_dict(record):
    if is_dataclass(record):
        return asdict(record)
    if hasattr(record, '_asdict'):
        return record._asdict()
    return dict(record)


def _format(value, precision):
    if isinstance(value, float):
        return f'{value:.{precision}f}'
    return value


def create_table(results,
                 cols=None,
                 sub_cols=None,
                 ids=None,
                 precision=2):
    """
    Console summary of result records (dataclasses, named tuples or dicts).

    Args:
        results: dict of id -> record, or a list of records
        cols: record fields to show, defaults to all fields of the first record
        sub_cols: fields of nested records, shown as <col>_<sub_col>
        ids: row ids when results is a list, defaults to the index
        precision: decimals for floats
    """
    if isinstance(results, dict):
        ids = list(results.keys())
        records = [_as_dict(rec) for rec in results.values()]
    else:
        records = [_as_dict(rec) for rec in list_if(results)]
        ids = list_if(ids) if ids is not None else list(range(len(records)))
    if len(records) == 0:
        log.warning('No results to tabulate')
        return PrettyTable(['ID'])

    cols = list_if(cols) if cols is not None else list(records[0].keys())
    if sub_cols is not None:
        col_pairs = list(product(cols, list_if(sub_cols)))
        col_names = [f'{col}_{sub_col}' for col, sub_col in col_pairs]
    else:
        col_pairs = [(col, None) for col in cols]
        col_names = cols

    table = PrettyTable(['ID'] + col_names)
    for row_id, record in zip(ids, records):
        row = []
        for col, sub_col in col_pairs:
            value = record[col]
            if sub_col is not None:
                value = _as_dict(value)[sub_col]
            row.append(_format(value, precision))
        table.add_row([str(row_id)] + row)
    log.info(f'\n{table}')
    return table
