from __future__ import annotations

import pytest

from paleomag_utils.errors import InvalidInput
from paleomag_utils.math_utils.general import Direction
from paleomag_utils.stats.fisher import fisher
from paleomag_utils.utils.io import (
    DirectionRow,
    create_table,
    parse_demagnetization_rows,
    parse_direction_rows,
    vgp_rows,
)


def test_parse_direction_rows_defaults():
    rows = parse_direction_rows([(10, 20), (30, 40, 90, 15), (50, 60, 0, 0, 'X1')])
    assert rows[0] == DirectionRow(10.0, 20.0, 0.0, 0.0, '')
    assert rows[1] == DirectionRow(30.0, 40.0, 90.0, 15.0, '')
    assert rows[2].label == 'X1'


def test_parse_single_direction_row():
    assert parse_direction_rows((10, 20)) == [DirectionRow(10.0, 20.0)]


# Test cases for rejected direction rows
invalid_row_test_cases = [
    pytest.param([(10,)], id="too short"),
    pytest.param([(10, 20, 0, 0, 'a', 'b')], id="too long"),
    pytest.param([('north', 20)], id="non numeric"),
    pytest.param([(10, 95)], id="inclination out of range"),
    pytest.param([(10, float('nan'))], id="nan"),
]


@pytest.mark.parametrize("rows", invalid_row_test_cases)
def test_parse_direction_rows_rejects(rows):
    with pytest.raises(InvalidInput):
        parse_direction_rows(rows)


def test_vgp_rows():
    assert vgp_rows([(120, -45), Direction(10, 80)]) == [(120.0, -45.0, 0, 0, 0), (10.0, 80.0, 0, 0, 0)]


def test_parse_demagnetization_rows():
    steps = parse_demagnetization_rows([('NRM', 1, 2, 3), ('20mT', 0.5, 1, 1.5, False)])
    assert steps[0].step == 'NRM'
    assert steps[0].include
    assert not steps[1].include
    assert (steps[1].x, steps[1].y, steps[1].z) == (0.5, 1.0, 1.5)


@pytest.mark.parametrize("rows", [
    pytest.param([('NRM', 1, 2)], id="missing component"),
    pytest.param([('NRM', 1, 'a', 3)], id="non numeric component"),
])
def test_parse_demagnetization_rows_rejects(rows):
    with pytest.raises(InvalidInput):
        parse_demagnetization_rows(rows)


def test_create_table_from_dicts():
    table = create_table({'SS1': {'N': 10, 'k': 23.456}, 'SS2': {'N': 8, 'k': 5.0}})
    assert table.field_names == ['ID', 'N', 'k']
    assert table.rows == [['SS1', 10, '23.46'], ['SS2', 8, '5.00']]


def test_create_table_sub_columns():
    stats = fisher([(0, 40), (10, 50), (350, 45)])
    table = create_table([stats], cols=['mean'], sub_cols=['dec', 'inc'], ids=['site'], precision=1)
    assert table.field_names == ['ID', 'mean_dec', 'mean_inc']
    assert table.rows[0][0] == 'site'
    assert table.rows[0][1] == f'{stats.mean_dec:.1f}'


def test_create_table_empty():
    table = create_table([])
    assert table.field_names == ['ID']
    assert table.rows == []
