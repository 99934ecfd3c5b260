import sys

sys.path.append("./python")
import pytest

import ndview as nd
from ndview.backend_ndarray.pattern import parse_transpose_pattern, split_pattern


@pytest.mark.parametrize(
    "pattern,ndim,expected",
    [
        ("ijkl->ikjl", 4, (0, 2, 1, 3)),
        ("ijk->jki", 3, (2, 0, 1)),
        ("ij->ji", 2, (1, 0)),
        (" ab -> ba ", 2, (1, 0)),
        ("BHWC->BCHW", 4, (0, 2, 3, 1)),
        ("a->a", 1, (0,)),
        ("->", 0, ()),
    ],
)
def test_parse_transpose_pattern(pattern, ndim, expected):
    assert parse_transpose_pattern(pattern, ndim) == expected


def test_split_pattern():
    assert split_pattern("ijk -> kji") == ("ijk", "kji")
    assert split_pattern("->") == ("", "")
    with pytest.raises(nd.InvalidTransposePattern):
        split_pattern("ijk")
    with pytest.raises(TypeError):
        split_pattern(None)


@pytest.mark.parametrize(
    "pattern,ndim",
    [
        ("ijkl->ikl", 4),
        ("ijk->kj", 3),
        ("ij->ji", 3),
        ("i j->ji", 2),
        ("i_->_i", 2),
        ("ij->jk", 2),
        ("ii->ii", 2),
        ("ij->ii", 2),
        ("ij", 2),
    ],
)
def test_bad_patterns(pattern, ndim):
    with pytest.raises(nd.InvalidTransposePattern):
        parse_transpose_pattern(pattern, ndim)


def test_pattern_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_transpose_pattern("ij->j", 2)
