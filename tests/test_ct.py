import pytest

from go2proto.ct import (
    STRING_MONOID,
    Monoid,
    coalesce,
    concat,
    fold_map,
    fold_map_indexed,
    slice_monoid,
    unique,
)


def test_concat_strings_joins_in_order():
    parts = ["syntax", " ", "proto3"]
    assert concat(STRING_MONOID, parts) == "".join(parts)


def test_concat_of_nothing_is_identity():
    assert concat(STRING_MONOID, []) == STRING_MONOID.empty()
    assert concat(slice_monoid(), []) == []


def test_fold_map_equals_map_then_concat():
    xs = ["a", "bc", "def"]
    assert fold_map(xs, STRING_MONOID, str.upper) == concat(
        STRING_MONOID, [x.upper() for x in xs]
    )


def test_fold_map_indexed_passes_positions():
    xs = ["x", "y", "z"]
    result = fold_map_indexed(xs, slice_monoid(), lambda i, x: [(i, x)])
    assert result == list(enumerate(xs))


def test_slice_monoid_does_not_mutate_arguments():
    m = slice_monoid()
    a, b = [1, 2], [3]
    combined = m.append(a, b)
    assert combined == [1, 2, 3]
    assert a == [1, 2]
    assert b == [3]


@pytest.mark.parametrize("monoid, values", [
    (STRING_MONOID, ["a", "b", "c"]),
    (slice_monoid(), [[1], [2, 3], []]),
])
def test_monoid_laws(monoid, values):
    a, b, c = values
    assert monoid.append(monoid.append(a, b), c) == monoid.append(a, monoid.append(b, c))
    assert monoid.append(monoid.empty(), a) == a
    assert monoid.append(a, monoid.empty()) == a


def test_custom_monoid_works_with_concat():
    summing = Monoid(lambda: 0, lambda x, y: x + y)
    assert concat(summing, [4, 5, 6]) == sum([4, 5, 6])


def test_unique_keeps_first_occurrence_order():
    assert unique([3, 1, 3, 2, 1]) == [3, 1, 2]
    assert unique(["b", "a", "b"]) == ["b", "a"]


def test_unique_of_empty():
    assert unique([]) == []


def test_coalesce_returns_first_non_zero():
    assert coalesce("", "proto3", "proto2") == "proto3"
    assert coalesce(0, 7) == 7


def test_coalesce_all_zero_returns_zero():
    assert coalesce("", "") == ""
    assert coalesce(0, 0) == 0


def test_coalesce_without_values():
    assert coalesce() is None