import pytest

from maptask.errors import InvalidConfiguration
from maptask.utils.partitioner import Partitioner, ihash, partition_of

# FNV-1a 32-bit reference values with the sign bit cleared. The reduce side
# must reproduce these exactly.
GOLDEN = {
    "": 0x811C9DC5 & 0x7FFFFFFF,
    "a": 0xE40C292C & 0x7FFFFFFF,
    "foobar": 0xBF9CF968 & 0x7FFFFFFF,
}


@pytest.mark.parametrize("key,expected", sorted(GOLDEN.items()))
def test_ihash_matches_golden_vectors(key, expected):
    assert ihash(key) == expected


def test_golden_vectors_in_decimal():
    assert ihash("") == 18652613
    assert ihash("a") == 1678518572
    assert ihash("foobar") == 1067252072


def test_ihash_hashes_utf8_bytes():
    """Non-ASCII keys hash their UTF-8 encoding, byte by byte."""
    h = 0x811C9DC5
    for byte in "é".encode("utf-8"):
        h = ((h ^ byte) * 0x01000193) & 0xFFFFFFFF
    assert ihash("é") == h & 0x7FFFFFFF


def test_partition_in_range_and_deterministic():
    keys = ["", "a", "b", "hello", "line\nbreak", 'quo"te', "日本語", "x" * 1000]
    for n_reduce in (1, 2, 3, 7, 10, 64):
        partitioner = Partitioner(n_reduce)
        for key in keys:
            bucket = partitioner.get_partition(key)
            assert 0 <= bucket < n_reduce
            assert bucket == partitioner.get_partition(key)
            assert bucket == partition_of(key, n_reduce)


def test_single_partition_takes_everything():
    partitioner = Partitioner(1)
    assert {partitioner.get_partition(k) for k in ("a", "b", "c", "")} == {0}


def test_ihash_is_order_sensitive():
    assert ihash("ab") != ihash("ba")


@pytest.mark.parametrize("bad", [0, -1, 2.0, "3", None, True])
def test_rejects_invalid_partition_count(bad):
    with pytest.raises(InvalidConfiguration):
        Partitioner(bad)
    with pytest.raises(InvalidConfiguration):
        partition_of("a", bad)
