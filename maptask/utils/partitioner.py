from maptask.errors import InvalidConfiguration

FNV32_OFFSET_BASIS = 0x811C9DC5
FNV32_PRIME = 0x01000193


def ihash(key):
    """Stable 31-bit hash of a key: FNV-1a over its UTF-8 bytes, sign bit masked.

    Map and reduce sides must agree on this bit for bit, so Python's
    per-process salted hash() cannot be used here.
    """
    h = FNV32_OFFSET_BASIS
    for byte in str(key).encode('utf-8'):
        h ^= byte
        h = (h * FNV32_PRIME) & 0xFFFFFFFF
    return h & 0x7FFFFFFF


def validate_num_partitions(num_partitions):
    if isinstance(num_partitions, bool) or not isinstance(num_partitions, int) or num_partitions <= 0:
        raise InvalidConfiguration(f"number of reduce tasks must be a positive integer, got {num_partitions!r}")
    return num_partitions


def partition_of(key, num_partitions):
    """Reduce bucket for a key: ihash(key) mod R."""
    return ihash(key) % validate_num_partitions(num_partitions)


class Partitioner:
    """Hash-based partitioning for intermediate keys"""

    def __init__(self, num_partitions):
        self.num_partitions = validate_num_partitions(num_partitions)

    def get_partition(self, key):
        """Get partition ID for a key using hash function"""
        return ihash(key) % self.num_partitions
