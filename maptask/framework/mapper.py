import logging

from maptask.errors import OutputWriteError
from maptask.framework.types import KeyValue

LOG = logging.getLogger(__name__)


class MapPhase:
    """Handles the map phase of MapReduce"""

    def __init__(self, map_function, partitioner):
        """
        Args:
            map_function: User-defined map function(filename, contents) -> [KeyValue or (k, v), ...]
            partitioner: Partitioner instance for intermediate keys
        """
        self.map_function = map_function
        self.partitioner = partitioner

    def execute(self, input_key, input_value):
        """Execute map function and partition results

        The map function is called exactly once. Pairs keep the order the map
        function emitted them in within each partition.

        Args:
            input_key: Input key (the input file name)
            input_value: Input value (the file contents)

        Returns:
            List of lists, one per partition: [[KeyValue, ...], ...]

        Raises:
            OutputWriteError: a key cannot be encoded as UTF-8, so it can
                neither be hashed nor written
        """
        intermediate_pairs = self.map_function(input_key, input_value)

        partitions = [[] for _ in range(self.partitioner.num_partitions)]
        count = 0

        for pair in intermediate_pairs:
            kv = KeyValue.coerce(pair)
            try:
                partition_id = self.partitioner.get_partition(kv.key)
            except UnicodeEncodeError as e:
                raise OutputWriteError(input_key, f"key {kv.key!r} is not encodable as UTF-8: {e}") from e
            partitions[partition_id].append(kv)
            count += 1

        LOG.debug("map function emitted %d pairs for %s", count, input_key)
        return partitions


# Example map function for word count
def word_count_map(filename, contents):
    """Map function for word count

    Args:
        filename: Name of the file
        contents: Contents of the file

    Yields:
        (word, "1") pairs
    """
    words = contents.lower().split()
    for word in words:
        # Clean word
        word = ''.join(c for c in word if c.isalnum())
        if word:
            yield KeyValue(word, "1")
