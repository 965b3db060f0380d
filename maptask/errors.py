class MapTaskError(Exception):
    """Base class for every failure of a single map task invocation.

    The caller treats any MapTaskError as "task failed, re-schedule". No
    partial output of a failed task should be trusted.
    """


class InvalidConfiguration(MapTaskError, ValueError):
    """Task parameters rejected before any I/O was attempted."""


class InputReadError(MapTaskError):
    """The input partition could not be read."""

    def __init__(self, path, reason):
        super().__init__(f"read input {path}: {reason}")
        self.path = path


class OutputWriteError(MapTaskError):
    """An intermediate file could not be created, written or closed."""

    def __init__(self, path, reason):
        super().__init__(f"write intermediate {path}: {reason}")
        self.path = path
