from dataclasses import dataclass, field
from typing import Dict, Optional

from maptask.errors import InvalidConfiguration


@dataclass(frozen=True)
class KeyValue:
    """One pair emitted by a map function."""
    key: str
    value: str

    def to_dict(self):
        return {"Key": self.key, "Value": self.value}

    @classmethod
    def from_dict(cls, data):
        return cls(data["Key"], data["Value"])

    @classmethod
    def coerce(cls, pair):
        """Accept a KeyValue or a plain (key, value) tuple."""
        if isinstance(pair, cls):
            return pair
        key, value = pair
        return cls(key, value)


@dataclass(frozen=True)
class JobIdentity:
    """Which job and which map task produced an intermediate file."""
    job_name: str
    map_task: int

    def __post_init__(self):
        if not isinstance(self.job_name, str) or not self.job_name:
            raise InvalidConfiguration(f"job name must be a non-empty string, got {self.job_name!r}")
        if any(c.isspace() or c in "/\\" for c in self.job_name):
            raise InvalidConfiguration(f"job name may not contain whitespace or path separators: {self.job_name!r}")
        if isinstance(self.map_task, bool) or not isinstance(self.map_task, int) or self.map_task < 0:
            raise InvalidConfiguration(f"map task index must be a non-negative integer, got {self.map_task!r}")


@dataclass
class MapTaskResult:
    """Outcome of one map task, for callers that prefer a value to an exception."""
    success: bool
    files: Dict[int, str] = field(default_factory=dict)
    records: int = 0
    error: Optional[str] = None
