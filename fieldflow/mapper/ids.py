"""Id generators for mappings and function nodes."""
import itertools
import uuid


class SequentialIdGenerator:
    """Deterministic ids: mapping_1, mapping_2, node_3..."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def next_id(self, prefix: str = "mapping") -> str:
        return f"{prefix}_{next(self._counter)}"


class UuidIdGenerator:
    """Random ids for mappings that are persisted across sessions."""

    def next_id(self, prefix: str = "mapping") -> str:
        return f"{prefix}_{uuid.uuid4().hex}"
