"""
Bytecode cache - keeps compiled templates between renders.

Views re-render the same handful of templates on every request, so an
in-process LRU in front of Jinja2's compiler is enough.
"""

from collections import OrderedDict
from jinja2 import BytecodeCache
from jinja2.bccache import Bucket


class InMemoryBytecodeCache(BytecodeCache):
    """
    In-memory LRU bytecode cache.

    Args:
        capacity: Maximum number of compiled templates kept
    """

    def __init__(self, capacity: int = 512):
        self.capacity = capacity
        self._entries: "OrderedDict[str, bytes]" = OrderedDict()

    def load_bytecode(self, bucket: Bucket) -> None:
        data = self._entries.get(bucket.key)
        if data is None:
            return
        self._entries.move_to_end(bucket.key)
        bucket.bytecode_from_string(data)

    def dump_bytecode(self, bucket: Bucket) -> None:
        self._entries[bucket.key] = bucket.bytecode_to_string()
        self._entries.move_to_end(bucket.key)
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        """Drop every cached entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
