"""
Transaction Context - per-invocation view of world state.

A contract function never touches the committed store directly. It runs
against a TransactionContext that:

1. Reads committed state and records the version of every key it reads
   (the read-set)
2. Buffers every write (the write-set) without making it visible

Reads do not observe the invocation's own buffered writes, so every read
within one invocation sees the same snapshot. The ledger later validates
the read-set and applies the write-set atomically, or discards it.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ledgerbid.core.state.store import InMemoryStateStore


@dataclass
class ReadWriteSet:
    """Outcome of simulating one invocation."""
    reads: Dict[str, int] = field(default_factory=dict)      # key -> version seen
    writes: Dict[str, bytes] = field(default_factory=dict)   # key -> new value

    @property
    def is_read_only(self) -> bool:
        return not self.writes

    def write_items(self) -> List[Tuple[str, bytes]]:
        """Writes in first-write order."""
        return list(self.writes.items())


class TransactionContext:
    """
    Snapshot reads and buffered writes over a committed store.

    The committed store must provide ``get_state`` and ``get_version``
    (InMemoryStateStore and StorageManager both do).
    """

    def __init__(self, store: InMemoryStateStore):
        self.store = store
        self.rwset = ReadWriteSet()

    def get_state(self, key: str) -> Optional[bytes]:
        if key not in self.rwset.reads:
            self.rwset.reads[key] = self.store.get_version(key)
        return self.store.get_state(key)

    def put_state(self, key: str, value: bytes) -> None:
        self.rwset.writes[key] = bytes(value)

    def discard(self) -> None:
        """Drop buffered writes (the invocation failed)."""
        self.rwset.writes.clear()
