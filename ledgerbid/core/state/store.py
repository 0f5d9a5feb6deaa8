"""
World State - key-value store the contract reads and writes.

Absence is never an error at this layer: ``get_state`` returns None and the
contract decides what a missing key means. Every key carries a version that
increases on each committed write; the ledger uses it to detect stale reads.
"""

from typing import Dict, Iterable, List, Optional, Protocol, Tuple


class StateStore(Protocol):
    """What a contract function needs from world state."""

    def get_state(self, key: str) -> Optional[bytes]:
        ...

    def put_state(self, key: str, value: bytes) -> None:
        ...


class InMemoryStateStore:
    """
    Volatile world state.

    Attributes:
        _data: key -> (value, version)
    """

    def __init__(self):
        self._data: Dict[str, Tuple[bytes, int]] = {}

    def get_state(self, key: str) -> Optional[bytes]:
        entry = self._data.get(key)
        return entry[0] if entry else None

    def get_version(self, key: str) -> int:
        """Version of a key; 0 when absent."""
        entry = self._data.get(key)
        return entry[1] if entry else 0

    def put_state(self, key: str, value: bytes) -> None:
        self._data[key] = (bytes(value), self.get_version(key) + 1)

    def apply_writes(self, writes: Iterable[Tuple[str, bytes]]) -> None:
        """Apply a committed write-set."""
        for key, value in writes:
            self.put_state(key, value)

    def keys(self) -> List[str]:
        return sorted(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"InMemoryStateStore(keys={len(self._data)})"
