from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ledgerbid.core.storage.sqlite_adapter import SQLiteAdapter
from ledgerbid.utils.logger import get_logger

logger = get_logger("storage.manager")


class StorageManager:
    """
    Manages persistent storage for the node.

    Exposes the same world-state interface as InMemoryStateStore so the
    ledger and the contract can run against either. Handles:
    - World state (versioned Request/Auction records)
    - Transaction log
    - Metadata (block height)
    """

    def __init__(self, data_dir: Path, db_name: str = "world_state.db"):
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)

        logger.info(f"StorageManager initialized at {self.db_path}")

    # =========================================================================
    # World State
    # =========================================================================

    def get_state(self, key: str) -> Optional[bytes]:
        return self.adapter.get(key)

    def get_version(self, key: str) -> int:
        return self.adapter.get_version(key)

    def put_state(self, key: str, value: bytes):
        self.adapter.put(key, value)

    def apply_writes(self, writes: Iterable[Tuple[str, bytes]]):
        """Apply a write-set outside of a logged transaction."""
        for key, value in writes:
            self.adapter.put(key, value)

    def keys(self) -> List[str]:
        return self.adapter.get_keys()

    # =========================================================================
    # Chain State (Metadata)
    # =========================================================================

    def get_height(self) -> int:
        """Get the latest committed block height."""
        n = self.adapter.get_chain_meta("block_height")
        return int(n) if n else 0

    # =========================================================================
    # Transactions
    # =========================================================================

    def persist_commit(
        self,
        tx_id: str,
        tx_data: str,
        height: int,
        writes: Iterable[Tuple[str, bytes]],
    ):
        """Atomically persist a valid transaction and its writes."""
        self.adapter.persist_commit(tx_id, tx_data, height, list(writes))

    def persist_transaction(self, tx_id: str, tx_data: str, height: Optional[int] = None):
        """Persist a transaction record with no state change."""
        self.adapter.save_transaction(tx_id, tx_data, height)

    def load_transactions(self) -> List[str]:
        """Load all serialized transaction records in submission order."""
        return self.adapter.get_all_transactions()

    def close(self):
        self.adapter.close()
