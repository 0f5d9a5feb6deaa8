import sqlite3
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ledgerbid.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent storage.

    Provides:
    1. World state: versioned key-value records (Requests, Auctions).
    2. Transaction log: every submitted transaction, valid or not.
    3. Chain metadata (block height).
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()

        # Ensure directory exists
        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            self._conn_local.conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            # Enable WAL mode for better concurrency
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            # 1. World state
            conn.execute("""
                CREATE TABLE IF NOT EXISTS world_state (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    version INTEGER NOT NULL DEFAULT 1
                )
            """)

            # 2. Transaction log (seq preserves submission order)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS transactions (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    tx_id TEXT NOT NULL UNIQUE,
                    data TEXT NOT NULL,
                    block_height INTEGER
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tx_height ON transactions(block_height);")

            # 3. Chain State (Metadata)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS chain_state (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

        logger.debug(f"Schema ready at {self.db_path}")

    # =========================================================================
    # World State Operations
    # =========================================================================

    def get(self, key: str) -> Optional[bytes]:
        """Get value by key."""
        conn = self._get_conn()
        cursor = conn.execute("SELECT value FROM world_state WHERE key = ?", (key,))
        row = cursor.fetchone()
        return bytes(row['value']) if row else None

    def get_version(self, key: str) -> int:
        """Get the version of a key (0 when absent)."""
        conn = self._get_conn()
        cursor = conn.execute("SELECT version FROM world_state WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row['version'] if row else 0

    def put(self, key: str, value: bytes):
        """Save a key-value pair, bumping its version."""
        conn = self._get_conn()
        with conn:
            self._upsert(conn, key, value)

    def get_keys(self) -> List[str]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT key FROM world_state ORDER BY key ASC")
        return [row['key'] for row in cursor]

    @staticmethod
    def _upsert(conn: sqlite3.Connection, key: str, value: bytes):
        conn.execute(
            """
            INSERT INTO world_state (key, value, version) VALUES (?, ?, 1)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, version = version + 1
            """,
            (key, value)
        )

    # =========================================================================
    # Chain State Operations
    # =========================================================================

    def set_chain_meta(self, key: str, value: str):
        conn = self._get_conn()
        with conn:
            conn.execute("INSERT OR REPLACE INTO chain_state (key, value) VALUES (?, ?)", (key, value))

    def get_chain_meta(self, key: str) -> Optional[str]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT value FROM chain_state WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row['value'] if row else None

    # =========================================================================
    # Transaction Log Operations
    # =========================================================================

    def save_transaction(self, tx_id: str, data: str, block_height: Optional[int]):
        conn = self._get_conn()
        with conn:
            conn.execute(
                "INSERT OR REPLACE INTO transactions (tx_id, data, block_height) VALUES (?, ?, ?)",
                (tx_id, data, block_height)
            )

    def get_all_transactions(self) -> List[str]:
        """Get all transaction records in submission order."""
        conn = self._get_conn()
        cursor = conn.execute("SELECT data FROM transactions ORDER BY seq ASC")
        return [row['data'] for row in cursor]

    def persist_commit(
        self,
        tx_id: str,
        tx_data: str,
        height: int,
        writes: Iterable[Tuple[str, bytes]],
    ):
        """
        Atomically apply a transaction's write-set.

        Args:
            tx_id: Transaction id
            tx_data: Serialized transaction record
            height: Block height the transaction commits at
            writes: List of (key, value) to store
        """
        conn = self._get_conn()
        with conn:
            for key, value in writes:
                self._upsert(conn, key, value)

            conn.execute(
                "INSERT OR REPLACE INTO transactions (tx_id, data, block_height) VALUES (?, ?, ?)",
                (tx_id, tx_data, height)
            )

            conn.execute(
                "INSERT OR REPLACE INTO chain_state (key, value) VALUES (?, ?)",
                ("block_height", str(height))
            )

    def close(self):
        """Close this thread's connection."""
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn
