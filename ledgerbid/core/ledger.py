"""
Ledger - hosts the auction contract and commits its transactions.

Conceptual Background:
---------------------
The contract never writes to world state directly. Each submission goes
through two steps:

1. **Simulate**: run the contract function against a TransactionContext,
   capturing the keys it read (with versions) and the writes it wants.
   A contract error ends the transaction here; nothing is written.
2. **Commit**: re-check every key in the read-set. If any version moved
   since simulation the transaction is invalidated (MVCC conflict) and
   must be resubmitted. Otherwise the write-set is applied atomically and
   the block height advances.

``invoke`` does both steps back to back. ``query`` only simulates, and only
for read-only functions. Several proposals may be simulated before any of
them is committed; the first to commit wins and later ones touching the
same keys fail with MVCCConflictError.
"""

import hashlib
import json
import secrets
import time
from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import List, Optional

from ledgerbid.core.contract import AuctionContract
from ledgerbid.core.errors import ContractError, InvalidArgumentError, MVCCConflictError
from ledgerbid.core.state import InMemoryStateStore, ReadWriteSet, TransactionContext
from ledgerbid.core.storage import StorageManager
from ledgerbid.utils.logger import get_logger, transaction_scope

logger = get_logger("ledger")


# =============================================================================
# Transaction Records
# =============================================================================


class TxStatus(IntEnum):
    """Validation outcome of a submitted transaction."""
    VALID = 0                  # Committed
    ENDORSEMENT_FAILURE = 1    # Contract raised during simulation
    MVCC_READ_CONFLICT = 2     # Read-set went stale before commit


@dataclass
class TransactionRecord:
    """Log entry for one submitted transaction."""
    tx_id: str
    function: str
    args: List[str]
    status: TxStatus
    block_height: Optional[int] = None
    error_kind: str = ""
    error: str = ""
    timestamp: int = field(default_factory=lambda: int(time.time()))

    @property
    def is_valid(self) -> bool:
        return self.status == TxStatus.VALID

    def to_json(self) -> str:
        data = asdict(self)
        data["status"] = self.status.name
        return json.dumps(data)

    @classmethod
    def from_json(cls, text: str) -> "TransactionRecord":
        data = json.loads(text)
        data["status"] = TxStatus[data["status"]]
        return cls(**data)


@dataclass
class Proposal:
    """A simulated, not yet committed, transaction."""
    tx_id: str
    function: str
    args: List[str]
    rwset: ReadWriteSet
    result: str
    committed: bool = False


def compute_tx_id(function: str, args: List[str]) -> str:
    """Hex SHA-256 over the call and a random nonce."""
    payload = json.dumps([function, args, secrets.token_hex(16), time.time_ns()])
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


# =============================================================================
# Ledger
# =============================================================================


class Ledger:
    """
    In-process ledger for the auction contract.

    Attributes:
        store: Committed world state (in-memory or SQLite-backed)
        contract: Function table to dispatch to
        block_height: Number of committed transactions
        transactions: Log of every submission, valid or not
    """

    def __init__(
        self,
        storage_manager: Optional[StorageManager] = None,
        contract: Optional[AuctionContract] = None,
    ):
        """
        Initialize the ledger.

        Args:
            storage_manager: Persistence manager. None = in-memory only.
            contract: Contract to host. None = a fresh AuctionContract.
        """
        self.storage_manager = storage_manager
        self.store = storage_manager if storage_manager else InMemoryStateStore()
        self.contract = contract or AuctionContract()

        self.block_height = 0
        self.transactions: List[TransactionRecord] = []

        if storage_manager:
            self._load_from_storage()

    # =========================================================================
    # Submission
    # =========================================================================

    def simulate(self, function_name: str, *args: str) -> Proposal:
        """
        Run a contract function without committing its writes.

        Raises:
            ContractError: the contract rejected the call (logged as an
                ENDORSEMENT_FAILURE transaction)
        """
        args = list(args)
        function = self.contract.lookup(function_name)
        tx_id = compute_tx_id(function_name, args)

        ctx = TransactionContext(self.store)
        try:
            with transaction_scope(tx_id):
                result = function(ctx, args)
        except ContractError as e:
            ctx.discard()
            self._record(TransactionRecord(
                tx_id=tx_id,
                function=function_name,
                args=args,
                status=TxStatus.ENDORSEMENT_FAILURE,
                error_kind=e.kind,
                error=e.message,
            ))
            logger.warning(f"Transaction {tx_id[:10]}... rejected: {function_name} [{e.kind}] {e.message}")
            raise

        return Proposal(tx_id=tx_id, function=function_name, args=args, rwset=ctx.rwset, result=result)

    def commit(self, proposal: Proposal) -> TransactionRecord:
        """
        Validate a proposal's read-set and apply its write-set.

        Raises:
            MVCCConflictError: a key read during simulation has changed
        """
        if proposal.committed:
            raise RuntimeError(f"Transaction {proposal.tx_id} already committed")

        for key, version in proposal.rwset.reads.items():
            if self.store.get_version(key) != version:
                self._record(TransactionRecord(
                    tx_id=proposal.tx_id,
                    function=proposal.function,
                    args=proposal.args,
                    status=TxStatus.MVCC_READ_CONFLICT,
                    error_kind=MVCCConflictError.kind,
                    error=f"key {key!r} changed",
                ))
                logger.warning(f"Transaction {proposal.tx_id[:10]}... invalidated: MVCC conflict on {key}")
                raise MVCCConflictError(f"{key} was modified after transaction {proposal.tx_id} read it")

        height = self.block_height + 1
        record = TransactionRecord(
            tx_id=proposal.tx_id,
            function=proposal.function,
            args=proposal.args,
            status=TxStatus.VALID,
            block_height=height,
        )
        writes = proposal.rwset.write_items()

        if self.storage_manager:
            self.storage_manager.persist_commit(record.tx_id, record.to_json(), height, writes)
        else:
            self.store.apply_writes(writes)

        self.block_height = height
        self.transactions.append(record)
        proposal.committed = True

        logger.debug(f"Committed {proposal.function} tx {proposal.tx_id[:10]}... at height {height} ({len(writes)} writes)")
        return record

    def invoke(self, function_name: str, *args: str) -> str:
        """Submit a state-mutating transaction and return its result."""
        proposal = self.simulate(function_name, *args)
        self.commit(proposal)
        return proposal.result

    def query(self, function_name: str, *args: str) -> str:
        """Evaluate a read-only function; nothing is ordered or committed."""
        function = self.contract.lookup(function_name)
        if function.mutating:
            raise InvalidArgumentError(f"{function_name} mutates state; submit it with invoke")
        return function(TransactionContext(self.store), list(args))

    # =========================================================================
    # Persistence
    # =========================================================================

    def _record(self, record: TransactionRecord) -> None:
        self.transactions.append(record)
        if self.storage_manager:
            self.storage_manager.persist_transaction(record.tx_id, record.to_json(), record.block_height)

    def _load_from_storage(self) -> None:
        """Load height and transaction log from storage manager."""
        self.block_height = self.storage_manager.get_height()
        self.transactions = [
            TransactionRecord.from_json(data)
            for data in self.storage_manager.load_transactions()
        ]
        logger.info(f"Loaded ledger: height={self.block_height}, transactions={len(self.transactions)}")

    # =========================================================================
    # Utility
    # =========================================================================

    def history(self) -> List[TransactionRecord]:
        return list(self.transactions)

    def __repr__(self) -> str:
        return f"Ledger(height={self.block_height}, transactions={len(self.transactions)})"

    def stats(self) -> dict:
        """Get ledger statistics."""
        return {
            "block_height": self.block_height,
            "transactions": len(self.transactions),
            "valid": sum(1 for t in self.transactions if t.status == TxStatus.VALID),
            "rejected": sum(1 for t in self.transactions if t.status == TxStatus.ENDORSEMENT_FAILURE),
            "conflicts": sum(1 for t in self.transactions if t.status == TxStatus.MVCC_READ_CONFLICT),
            "keys": len(self.store.keys()),
        }
