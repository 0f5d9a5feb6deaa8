"""World state and per-invocation transaction context"""
from ledgerbid.core.state.store import StateStore, InMemoryStateStore
from ledgerbid.core.state.context import TransactionContext, ReadWriteSet

__all__ = [
    "StateStore",
    "InMemoryStateStore",
    "TransactionContext",
    "ReadWriteSet",
]
