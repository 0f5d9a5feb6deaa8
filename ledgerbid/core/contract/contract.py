"""
Auction Contract - function table exposed to the ledger.

Maps ledger function names to the registry, bidding and settlement
operations, and implements the read-only GetState query.

Function table:
    AddRequest(requestId, ownerId, reserveDelay, conditions)   mutating
    StartBidding(auctionId, requestId)                          mutating
    Offer(bidPrice, delay, auctionId, sellerId)                 mutating
    CloseBidding(auctionId)                                     mutating
    GetState(key)                                               read-only
"""

import inspect
import json
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from ledgerbid.core.contract.bidding import offer
from ledgerbid.core.contract.registry import add_request, start_bidding
from ledgerbid.core.contract.settlement import close_bidding
from ledgerbid.core.errors import (
    InvalidArgumentError,
    NotFoundError,
    ParseError,
    UnknownFunctionError,
)
from ledgerbid.core.state.store import StateStore
from ledgerbid.utils.logger import get_logger

logger = get_logger("contract")


# =============================================================================
# GetState
# =============================================================================


def get_state(store: StateStore, key: str) -> str:
    """
    Read any record and return it re-serialized in canonical compact form.

    Raises:
        NotFoundError: key is absent
        ParseError: stored value is not a JSON object
    """
    data = store.get_state(key)
    if not data:
        raise NotFoundError(f"{key} does not exist")

    try:
        parsed = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError(f"value at {key!r} is not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ParseError(f"value at {key!r} is not a JSON object")

    logger.debug(f"GetState: key={key}")
    return json.dumps(parsed, separators=(",", ":"), ensure_ascii=False)


# =============================================================================
# Function Table
# =============================================================================


@dataclass(frozen=True)
class ContractFunction:
    """A named contract entry point."""
    name: str
    handler: Callable[..., str]
    mutating: bool

    @property
    def params(self) -> List[str]:
        """Argument names, excluding the leading store."""
        return list(inspect.signature(self.handler).parameters)[1:]

    def __call__(self, store: StateStore, args: Sequence[str]) -> str:
        if len(args) != len(self.params):
            raise InvalidArgumentError(
                f"{self.name} expects {len(self.params)} argument(s) "
                f"({', '.join(self.params)}), got {len(args)}"
            )
        return self.handler(store, *args)


class AuctionContract:
    """
    Reverse-auction contract.

    Holds no state of its own: every call is a function of the store it is
    given and its arguments.
    """

    name = "AuctionEvents"

    def __init__(self):
        self.functions: Dict[str, ContractFunction] = {}
        self.register("AddRequest", add_request, mutating=True)
        self.register("StartBidding", start_bidding, mutating=True)
        self.register("Offer", offer, mutating=True)
        self.register("CloseBidding", close_bidding, mutating=True)
        self.register("GetState", get_state, mutating=False)

    def register(self, name: str, handler: Callable[..., str], mutating: bool) -> None:
        self.functions[name] = ContractFunction(name, handler, mutating)

    def lookup(self, name: str) -> ContractFunction:
        function = self.functions.get(name)
        if function is None:
            raise UnknownFunctionError(f"Unknown function: {name}")
        return function

    def is_mutating(self, name: str) -> bool:
        return self.lookup(name).mutating

    def call(self, store: StateStore, name: str, *args: str) -> str:
        """Run a contract function against ``store``."""
        return self.lookup(name)(store, args)

    # Direct entry points

    def add_request(self, store: StateStore, request_id: str, owner_id: str,
                    reserve_delay: str, conditions: str) -> str:
        return add_request(store, request_id, owner_id, reserve_delay, conditions)

    def start_bidding(self, store: StateStore, auction_id: str, request_id: str) -> str:
        return start_bidding(store, auction_id, request_id)

    def offer(self, store: StateStore, bid_price: str, delay: str,
              auction_id: str, seller_id: str) -> str:
        return offer(store, bid_price, delay, auction_id, seller_id)

    def close_bidding(self, store: StateStore, auction_id: str) -> str:
        return close_bidding(store, auction_id)

    def get_state(self, store: StateStore, key: str) -> str:
        return get_state(store, key)
