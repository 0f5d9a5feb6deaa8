"""
Auction contract.

- Records: Request, Auction, Offer
- RequestRegistry / AuctionRegistry: AddRequest, StartBidding
- BiddingEngine: Offer
- SettlementEngine: CloseBidding
- Query: GetState
"""

from ledgerbid.core.contract.models import (
    Auction,
    AuctionState,
    Offer,
    Request,
    NOT_DECIDED,
)
from ledgerbid.core.contract.registry import (
    add_request,
    start_bidding,
    read_auction,
    read_request,
)
from ledgerbid.core.contract.bidding import offer
from ledgerbid.core.contract.settlement import (
    close_bidding,
    rank_offers,
    select_winner,
)
from ledgerbid.core.contract.contract import (
    AuctionContract,
    ContractFunction,
    get_state,
)

__all__ = [
    # Records
    "Auction",
    "AuctionState",
    "Offer",
    "Request",
    "NOT_DECIDED",
    # Operations
    "add_request",
    "start_bidding",
    "read_auction",
    "read_request",
    "offer",
    "close_bidding",
    "rank_offers",
    "select_winner",
    "get_state",
    # Dispatch
    "AuctionContract",
    "ContractFunction",
]
