"""
Settlement engine - closes an auction and records the winner.

This is a reverse auction: the lowest bid price wins. Offers are ranked
with a stable sort by price, highest first, and the last element is the
winner. Among offers tied at the lowest price, the one submitted last
ends up at the tail and wins.
"""

from typing import List, Optional

from ledgerbid.core.contract.models import AuctionState, Offer
from ledgerbid.core.contract.registry import read_auction, read_request
from ledgerbid.core.errors import InvalidStateError
from ledgerbid.core.state.store import StateStore
from ledgerbid.utils.logger import get_logger

logger = get_logger("contract.settlement")


def rank_offers(offers: List[Offer]) -> List[Offer]:
    """Stable sort by bid price, highest first."""
    return sorted(offers, key=lambda o: o.bid_price, reverse=True)


def select_winner(ranked: List[Offer]) -> Optional[Offer]:
    """Tail of the ranking, or None when there are no offers."""
    if not ranked:
        return None
    return ranked[-1]


def close_bidding(store: StateStore, auction_id: str) -> str:
    """
    Close an auction.

    With no offers the auction ends RESERVE_NOT_MET and the Request is left
    untouched. Otherwise the lowest offer's seller becomes the Request's
    winner and the auction ends FINISHED. The stored auction keeps its
    offers in ranked order.

    Returns:
        Serialized final Auction

    Raises:
        NotFoundError: auction or its request is missing
        InvalidStateError: auction already closed
    """
    auction = read_auction(store, auction_id)
    request = read_request(store, auction.request_id)

    if not auction.is_pending:
        raise InvalidStateError("Auction is not PENDING")

    auction.state = AuctionState.RESERVE_NOT_MET

    if auction.offers:
        auction.offers = rank_offers(auction.offers)
        winner = select_winner(auction.offers)

        request.winner_id = winner.seller_id
        store.put_state(auction.request_id, request.to_bytes())

        auction.state = AuctionState.FINISHED
        logger.info(
            f"Auction closed: auction={auction_id}, winner={winner.seller_id}, "
            f"price={winner.bid_price}, offers={len(auction.offers)}"
        )
    else:
        logger.info(f"Auction closed without offers: auction={auction_id}")

    store.put_state(auction_id, auction.to_bytes())
    return auction.to_json()
