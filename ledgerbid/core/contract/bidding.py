"""
Bidding engine - validates seller offers and appends them to an auction.

Checks, in order:
1. The auction is PENDING
2. The offered delay is within the Request's reserve delay

The delay bound is read from the live Request record, not from the
snapshot the Auction took when bidding started.
"""

from ledgerbid.core.contract.models import Offer
from ledgerbid.core.contract.registry import read_auction, read_request
from ledgerbid.core.errors import ConstraintViolationError, InvalidStateError
from ledgerbid.core.state.store import StateStore
from ledgerbid.utils.logger import get_logger
from ledgerbid.utils.validation import parse_number

logger = get_logger("contract.bidding")


def offer(
    store: StateStore,
    bid_price: str,
    delay: str,
    auction_id: str,
    seller_id: str,
) -> str:
    """
    Submit a seller's offer.

    A seller may bid more than once; every accepted offer is kept.

    Args:
        store: World state for this invocation
        bid_price: Text-encoded price
        delay: Text-encoded delivery delay
        auction_id: Auction to bid on
        seller_id: Seller identity

    Returns:
        Serialized updated Auction

    Raises:
        NotFoundError: auction or its request is missing
        InvalidStateError: auction is closed
        ConstraintViolationError: delay exceeds the reserve delay
    """
    price = parse_number(bid_price, "bidPrice")
    offered_delay = parse_number(delay, "delay")

    auction = read_auction(store, auction_id)
    request = read_request(store, auction.request_id)

    if not auction.is_pending:
        raise InvalidStateError("Auction is not PENDING")

    if request.reserve_delay < offered_delay:
        logger.debug(
            f"Offer rejected: auction={auction_id}, seller={seller_id}, "
            f"delay={offered_delay} > reserve={request.reserve_delay}"
        )
        raise ConstraintViolationError("Delay is not less than reserve delay!")

    auction.offers.append(Offer(bid_price=price, seller_id=seller_id))
    store.put_state(auction_id, auction.to_bytes())

    logger.info(f"Offer accepted: auction={auction_id}, seller={seller_id}, price={price}")
    return auction.to_json()
