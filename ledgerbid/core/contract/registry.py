"""
Request and Auction registries.

AddRequest stores a buyer's Request; StartBidding opens an Auction that
references it. Neither checks for an existing record under the same key:
a repeated call overwrites the previous record (logged as a warning).
"""

from ledgerbid.core.contract.models import Auction, AuctionState, NOT_DECIDED, Request
from ledgerbid.core.errors import InvalidArgumentError, NotFoundError
from ledgerbid.core.state.store import StateStore
from ledgerbid.utils.logger import get_logger
from ledgerbid.utils.validation import parse_number, require_key, validate_conditions

logger = get_logger("contract.registry")


# =============================================================================
# Reads
# =============================================================================


def read_request(store: StateStore, request_id: str) -> Request:
    """
    Load a Request from world state.

    Raises:
        NotFoundError: no record under request_id
        ParseError: stored value is not a well-formed Request
    """
    data = store.get_state(request_id)
    if not data:
        raise NotFoundError("request not found")
    return Request.from_bytes(data, key=request_id)


def read_auction(store: StateStore, auction_id: str) -> Auction:
    """
    Load an Auction from world state.

    Raises:
        NotFoundError: no record under auction_id
        ParseError: stored value is not a well-formed Auction
    """
    data = store.get_state(auction_id)
    if not data:
        raise NotFoundError("auction not found")
    return Auction.from_bytes(data, key=auction_id)


# =============================================================================
# AddRequest
# =============================================================================


def add_request(
    store: StateStore,
    request_id: str,
    owner_id: str,
    reserve_delay: str,
    conditions: str,
) -> str:
    """
    Create a Request with an undecided winner.

    Args:
        store: World state for this invocation
        request_id: Key to store the request under
        owner_id: Buyer identity
        reserve_delay: Text-encoded maximum acceptable delay
        conditions: Opaque requirement payload

    Returns:
        Serialized Request
    """
    require_key(request_id, "requestId")
    is_valid, error = validate_conditions(conditions)
    if not is_valid:
        raise InvalidArgumentError(error)

    request = Request(
        request_id=request_id,
        owner_id=owner_id,
        winner_id=NOT_DECIDED,
        reserve_delay=parse_number(reserve_delay, "reserveDelay"),
        conditions=conditions,
    )

    if store.get_state(request_id):
        logger.warning(f"Request {request_id} already exists, overwriting")

    store.put_state(request_id, request.to_bytes())

    logger.info(f"Request added: id={request_id}, owner={owner_id}, reserve_delay={request.reserve_delay}")
    return request.to_json()


# =============================================================================
# StartBidding
# =============================================================================


def start_bidding(store: StateStore, auction_id: str, request_id: str) -> str:
    """
    Open an auction for an existing Request.

    The auction snapshots the Request's reserve delay and starts PENDING
    with no offers.

    Returns:
        Serialized Auction

    Raises:
        NotFoundError: request_id does not exist
    """
    require_key(auction_id, "auctionId")
    request = read_request(store, request_id)

    auction = Auction(
        auction_id=auction_id,
        request_id=request_id,
        reserve_delay=request.reserve_delay,
        state=AuctionState.PENDING,
        offers=[],
    )

    if store.get_state(auction_id):
        logger.warning(f"Auction {auction_id} already exists, overwriting")

    store.put_state(auction_id, auction.to_bytes())

    logger.info(f"Bidding started: auction={auction_id}, request={request_id}")
    return auction.to_json()
