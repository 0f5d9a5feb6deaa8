"""
Auction records - Requests, Auctions and Offers as stored in world state.

Records travel as compact UTF-8 JSON with camelCase keys. They are
validated with pydantic on every read so a malformed stored value
surfaces as a ParseError instead of a half-populated object.
"""

from enum import Enum
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ledgerbid.core.errors import ParseError

# Winner placeholder until settlement assigns a seller
NOT_DECIDED = "Not Decided"

Number = Union[int, float]


# =============================================================================
# Enums
# =============================================================================


class AuctionState(str, Enum):
    """State of an auction."""
    PENDING = "PENDING"                  # Accepting offers
    RESERVE_NOT_MET = "RESERVE_NOT_MET"  # Closed without offers
    FINISHED = "FINISHED"                # Closed with a winner

    @property
    def code(self) -> int:
        return _STATE_CODES[self]

    @property
    def is_terminal(self) -> bool:
        return self is not AuctionState.PENDING


_STATE_CODES = {
    AuctionState.PENDING: 1,
    AuctionState.RESERVE_NOT_MET: 2,
    AuctionState.FINISHED: 3,
}


# =============================================================================
# Records
# =============================================================================


class Record(BaseModel):
    """Base for records stored in world state."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def to_bytes(self) -> bytes:
        return self.to_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes, key: str = ""):
        """
        Deserialize a stored record.

        Raises:
            ParseError: data is not valid JSON for this record type
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            where = f" at {key!r}" if key else ""
            raise ParseError(
                f"malformed {cls.__name__.lower()}{where}: {e.error_count()} validation error(s)"
            ) from e


class Request(Record):
    """
    A buyer's service request.

    Attributes:
        request_id: Unique key in world state
        owner_id: Identity of the buyer
        winner_id: NOT_DECIDED until settlement assigns a seller
        reserve_delay: Upper bound on acceptable delay
        conditions: Opaque resource/requirement payload (never parsed)
    """
    request_id: str
    owner_id: str
    winner_id: str = NOT_DECIDED
    reserve_delay: Number
    conditions: str = ""

    @property
    def is_decided(self) -> bool:
        return self.winner_id != NOT_DECIDED


class Offer(Record):
    """One seller's bid."""
    bid_price: Number
    seller_id: str


class Auction(Record):
    """
    One bidding round for a Request.

    ``reserve_delay`` is a snapshot copied from the Request when bidding
    starts. ``offers`` is kept in commit order until the auction closes.
    """
    auction_id: str
    request_id: str
    reserve_delay: Number
    state: AuctionState = AuctionState.PENDING
    offers: List[Offer] = Field(default_factory=list)

    @property
    def is_pending(self) -> bool:
        return self.state is AuctionState.PENDING

    def __repr__(self) -> str:
        return (
            f"Auction(id={self.auction_id}, request={self.request_id}, "
            f"state={self.state.value}, offers={len(self.offers)})"
        )
