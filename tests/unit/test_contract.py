"""
Unit tests for the auction contract.

Tests cover:
1. AddRequest / StartBidding (registries)
2. Offer validation (state, reserve delay)
3. CloseBidding winner selection and tie-break
4. GetState error contract
5. Function table dispatch
"""

import json
import logging

import pytest

from ledgerbid.core.contract import (
    Auction,
    AuctionContract,
    AuctionState,
    Offer,
    Request,
    NOT_DECIDED,
    add_request,
    close_bidding,
    get_state,
    offer,
    rank_offers,
    read_auction,
    read_request,
    select_winner,
    start_bidding,
)
from ledgerbid.core.errors import (
    ConstraintViolationError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    ParseError,
    UnknownFunctionError,
)
from ledgerbid.core.state import InMemoryStateStore

CONDITIONS = '{"storage":3,"processor":"5"}'


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def store():
    return InMemoryStateStore()


@pytest.fixture
def open_auction(store):
    """Request 004 (reserve 600) with Auction004 open for bidding."""
    add_request(store, "004", "Org1MSP", "600", CONDITIONS)
    start_bidding(store, "Auction004", "004")
    return store


def offers_of(store, auction_id="Auction004"):
    return [(o.bid_price, o.seller_id) for o in read_auction(store, auction_id).offers]


# =============================================================================
# RequestRegistry
# =============================================================================


class TestAddRequest:
    """Tests for AddRequest."""

    def test_creates_undecided_request(self, store):
        result = json.loads(add_request(store, "004", "Org1MSP", "600", CONDITIONS))

        assert result == {
            "requestId": "004",
            "ownerId": "Org1MSP",
            "winnerId": NOT_DECIDED,
            "reserveDelay": 600,
            "conditions": CONDITIONS,
        }

    def test_get_state_returns_request(self, store):
        """AddRequest then GetState returns the same record."""
        result = add_request(store, "004", "Org1MSP", "600", CONDITIONS)
        assert get_state(store, "004") == result
        assert json.loads(get_state(store, "004"))["winnerId"] == NOT_DECIDED

    def test_single_write(self, store):
        add_request(store, "004", "Org1MSP", "600", CONDITIONS)
        assert store.keys() == ["004"]

    def test_conditions_not_parsed(self, store):
        add_request(store, "r1", "Org1MSP", "10", "not json at all")
        assert read_request(store, "r1").conditions == "not json at all"

    def test_large_conditions_round_trip(self, store):
        """Conditions of any size are stored and returned unchanged."""
        conditions = "x" * 5000
        add_request(store, "r1", "Org1MSP", "10", conditions)

        assert read_request(store, "r1").conditions == conditions
        assert json.loads(get_state(store, "r1"))["conditions"] == conditions

    def test_empty_owner_accepted(self, store):
        add_request(store, "r1", "", "10", "")
        assert read_request(store, "r1").owner_id == ""

    def test_duplicate_overwrites(self, store, caplog):
        """Second call with the same id replaces the first."""
        add_request(store, "004", "Org1MSP", "600", CONDITIONS)
        with caplog.at_level(logging.WARNING, logger="ledgerbid"):
            add_request(store, "004", "Org9MSP", "100", "")

        request = read_request(store, "004")
        assert request.owner_id == "Org9MSP"
        assert request.reserve_delay == 100
        assert "already exists" in caplog.text

    def test_malformed_reserve_delay(self, store):
        with pytest.raises(InvalidArgumentError):
            add_request(store, "004", "Org1MSP", "six hundred", CONDITIONS)
        assert len(store) == 0

    def test_empty_request_id(self, store):
        with pytest.raises(InvalidArgumentError):
            add_request(store, "", "Org1MSP", "600", CONDITIONS)


# =============================================================================
# AuctionRegistry
# =============================================================================


class TestStartBidding:
    """Tests for StartBidding."""

    def test_opens_pending_auction(self, store):
        add_request(store, "004", "Org1MSP", "600", CONDITIONS)
        result = json.loads(start_bidding(store, "Auction004", "004"))

        assert result == {
            "auctionId": "Auction004",
            "requestId": "004",
            "reserveDelay": 600,
            "state": "PENDING",
            "offers": [],
        }

    def test_missing_request(self, store):
        """Unknown request fails NotFound and writes nothing."""
        with pytest.raises(NotFoundError, match="request not found"):
            start_bidding(store, "Auction004", "004")
        assert len(store) == 0

    def test_reopen_overwrites(self, open_auction):
        offer(open_auction, "200", "500", "Auction004", "Org2MSP")
        start_bidding(open_auction, "Auction004", "004")
        assert offers_of(open_auction) == []

    def test_does_not_modify_request(self, store):
        add_request(store, "004", "Org1MSP", "600", CONDITIONS)
        before = store.get_state("004")
        start_bidding(store, "Auction004", "004")
        assert store.get_state("004") == before


# =============================================================================
# BiddingEngine
# =============================================================================


class TestOffer:
    """Tests for Offer."""

    def test_appends_offer(self, open_auction):
        result = json.loads(offer(open_auction, "200", "500", "Auction004", "Org2MSP"))

        assert result["offers"] == [{"bidPrice": 200, "sellerId": "Org2MSP"}]
        assert offers_of(open_auction) == [(200, "Org2MSP")]

    def test_keeps_submission_order(self, open_auction):
        offer(open_auction, "300", "100", "Auction004", "S1")
        offer(open_auction, "100", "100", "Auction004", "S2")
        offer(open_auction, "200", "100", "Auction004", "S3")
        assert offers_of(open_auction) == [(300, "S1"), (100, "S2"), (200, "S3")]

    def test_seller_may_bid_twice(self, open_auction):
        offer(open_auction, "300", "100", "Auction004", "Org2MSP")
        offer(open_auction, "250", "100", "Auction004", "Org2MSP")
        assert len(offers_of(open_auction)) == 2

    def test_long_seller_id(self, open_auction):
        seller = "Org" * 200
        offer(open_auction, "200", "100", "Auction004", seller)
        assert offers_of(open_auction) == [(200, seller)]

    def test_delay_equal_to_reserve_accepted(self, open_auction):
        offer(open_auction, "200", "600", "Auction004", "Org2MSP")
        assert len(offers_of(open_auction)) == 1

    def test_delay_over_reserve(self, open_auction):
        """Delay above reserve fails and appends nothing."""
        offer(open_auction, "200", "500", "Auction004", "Org2MSP")
        with pytest.raises(ConstraintViolationError, match="Delay is not less than reserve delay!"):
            offer(open_auction, "300", "800", "Auction004", "Org3MSP")
        assert offers_of(open_auction) == [(200, "Org2MSP")]

    def test_decimal_delay_compared_numerically(self, open_auction):
        with pytest.raises(ConstraintViolationError):
            offer(open_auction, "10", "600.5", "Auction004", "Org3MSP")

    def test_missing_auction(self, store):
        with pytest.raises(NotFoundError, match="auction not found"):
            offer(store, "200", "500", "Nope", "Org2MSP")

    def test_missing_request(self, store):
        store.put_state("A1", Auction(auction_id="A1", request_id="ghost", reserve_delay=600).to_bytes())
        with pytest.raises(NotFoundError, match="request not found"):
            offer(store, "200", "500", "A1", "Org2MSP")

    def test_closed_auction(self, open_auction):
        """No offers after CloseBidding; offer count unchanged."""
        offer(open_auction, "200", "500", "Auction004", "Org2MSP")
        close_bidding(open_auction, "Auction004")

        with pytest.raises(InvalidStateError, match="Auction is not PENDING"):
            offer(open_auction, "100", "100", "Auction004", "Org3MSP")
        assert len(offers_of(open_auction)) == 1

    def test_state_checked_before_delay(self, open_auction):
        close_bidding(open_auction, "Auction004")
        with pytest.raises(InvalidStateError):
            offer(open_auction, "100", "9999", "Auction004", "Org3MSP")

    def test_compares_live_request_not_snapshot(self, store):
        """The request's reserve delay is authoritative, not the auction copy."""
        store.put_state("r", Request(request_id="r", owner_id="o", reserve_delay=600).to_bytes())
        store.put_state("A", Auction(auction_id="A", request_id="r", reserve_delay=1000).to_bytes())

        with pytest.raises(ConstraintViolationError):
            offer(store, "100", "800", "A", "Org3MSP")

    def test_malformed_price(self, open_auction):
        before = open_auction.get_state("Auction004")
        with pytest.raises(InvalidArgumentError, match="bidPrice"):
            offer(open_auction, "cheap", "100", "Auction004", "Org2MSP")
        assert open_auction.get_state("Auction004") == before

    def test_corrupt_auction(self, store):
        store.put_state("A", b"garbage")
        with pytest.raises(ParseError):
            offer(store, "100", "100", "A", "Org2MSP")


# =============================================================================
# SettlementEngine
# =============================================================================


class TestCloseBidding:
    """Tests for CloseBidding."""

    def test_no_offers(self, open_auction):
        """Zero offers: RESERVE_NOT_MET, request untouched."""
        request_before = open_auction.get_state("004")
        result = json.loads(close_bidding(open_auction, "Auction004"))

        assert result["state"] == "RESERVE_NOT_MET"
        assert open_auction.get_state("004") == request_before
        assert read_request(open_auction, "004").winner_id == NOT_DECIDED

    def test_lowest_bid_wins(self, open_auction):
        offer(open_auction, "300", "100", "Auction004", "S3")
        offer(open_auction, "150", "100", "Auction004", "S3b")
        offer(open_auction, "200", "100", "Auction004", "S2")

        result = json.loads(close_bidding(open_auction, "Auction004"))

        assert result["state"] == "FINISHED"
        assert read_request(open_auction, "004").winner_id == "S3b"
        assert read_auction(open_auction, "Auction004").state is AuctionState.FINISHED

    def test_offers_stored_ranked(self, open_auction):
        offer(open_auction, "300", "100", "Auction004", "S3")
        offer(open_auction, "150", "100", "Auction004", "S3b")
        offer(open_auction, "200", "100", "Auction004", "S2")
        close_bidding(open_auction, "Auction004")

        assert offers_of(open_auction) == [(300, "S3"), (200, "S2"), (150, "S3b")]

    def test_tie_latest_submission_wins(self, open_auction):
        offer(open_auction, "100", "100", "Auction004", "first")
        offer(open_auction, "200", "100", "Auction004", "pricey")
        offer(open_auction, "100", "100", "Auction004", "second")
        close_bidding(open_auction, "Auction004")

        assert read_request(open_auction, "004").winner_id == "second"

    def test_close_twice(self, open_auction):
        close_bidding(open_auction, "Auction004")
        with pytest.raises(InvalidStateError):
            close_bidding(open_auction, "Auction004")

    def test_missing_auction(self, store):
        with pytest.raises(NotFoundError):
            close_bidding(store, "Auction004")

    def test_missing_request(self, store):
        store.put_state("A1", Auction(auction_id="A1", request_id="ghost", reserve_delay=1).to_bytes())
        with pytest.raises(NotFoundError, match="request not found"):
            close_bidding(store, "A1")


class TestRanking:
    """Tests for the ranking helpers."""

    def test_rank_is_stable(self):
        offers = [Offer(bid_price=5, seller_id="a"), Offer(bid_price=5, seller_id="b"), Offer(bid_price=9, seller_id="c")]
        assert [o.seller_id for o in rank_offers(offers)] == ["c", "a", "b"]

    def test_rank_does_not_mutate(self):
        offers = [Offer(bid_price=1, seller_id="a"), Offer(bid_price=2, seller_id="b")]
        rank_offers(offers)
        assert [o.seller_id for o in offers] == ["a", "b"]

    def test_select_winner_empty(self):
        assert select_winner([]) is None

    def test_select_winner_tail(self):
        ranked = [Offer(bid_price=9, seller_id="c"), Offer(bid_price=1, seller_id="a")]
        assert select_winner(ranked).seller_id == "a"


# =============================================================================
# GetState
# =============================================================================


class TestGetState:
    """Tests for GetState."""

    def test_missing_key(self, store):
        with pytest.raises(NotFoundError):
            get_state(store, "nothing")

    def test_not_json(self, store):
        store.put_state("bad", b"\x00\x01garbage")
        with pytest.raises(ParseError):
            get_state(store, "bad")

    def test_not_an_object(self, store):
        store.put_state("list", b"[1, 2, 3]")
        with pytest.raises(ParseError):
            get_state(store, "list")

    def test_canonical_output(self, store):
        store.put_state("k", b'{ "a" : 1,  "b": [1, 2] }')
        assert get_state(store, "k") == '{"a":1,"b":[1,2]}'

    def test_idempotent(self, open_auction):
        offer(open_auction, "200", "500", "Auction004", "Org2MSP")
        first = get_state(open_auction, "Auction004")
        second = get_state(open_auction, "Auction004")
        assert first == second


# =============================================================================
# Dispatch
# =============================================================================


class TestAuctionContract:
    """Tests for the function table."""

    @pytest.fixture
    def contract(self):
        return AuctionContract()

    def test_call_by_name(self, contract, store):
        contract.call(store, "AddRequest", "004", "Org1MSP", "600", CONDITIONS)
        contract.call(store, "StartBidding", "Auction004", "004")
        result = json.loads(contract.call(store, "GetState", "Auction004"))
        assert result["state"] == "PENDING"

    def test_unknown_function(self, contract, store):
        with pytest.raises(UnknownFunctionError):
            contract.call(store, "DeleteEverything")

    def test_wrong_arity(self, contract, store):
        with pytest.raises(InvalidArgumentError, match="expects 2"):
            contract.call(store, "StartBidding", "Auction004")

    def test_mutating_flags(self, contract):
        assert contract.is_mutating("AddRequest")
        assert contract.is_mutating("StartBidding")
        assert contract.is_mutating("Offer")
        assert contract.is_mutating("CloseBidding")
        assert not contract.is_mutating("GetState")

    def test_params(self, contract):
        assert contract.lookup("Offer").params == ["bid_price", "delay", "auction_id", "seller_id"]

    def test_direct_entry_points(self, contract, store):
        contract.add_request(store, "004", "Org1MSP", "600", CONDITIONS)
        contract.start_bidding(store, "Auction004", "004")
        contract.offer(store, "120", "60", "Auction004", "Org2MSP")
        result = json.loads(contract.close_bidding(store, "Auction004"))
        assert result["state"] == "FINISHED"
        assert json.loads(contract.get_state(store, "004"))["winnerId"] == "Org2MSP"
