"""
ledgerbid

A reverse-auction contract for a permissioned key-value ledger:
- Service requests posted by buyers
- Auctions opened against those requests
- Competing seller offers bounded by a reserve delay
- Lowest-price winner selection at close
"""

__version__ = "0.1.0"
