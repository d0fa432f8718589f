"""
Price prediction market settled by an FTSO feed value.

Open -> Locked -> Resolved, exactly once. Prices are compared in the feed's
integer units (value with `decimals` implied), as the settling contract does.
"""

import time
from enum import Enum
from typing import Optional

from ..errors import BusinessRuleViolation
from ..models import FeedDataPayload


class MarketStatus(Enum):
    OPEN = "open"
    LOCKED = "locked"
    RESOLVED = "resolved"


class Position(Enum):
    ABOVE = "above"
    BELOW = "below"


class PredictionMarket:
    """Binary above/below market on one feed."""

    def __init__(self, feed_id: str, target_price: int, settlement_time: int):
        self.feed_id = feed_id.lower()
        self.target_price = int(target_price)
        self.settlement_time = int(settlement_time)

        self.status = MarketStatus.OPEN
        self.final_price: Optional[int] = None
        self.winning_position: Optional[Position] = None
        self.settled_round_id: Optional[int] = None

    def lock(self, now: Optional[int] = None):
        """Stop accepting positions once settlement time is reached."""
        now = int(time.time()) if now is None else now
        if self.status is not MarketStatus.OPEN:
            raise BusinessRuleViolation(f"Market is {self.status.value}, not open")
        if now < self.settlement_time:
            raise BusinessRuleViolation("Settlement time not reached")
        self.status = MarketStatus.LOCKED

    def settle(self, payload: FeedDataPayload, now: Optional[int] = None) -> Position:
        """
        Resolve the market with a verified feed value.

        Raises:
            BusinessRuleViolation if already resolved, too early, or the
            payload is for a different feed. Nothing changes on failure.
        """
        now = int(time.time()) if now is None else now
        if self.status is MarketStatus.RESOLVED:
            raise BusinessRuleViolation("Market already resolved")
        if now < self.settlement_time:
            raise BusinessRuleViolation("Settlement time not reached")
        if payload.feed_id.lower() != self.feed_id:
            raise BusinessRuleViolation(
                f"Proof is for feed {payload.feed_id}, market tracks {self.feed_id}"
            )

        if self.status is MarketStatus.OPEN:
            self.lock(now)

        self.final_price = payload.value
        self.settled_round_id = payload.voting_round_id
        self.winning_position = Position.ABOVE if payload.value > self.target_price else Position.BELOW
        self.status = MarketStatus.RESOLVED

        print(f"[OK] Market settled at {payload.price} (round {payload.voting_round_id}): "
              f"{self.winning_position.value.upper()}")
        return self.winning_position
