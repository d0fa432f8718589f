"""Price guesses scored against an FTSO feed value."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional

from ..errors import BusinessRuleViolation
from ..models import FeedDataPayload


class Prediction(IntEnum):
    BELOW = 0
    ABOVE = 1


@dataclass
class Guess:
    target_price: int
    prediction: Prediction
    resolved: bool = False
    was_correct: bool = False
    resolved_price: Optional[int] = None
    resolved_round_id: Optional[int] = None


class PriceGuesser:
    """One open guess per guesser; each guess resolves exactly once."""

    def __init__(self, feed_id: str):
        self.feed_id = feed_id.lower()
        self.guesses: Dict[str, Guess] = {}

    def make_guess(self, guesser: str, target_price: int, prediction: Prediction) -> Guess:
        current = self.guesses.get(guesser)
        if current is not None and not current.resolved:
            raise BusinessRuleViolation(f"{guesser} already has an unresolved guess")
        guess = Guess(target_price=int(target_price), prediction=Prediction(prediction))
        self.guesses[guesser] = guess
        return guess

    def resolve_guess(self, guesser: str, payload: FeedDataPayload) -> Guess:
        guess = self.guesses.get(guesser)
        if guess is None:
            raise BusinessRuleViolation(f"No guess for {guesser}")
        if guess.resolved:
            raise BusinessRuleViolation(f"Guess for {guesser} already resolved")
        if payload.feed_id.lower() != self.feed_id:
            raise BusinessRuleViolation(f"Proof is for feed {payload.feed_id}, not {self.feed_id}")

        if guess.prediction is Prediction.ABOVE:
            correct = payload.value > guess.target_price
        else:
            correct = payload.value < guess.target_price

        guess.resolved = True
        guess.was_correct = correct
        guess.resolved_price = payload.value
        guess.resolved_round_id = payload.voting_round_id
        return guess
