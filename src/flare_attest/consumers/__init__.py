"""
Consumers of decoded payloads.

Each consumer owns its state and validates a payload completely before
changing anything, so a rejected payload leaves it untouched.
"""
from .prediction_market import PredictionMarket, Position
from .sports_market import SportsMarket, Team, MATCH_FINISHED
from .price_guesser import PriceGuesser, Prediction, Guess
from .swap_monitor import SwapEventCollector, SwapEvent, SWAP_TOPIC
from .onchain import ConsumerContract

__all__ = [
    'PredictionMarket',
    'Position',
    'SportsMarket',
    'Team',
    'MATCH_FINISHED',
    'PriceGuesser',
    'Prediction',
    'Guess',
    'SwapEventCollector',
    'SwapEvent',
    'SWAP_TOPIC',
    'ConsumerContract',
]
