"""
Odds utilities for UFC betting analysis.
Includes American/decimal conversion, implied probability, edge and value rating.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

# (min edge, min confidence, stars), checked from the top
VALUE_RATING_THRESHOLDS = (
    (20.0, 75.0, 5),
    (15.0, 75.0, 4),
    (10.0, 65.0, 3),
    (5.0, 60.0, 2),
)


def _is_absent(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


class OddsConverter:
    """
    Convert between different odds formats and probabilities.

    Probabilities returned by implied_probability and edge are in
    percentage points; the decimal helpers work on 0-1 probabilities.
    """

    @staticmethod
    def implied_probability(american_odds: Optional[float]) -> Optional[float]:
        """Win probability (percent) encoded by American odds; None for missing or zero odds."""
        if _is_absent(american_odds) or american_odds == 0:
            return None
        if american_odds > 0:
            return 100 / (american_odds + 100) * 100
        return abs(american_odds) / (abs(american_odds) + 100) * 100

    @staticmethod
    def edge(confidence: Optional[float], implied_probability: Optional[float]) -> Optional[float]:
        """Model confidence minus implied probability, both in percentage points."""
        if _is_absent(confidence) or _is_absent(implied_probability):
            return None
        return confidence - implied_probability

    @staticmethod
    def format_american_odds(american_odds: int) -> str:
        return f"+{american_odds}" if american_odds > 0 else str(american_odds)

    @staticmethod
    def decimal_to_american(decimal_odds: float) -> int:
        """Convert decimal odds to American odds."""
        if decimal_odds <= 1:
            raise ValueError(f"Invalid decimal odds: {decimal_odds}")

        if decimal_odds >= 2.0:
            # Positive American odds
            return int(round((decimal_odds - 1) * 100))
        else:
            # Negative American odds
            return int(round(-100 / (decimal_odds - 1)))

    @staticmethod
    def american_to_decimal(american_odds: int) -> float:
        """Convert American odds to decimal odds."""
        if american_odds == 0:
            raise ValueError("American odds cannot be zero")
        if american_odds > 0:
            return 1 + (american_odds / 100)
        else:
            return 1 + (100 / abs(american_odds))

    @staticmethod
    def decimal_to_implied_prob(decimal_odds: float) -> float:
        """Convert decimal odds to implied probability."""
        if decimal_odds <= 1:
            raise ValueError(f"Invalid decimal odds: {decimal_odds}")
        return 1 / decimal_odds

    @staticmethod
    def implied_prob_to_decimal(prob: float) -> float:
        """Convert implied probability to decimal odds."""
        if prob <= 0 or prob >= 1:
            raise ValueError(f"Probability must be between 0 and 1: {prob}")
        return 1 / prob


def calculate_value_rating(edge: float, confidence: float) -> int:
    """1-5 star rating; thresholds are inclusive and evaluated high to low."""
    for min_edge, min_confidence, stars in VALUE_RATING_THRESHOLDS:
        if edge >= min_edge and confidence >= min_confidence:
            return stars
    return 1


def combined_implied_probability(implied_probabilities: Sequence[float]) -> float:
    """Product of independent leg probabilities, in percent."""
    return float(np.prod([p / 100 for p in implied_probabilities]) * 100)


def compound_return(american_odds: Sequence[int]) -> float:
    """Profit (percent of stake) of a parlay over the given legs."""
    factors = [OddsConverter.american_to_decimal(odds) for odds in american_odds]
    return float((np.prod(factors) - 1) * 100)


def calculate_expected_value(
    prob: float,
    odds: float,
    format: str = 'decimal'
) -> float:
    """
    Calculate expected value of a bet.

    Args:
        prob: True probability of winning (0-1)
        odds: Offered odds
        format: Odds format ('decimal' or 'american')

    Returns:
        Expected value as percentage
    """
    if format == 'american':
        odds = OddsConverter.american_to_decimal(odds)

    ev = (prob * odds) - 1
    return ev * 100  # Return as percentage
