"""
Core data containers for fighters, fights, odds and model predictions.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from ..analysis.method_classifier import DEFAULT_METHOD_CLASSIFIER, MethodCategory
from ..utils.logging_config import MalformedInputError

logger = logging.getLogger(__name__)


def same_fighter(a: Optional[str], b: Optional[str]) -> bool:
    """Case- and whitespace-insensitive name match; missing names never match"""
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def canonical_fighter(name: Optional[str], *candidates: str) -> Optional[str]:
    """The candidate spelling matching name, or name unchanged"""
    for candidate in candidates:
        if same_fighter(name, candidate):
            return candidate
    return name


class Stance(Enum):
    """Fighting stance"""
    ORTHODOX = "Orthodox"
    SOUTHPAW = "Southpaw"
    SWITCH = "Switch"
    UNKNOWN = "Unknown"


class FightResult(str, Enum):
    WIN = "Win"
    LOSS = "Loss"


@dataclass
class FighterProfile:
    """
    Normalized statistics snapshot for one fighter.

    Physical attributes use 0 for unknown. Percentages are held in
    percentage points (58.0 for "58%").
    """
    name: str
    height: int = 0
    reach: int = 0
    weight: float = 0.0
    stance: Stance = Stance.UNKNOWN
    dob: Optional[date] = None
    slpm: float = 0.0
    sapm: float = 0.0
    str_acc: float = 0.0
    str_def: float = 0.0
    td_avg: float = 0.0
    td_acc: float = 0.0
    td_def: float = 0.0
    sub_avg: float = 0.0
    last_updated: Optional[datetime] = None

    def is_stale(self, max_age: timedelta, now: Optional[datetime] = None) -> bool:
        """A profile with no update timestamp is always stale"""
        if self.last_updated is None:
            return True
        now = now or datetime.now()
        return now - self.last_updated > max_age

    def age(self, reference: Optional[date] = None) -> Optional[float]:
        if self.dob is None:
            return None
        reference = reference or date.today()
        return round((reference - self.dob).days / 365.25, 1)


@dataclass(frozen=True)
class FightRecord:
    """Immutable historical fight result"""
    winner: str
    loser: str
    method: str = ''
    date: Optional[date] = None
    weight_class: Optional[str] = None

    @property
    def method_category(self) -> MethodCategory:
        return DEFAULT_METHOD_CLASSIFIER.classify(self.method)

    @property
    def fighters(self) -> FrozenSet[str]:
        return frozenset((self.winner, self.loser))

    def involves(self, name: str) -> bool:
        return name in (self.winner, self.loser)

    def opponent_of(self, name: str) -> Optional[str]:
        if name == self.winner:
            return self.loser
        if name == self.loser:
            return self.winner
        return None


@dataclass
class WinsAndLosses:
    wins: List[FightRecord] = field(default_factory=list)
    losses: List[FightRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.wins) + len(self.losses)


@dataclass
class OpponentBout:
    """One bout seen from a fighter's side"""
    opponent: str
    method: str
    date: Optional[date]
    result: FightResult


@dataclass
class FightOddsQuote:
    """Moneyline quote for one fight from one bookmaker (American odds)"""
    bookmaker: str
    fighter1: str
    fighter2: str
    fighter1_odds: Optional[int] = None
    fighter2_odds: Optional[int] = None
    last_update: Optional[datetime] = None

    def odds_for(self, fighter: Optional[str]) -> Optional[int]:
        if same_fighter(fighter, self.fighter1):
            return self.fighter1_odds
        if same_fighter(fighter, self.fighter2):
            return self.fighter2_odds
        return None

    def matches(self, fighter1: str, fighter2: str) -> bool:
        """Case-insensitive pairing in either fighter order"""
        return ((same_fighter(fighter1, self.fighter1) and same_fighter(fighter2, self.fighter2))
                or (same_fighter(fighter1, self.fighter2) and same_fighter(fighter2, self.fighter1)))


@dataclass
class MethodBreakdown:
    """Predicted probability (percent) of each finish method"""
    ko_tko: float = 0.0
    submission: float = 0.0
    decision: float = 0.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'MethodBreakdown':
        data = data or {}
        return cls(
            ko_tko=float(data.get('ko_tko') or 0),
            submission=float(data.get('submission') or 0),
            decision=float(data.get('decision') or 0),
        )

    @property
    def finish_probability(self) -> float:
        return self.ko_tko + self.submission


@dataclass
class FightPrediction:
    """Structured prediction for one fight as returned by the prediction model"""
    fighter1: str
    fighter2: str
    predicted_winner: Optional[str]
    confidence: float
    method: Optional[str] = None
    probability_breakdown: MethodBreakdown = field(default_factory=MethodBreakdown)

    def __post_init__(self):
        # The model may echo a name in different case; keep the card's spelling
        self.predicted_winner = canonical_fighter(self.predicted_winner, self.fighter1, self.fighter2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FightPrediction':
        """
        Accepts both the model's camelCase keys and snake_case keys.

        Raises:
            MalformedInputError: when a fighter name is missing or a numeric
                field cannot be read
        """
        for key in ('fighter1', 'fighter2'):
            if not data.get(key):
                raise MalformedInputError(f"Prediction is missing {key}", field_name=key, raw_value=data.get(key))

        raw_confidence = data.get('confidence')
        try:
            confidence = float(raw_confidence or 0)
        except (TypeError, ValueError) as e:
            raise MalformedInputError(f"Unreadable confidence: {raw_confidence!r}",
                                      field_name='confidence', raw_value=raw_confidence) from e

        breakdown = data.get('probabilityBreakdown', data.get('probability_breakdown'))
        try:
            probability_breakdown = MethodBreakdown.from_dict(breakdown)
        except (AttributeError, TypeError, ValueError) as e:
            raise MalformedInputError(f"Unreadable probability breakdown: {breakdown!r}",
                                      field_name='probabilityBreakdown', raw_value=breakdown) from e

        return cls(
            fighter1=data['fighter1'],
            fighter2=data['fighter2'],
            predicted_winner=data.get('predictedWinner', data.get('predicted_winner')),
            confidence=confidence,
            method=data.get('method'),
            probability_breakdown=probability_breakdown,
        )

    @property
    def fight_key(self) -> FrozenSet[str]:
        return frozenset((self.fighter1, self.fighter2))
