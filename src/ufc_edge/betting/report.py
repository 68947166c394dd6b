"""
Market report structures.

MarketReport and its sections are plain dataclasses whose field names form
the stored layout. to_dict()/from_dict() round-trip through JSON-safe
dictionaries so a report can be cached or persisted and read back later.
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Union, get_args, get_origin, get_type_hints

from ..data.models import FightPrediction, MethodBreakdown, canonical_fighter, same_fighter

logger = logging.getLogger(__name__)

REPORT_VERSION = 1


@dataclass
class EnrichedFight:
    """A prediction paired with the market price of its predicted winner"""
    fighter1: str
    fighter2: str
    predicted_winner: Optional[str]
    confidence: float
    method: Optional[str] = None
    probability_breakdown: MethodBreakdown = field(default_factory=MethodBreakdown)
    odds: Optional[int] = None
    implied_probability: Optional[float] = None
    edge: Optional[float] = None

    def __post_init__(self):
        self.predicted_winner = canonical_fighter(self.predicted_winner, self.fighter1, self.fighter2)

    @classmethod
    def from_prediction(cls, prediction: FightPrediction, **market) -> 'EnrichedFight':
        return cls(
            fighter1=prediction.fighter1,
            fighter2=prediction.fighter2,
            predicted_winner=prediction.predicted_winner,
            confidence=prediction.confidence,
            method=prediction.method,
            probability_breakdown=prediction.probability_breakdown,
            **market
        )

    @property
    def fighter(self) -> str:
        return self.predicted_winner

    @property
    def opponent(self) -> str:
        return self.fighter2 if same_fighter(self.predicted_winner, self.fighter1) else self.fighter1

    @property
    def fight_key(self) -> FrozenSet[str]:
        return frozenset((self.fighter1, self.fighter2))

    @property
    def has_odds(self) -> bool:
        return self.odds is not None and self.edge is not None


@dataclass
class ValueOpportunity:
    fighter: str
    opponent: str
    odds: int
    confidence: float
    implied_probability: float
    edge: float
    recommended_bet_size: float
    value_rating: int
    analysis: str = ''
    method: Optional[str] = None
    method_breakdown: Optional[MethodBreakdown] = None

    @property
    def fight_key(self) -> FrozenSet[str]:
        return frozenset((self.fighter, self.opponent))


@dataclass
class ParlayLeg:
    fighter: str
    opponent: str
    odds: int
    confidence: float
    implied_probability: float
    edge: float

    @classmethod
    def from_pick(cls, pick) -> 'ParlayLeg':
        """Build from a ValueOpportunity, EnrichedFight or another leg"""
        return cls(
            fighter=pick.fighter,
            opponent=pick.opponent,
            odds=int(pick.odds),
            confidence=float(pick.confidence),
            implied_probability=float(pick.implied_probability),
            edge=float(pick.edge),
        )

    @property
    def fight_key(self) -> FrozenSet[str]:
        return frozenset((self.fighter, self.opponent))


@dataclass
class ParlayCandidate:
    legs: List[ParlayLeg]
    combined_confidence: float
    combined_implied_probability: float
    potential_return: str
    potential_return_value: float
    edge: float
    rating: int
    is_value_parlay: bool = False

    @property
    def fighters(self) -> List[str]:
        return [leg.fighter for leg in self.legs]


@dataclass
class ParlayRecommendations:
    two_leg: List[ParlayCandidate] = field(default_factory=list)
    three_leg: List[ParlayCandidate] = field(default_factory=list)
    cross_pool: List[ParlayCandidate] = field(default_factory=list)
    overall_risk_rating: int = 0

    def all(self) -> List[ParlayCandidate]:
        return self.two_leg + self.three_leg + self.cross_pool


@dataclass
class MarketMetrics:
    total_fights: int = 0
    fights_with_odds: int = 0
    average_edge: float = 0.0
    market_balance: float = 0.0
    market_efficiency: float = 0.0
    sharpness: str = "Unknown"
    value_opportunities: int = 0


@dataclass
class HighConfidenceFinish:
    fighter: str
    method: str
    probability: float
    confidence: float
    analysis: str = ''


@dataclass
class RoundProp:
    fight: str
    prediction: str
    confidence: float
    analysis: str = ''


@dataclass
class MethodProps:
    high_confidence_finishes: List[HighConfidenceFinish] = field(default_factory=list)
    round_props: List[RoundProp] = field(default_factory=list)


@dataclass
class MarketRisk:
    level: str = "Low"
    score: int = 0
    factors: List[str] = field(default_factory=list)


@dataclass
class IndividualRisk:
    fighter: str
    risk_level: str
    factors: List[str] = field(default_factory=list)


@dataclass
class ExposureLimits:
    max_single_bet: float = 0.0
    max_parlay: float = 0.0
    total_exposure: float = 0.0


@dataclass
class VolatilityAssessment:
    market_efficiency: str = "Normal"
    edge_distribution: str = "Normal"
    recommended_adjustments: List[str] = field(default_factory=list)


@dataclass
class RiskAssessment:
    market_risk: MarketRisk = field(default_factory=MarketRisk)
    individual_risks: List[IndividualRisk] = field(default_factory=list)
    exposure_limits: ExposureLimits = field(default_factory=ExposureLimits)
    volatility: VolatilityAssessment = field(default_factory=VolatilityAssessment)


@dataclass
class BankrollStrategy:
    straight_bet_allocation: float = 0.0
    parlay_allocation: float = 0.0
    reserve_allocation: float = 100.0
    max_straight_bet_size: float = 0.0
    max_parlay_bet_size: float = 0.0


@dataclass
class EventDetails:
    name: str = ''
    date: Optional[str] = None
    location: Optional[str] = None
    model_used: Optional[str] = None


@dataclass
class MarketReport:
    event_details: EventDetails = field(default_factory=EventDetails)
    market_overview: MarketMetrics = field(default_factory=MarketMetrics)
    value_picks: List[ValueOpportunity] = field(default_factory=list)
    parlay_recommendations: ParlayRecommendations = field(default_factory=ParlayRecommendations)
    method_props: MethodProps = field(default_factory=MethodProps)
    risk_assessment: RiskAssessment = field(default_factory=RiskAssessment)
    bankroll_strategy: BankrollStrategy = field(default_factory=BankrollStrategy)
    generated_at: str = field(default_factory=lambda: datetime.now().isoformat())
    version: int = REPORT_VERSION

    @classmethod
    def empty(cls, event_details: Optional[EventDetails] = None) -> 'MarketReport':
        return cls(event_details=event_details or EventDetails())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MarketReport':
        return _dataclass_from_dict(cls, data)

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, payload: str) -> 'MarketReport':
        return cls.from_dict(json.loads(payload))


def _build_value(type_hint: Any, value: Any) -> Any:
    if value is None:
        return None

    origin = get_origin(type_hint)
    if origin is Union:
        options = [arg for arg in get_args(type_hint) if arg is not type(None)]
        return _build_value(options[0], value) if len(options) == 1 else value
    if origin is list:
        (item_type,) = get_args(type_hint)
        return [_build_value(item_type, item) for item in value]
    if origin is dict:
        return dict(value)
    if is_dataclass(type_hint):
        return _dataclass_from_dict(type_hint, value)
    if isinstance(type_hint, type) and issubclass(type_hint, Enum):
        return type_hint(value)
    return value


def _dataclass_from_dict(cls, data: Dict[str, Any]):
    """Rebuild a (nested) dataclass from its asdict() form; unknown keys are ignored"""
    hints = get_type_hints(cls)
    kwargs = {}
    for f in fields(cls):
        if f.init and f.name in data:
            kwargs[f.name] = _build_value(hints[f.name], data[f.name])
    return cls(**kwargs)
