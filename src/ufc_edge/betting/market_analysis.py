"""
Market Value Analysis

Turns model predictions plus bookmaker quotes into a MarketReport:
- per-fight implied probability and edge
- value opportunities (edge > 5) with quarter-Kelly bet sizing and 1-5 star ratings
- aggregate market metrics (balance, efficiency, sharpness)
- market and per-pick risk, exposure limits and volatility notes
- bankroll allocation between straight bets, parlays and reserve
- method and round prop suggestions from the predicted method breakdown

Everything here is a pure function of its inputs. compute_market_analysis()
never raises; an internal fault produces an empty report.
"""

import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..data.models import FightOddsQuote, FightPrediction
from ..utils.logging_config import ErrorHandler
from ..utils.unified_config import MarketConfig
from .odds_utils import OddsConverter, calculate_value_rating
from .parlay_builder import ParlayComposer
from .report import (
    BankrollStrategy,
    EnrichedFight,
    EventDetails,
    ExposureLimits,
    HighConfidenceFinish,
    IndividualRisk,
    MarketMetrics,
    MarketReport,
    MarketRisk,
    MethodProps,
    ParlayRecommendations,
    RiskAssessment,
    RoundProp,
    ValueOpportunity,
    VolatilityAssessment,
)

logger = logging.getLogger(__name__)


class MarketValueEngine:
    """Single-bet value, risk and bankroll calculations for one event"""

    def __init__(self, config: Optional[MarketConfig] = None,
                 parlay_composer: Optional[ParlayComposer] = None):
        self.config = config or MarketConfig()
        self.parlay_composer = parlay_composer or ParlayComposer()
        self.error_handler = ErrorHandler(logger)

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    @staticmethod
    def find_quote(prediction: FightPrediction, quotes: Iterable[FightOddsQuote]) -> Optional[FightOddsQuote]:
        for quote in quotes:
            if quote.matches(prediction.fighter1, prediction.fighter2):
                return quote
        return None

    def enrich_fights(self, predictions: Sequence[FightPrediction],
                      quotes: Sequence[FightOddsQuote]) -> List[EnrichedFight]:
        """
        Attach the predicted winner's odds, implied probability and edge.

        A fight with no quote, or whose predicted winner is missing or not
        one of its two fighters, stays unpriced.
        """
        enriched = []
        for prediction in predictions:
            quote = self.find_quote(prediction, quotes)
            odds = quote.odds_for(prediction.predicted_winner) if quote else None
            if prediction.predicted_winner not in (prediction.fighter1, prediction.fighter2):
                logger.warning(f"Predicted winner {prediction.predicted_winner!r} is not in "
                               f"{prediction.fighter1} vs {prediction.fighter2}; leaving it unpriced")
            # 0 is never a valid American price
            if not odds:
                enriched.append(EnrichedFight.from_prediction(prediction))
                continue

            implied = OddsConverter.implied_probability(odds)
            enriched.append(EnrichedFight.from_prediction(
                prediction,
                odds=odds,
                implied_probability=implied,
                edge=OddsConverter.edge(prediction.confidence, implied),
            ))
        return enriched

    # ------------------------------------------------------------------
    # Single bets
    # ------------------------------------------------------------------

    def calculate_optimal_bet_size(self, edge: float, confidence: float) -> float:
        """Fractional Kelly stake in percent of bankroll, clipped to [0, max_bet_size]"""
        probability = confidence / 100
        bet_size = 0.0
        if edge > 0:
            bet_size = (probability - (1 - probability) / (edge / 100)) * self.config.kelly_fraction

        return round(float(np.clip(bet_size * 100, 0, self.config.max_bet_size)), 1)

    @staticmethod
    def calculate_value_rating(edge: float, confidence: float) -> int:
        return calculate_value_rating(edge, confidence)

    @staticmethod
    def generate_value_analysis(fight: EnrichedFight) -> str:
        notes = []

        if fight.edge > 15:
            notes.append("Strong Value Play: Significant edge against market odds")
        elif fight.edge > 10:
            notes.append("Good Value: Clear edge against market odds")
        else:
            notes.append("Moderate Value: Small but notable edge")

        breakdown = fight.probability_breakdown
        methods = [("KO/TKO", breakdown.ko_tko), ("Submission", breakdown.submission),
                   ("Decision", breakdown.decision)]
        method, highest = max(methods, key=lambda m: m[1])
        if highest > 60:
            notes.append(f"Strong {method} probability ({highest:g}%)")

        if fight.confidence >= 75:
            notes.append("High model confidence supports value")

        return ". ".join(notes)

    def identify_value_opportunities(self, fights: Sequence[EnrichedFight]) -> List[ValueOpportunity]:
        opportunities = [
            ValueOpportunity(
                fighter=fight.fighter,
                opponent=fight.opponent,
                odds=fight.odds,
                confidence=fight.confidence,
                implied_probability=fight.implied_probability,
                edge=fight.edge,
                recommended_bet_size=self.calculate_optimal_bet_size(fight.edge, fight.confidence),
                value_rating=self.calculate_value_rating(fight.edge, fight.confidence),
                analysis=self.generate_value_analysis(fight),
                method=fight.method,
                method_breakdown=fight.probability_breakdown,
            )
            for fight in fights
            if fight.has_odds and fight.edge > self.config.value_edge_threshold
        ]
        return sorted(opportunities, key=lambda o: o.edge, reverse=True)

    # ------------------------------------------------------------------
    # Market metrics
    # ------------------------------------------------------------------

    def calculate_market_metrics(self, fights: Sequence[EnrichedFight]) -> MarketMetrics:
        priced = [f for f in fights if f.has_odds]
        metrics = MarketMetrics(total_fights=len(fights), fights_with_odds=len(priced))
        if not priced:
            return metrics

        edges = np.array([f.edge for f in priced])
        implied = np.array([f.implied_probability for f in priced])

        metrics.average_edge = float(edges.mean())
        metrics.market_balance = float(abs(100 - implied.mean()))
        metrics.market_efficiency = 100 - abs(metrics.average_edge) * 10
        metrics.value_opportunities = int((edges > self.config.value_edge_threshold).sum())

        if metrics.market_balance < 5:
            metrics.sharpness = "High"
        elif metrics.market_balance < 10:
            metrics.sharpness = "Medium"
        else:
            metrics.sharpness = "Low"

        return metrics

    # ------------------------------------------------------------------
    # Risk
    # ------------------------------------------------------------------

    def calculate_market_risk(self, metrics: MarketMetrics) -> MarketRisk:
        risk = MarketRisk()

        if metrics.market_efficiency < self.config.efficiency_risk_threshold:
            risk.score += 3
            risk.factors.append("Low market efficiency indicates higher variance")

        if metrics.market_balance > self.config.balance_risk_threshold:
            risk.score += 2
            risk.factors.append("Significant market imbalance detected")

        if risk.score >= 4:
            risk.level = "High"
        elif risk.score >= 2:
            risk.level = "Moderate"
        else:
            risk.level = "Low"

        return risk

    @staticmethod
    def calculate_individual_risk_level(opportunity: ValueOpportunity) -> str:
        score = 0
        if opportunity.edge > 15:
            score += 2
        if opportunity.confidence < 65:
            score += 2
        if opportunity.odds > 150:
            score += 1

        if score >= 4:
            return "High"
        if score >= 2:
            return "Medium"
        return "Low"

    @staticmethod
    def identify_risk_factors(opportunity: ValueOpportunity) -> List[str]:
        factors = []
        if opportunity.edge > 15:
            factors.append("Large edge suggests potential market inefficiency")
        if opportunity.confidence < 65:
            factors.append("Lower confidence indicates prediction uncertainty")
        if opportunity.odds > 150:
            factors.append("Underdog position increases variance")
        return factors

    def calculate_individual_risks(self, opportunities: Sequence[ValueOpportunity]) -> List[IndividualRisk]:
        return [
            IndividualRisk(
                fighter=opp.fighter,
                risk_level=self.calculate_individual_risk_level(opp),
                factors=self.identify_risk_factors(opp),
            )
            for opp in opportunities
        ]

    def calculate_exposure_limits(self, metrics: MarketMetrics) -> ExposureLimits:
        """Limits scale linearly with market efficiency and never go negative"""
        base = self.config.exposure_base_limit
        factor = metrics.market_efficiency / 100

        return ExposureLimits(
            max_single_bet=max(0.0, min(base, base * factor)),
            max_parlay=max(0.0, min(2.0, base * factor * 0.4)),
            total_exposure=max(0.0, min(base * 4, base * 4 * factor)),
        )

    def calculate_edge_distribution(self, opportunities: Sequence[ValueOpportunity]) -> str:
        if not opportunities:
            return "Normal"
        edges = [o.edge for o in opportunities]
        return "Wide" if max(edges) - min(edges) > self.config.wide_edge_spread else "Normal"

    def assess_volatility(self, metrics: MarketMetrics,
                          opportunities: Sequence[ValueOpportunity]) -> VolatilityAssessment:
        volatile = metrics.market_efficiency < self.config.volatility_efficiency_threshold
        assessment = VolatilityAssessment(
            market_efficiency="High" if volatile else "Normal",
            edge_distribution=self.calculate_edge_distribution(opportunities),
        )

        if volatile:
            assessment.recommended_adjustments.append("Reduce position sizes by 25%")
        if assessment.edge_distribution == "Wide":
            assessment.recommended_adjustments.append("Focus on highest confidence plays")

        return assessment

    def generate_risk_assessment(self, metrics: MarketMetrics,
                                 opportunities: Sequence[ValueOpportunity]) -> RiskAssessment:
        return RiskAssessment(
            market_risk=self.calculate_market_risk(metrics),
            individual_risks=self.calculate_individual_risks(opportunities),
            exposure_limits=self.calculate_exposure_limits(metrics),
            volatility=self.assess_volatility(metrics, opportunities),
        )

    # ------------------------------------------------------------------
    # Bankroll
    # ------------------------------------------------------------------

    def calculate_bankroll_strategy(self, opportunities: Sequence[ValueOpportunity],
                                    parlays: ParlayRecommendations) -> BankrollStrategy:
        quality = sum(1 for o in opportunities if o.edge > self.config.quality_edge_threshold)

        straight = min(60.0, 35.0 + quality * 5)
        parlay = min(25.0, 10.0 + len(parlays.two_leg) * 3)

        max_straight = 0.0
        if opportunities:
            max_straight = min(self.config.max_bet_size, 2 + max(o.edge for o in opportunities) / 10)

        return BankrollStrategy(
            straight_bet_allocation=straight,
            parlay_allocation=parlay,
            reserve_allocation=100.0 - (straight + parlay),
            max_straight_bet_size=max_straight,
            max_parlay_bet_size=min(2.0, 0.5 + parlays.overall_risk_rating / 2),
        )

    # ------------------------------------------------------------------
    # Method props
    # ------------------------------------------------------------------

    @staticmethod
    def generate_method_analysis(fight: EnrichedFight) -> str:
        breakdown = fight.probability_breakdown
        notes = []

        if breakdown.ko_tko > breakdown.submission and breakdown.ko_tko > breakdown.decision:
            notes.append(f"Strong KO/TKO potential ({breakdown.ko_tko:g}% probability)")
        elif breakdown.submission > breakdown.ko_tko and breakdown.submission > breakdown.decision:
            notes.append(f"High submission threat ({breakdown.submission:g}% probability)")

        if fight.confidence > 70:
            notes.append("High confidence in winner prediction reinforces method likelihood")

        return ". ".join(notes)

    @staticmethod
    def generate_round_prop_analysis(fight: EnrichedFight) -> str:
        finish = fight.probability_breakdown.finish_probability
        if finish > 70:
            return f"High finish probability ({finish:.1f}%) suggests early ending"
        if finish > 50:
            return f"Moderate finish potential ({finish:.1f}%) with timing uncertainty"
        return "Fight likely to extend, suggesting over consideration"

    def analyze_method_props(self, fights: Sequence[EnrichedFight]) -> MethodProps:
        props = MethodProps()

        for fight in fights:
            breakdown = fight.probability_breakdown
            ko, sub = breakdown.ko_tko, breakdown.submission

            if fight.predicted_winner and (ko > 65 or sub > 60):
                props.high_confidence_finishes.append(HighConfidenceFinish(
                    fighter=fight.predicted_winner,
                    method="KO/TKO" if ko > sub else "Submission",
                    probability=max(ko, sub),
                    confidence=fight.confidence,
                    analysis=self.generate_method_analysis(fight),
                ))

            if ko > 50 or sub > 40:
                finish = ko + sub
                props.round_props.append(RoundProp(
                    fight=f"{fight.fighter1} vs {fight.fighter2}",
                    prediction="Under 2.5" if finish > 70 else "Over 1.5",
                    confidence=float(np.clip(finish, 60, 85)),
                    analysis=self.generate_round_prop_analysis(fight),
                ))

        return props

    # ------------------------------------------------------------------
    # Report
    # ------------------------------------------------------------------

    def build_report(self, fights: Sequence[EnrichedFight],
                     event_details: Optional[EventDetails] = None) -> MarketReport:
        metrics = self.calculate_market_metrics(fights)
        opportunities = self.identify_value_opportunities(fights)
        parlays = self.parlay_composer.compose(fights)

        return MarketReport(
            event_details=event_details or EventDetails(),
            market_overview=metrics,
            value_picks=opportunities,
            parlay_recommendations=parlays,
            method_props=self.analyze_method_props(fights),
            risk_assessment=self.generate_risk_assessment(metrics, opportunities),
            bankroll_strategy=self.calculate_bankroll_strategy(opportunities, parlays),
        )

    def compute_market_analysis(self, predictions: Sequence[FightPrediction],
                                quotes: Sequence[FightOddsQuote],
                                event_details: Optional[EventDetails] = None) -> MarketReport:
        """Full report for an event's predictions; returns an empty report on internal failure"""

        def _compute():
            fights = self.enrich_fights(predictions, quotes or [])
            return self.build_report(fights, event_details)

        return self.error_handler.safe_execute(
            'compute_market_analysis', _compute,
            fallback=lambda: MarketReport.empty(event_details)
        )
