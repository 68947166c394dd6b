"""
Unit tests for the market value engine.
"""

import pytest

from ufc_edge.betting.market_analysis import MarketValueEngine
from ufc_edge.betting.report import (
    EnrichedFight,
    EventDetails,
    MarketMetrics,
    MarketReport,
    ParlayRecommendations,
    ValueOpportunity,
)
from ufc_edge.data.models import FightPrediction, MethodBreakdown
from ufc_edge.utils.unified_config import MarketConfig


@pytest.fixture
def engine():
    return MarketValueEngine()


@pytest.fixture
def enriched(engine, parsed_predictions, mock_quotes):
    return engine.enrich_fights(parsed_predictions, mock_quotes)


def _opportunity(edge, confidence=80, odds=100, fighter='Alpha'):
    return ValueOpportunity(fighter=fighter, opponent='Opponent', odds=odds, confidence=confidence,
                            implied_probability=confidence - edge, edge=edge,
                            recommended_bet_size=0.0, value_rating=1)


class TestEnrichment:
    """Attaching market prices to predictions"""

    def test_prices_predicted_winner(self, enriched):
        alpha = enriched[0]

        assert alpha.odds == 100
        assert alpha.implied_probability == pytest.approx(50.0)
        assert alpha.edge == pytest.approx(30.0)
        assert alpha.opponent == 'Bravo'

    def test_pairing_is_case_insensitive_and_unordered(self, enriched):
        charlie = enriched[1]

        assert charlie.odds == -120
        assert charlie.edge == pytest.approx(78 - 54.5454, abs=1e-3)

    def test_unpriced_fight_keeps_none(self, enriched):
        golf = enriched[3]

        assert golf.odds is None
        assert golf.implied_probability is None
        assert golf.edge is None
        assert not golf.has_odds

    def test_missing_winner_only_unprices_that_fight(self, engine, parsed_predictions, mock_quotes):
        alone = engine.compute_market_analysis(parsed_predictions[:1], mock_quotes)
        no_winner = FightPrediction('Echo', 'Foxtrot', predicted_winner=None, confidence=90,
                                    probability_breakdown=MethodBreakdown(ko_tko=80))
        mixed = engine.compute_market_analysis([parsed_predictions[0], no_winner], mock_quotes)

        assert [p.fighter for p in alone.value_picks] == ['Alpha']
        assert [p.fighter for p in mixed.value_picks] == ['Alpha']
        assert mixed.market_overview.total_fights == 2
        assert mixed.market_overview.fights_with_odds == 1
        assert [f.fighter for f in mixed.method_props.high_confidence_finishes] == ['Alpha']

    def test_winner_outside_the_bout_is_unpriced(self, engine, mock_quotes):
        prediction = FightPrediction('Alpha', 'Bravo', predicted_winner='Zulu', confidence=80)

        assert not engine.enrich_fights([prediction], mock_quotes)[0].has_odds

    def test_winner_case_is_normalised(self, engine, mock_quotes):
        prediction = FightPrediction('Alpha', 'Bravo', predicted_winner='alpha', confidence=80)
        fight = engine.enrich_fights([prediction], mock_quotes)[0]

        assert fight.fighter == 'Alpha'
        assert fight.opponent == 'Bravo'
        assert fight.odds == 100

        opportunity = engine.identify_value_opportunities([fight])[0]
        assert (opportunity.fighter, opportunity.opponent) == ('Alpha', 'Bravo')

    def test_directly_built_fight_resolves_opponent(self):
        fight = EnrichedFight(fighter1='Jon Jones', fighter2='Stipe Miocic', predicted_winner='jon jones',
                              confidence=70)

        assert fight.fighter == 'Jon Jones'
        assert fight.opponent == 'Stipe Miocic'


class TestBetSizing:
    """Quarter-Kelly sizing, clipped to [0, 5] and rounded to 0.1"""

    def test_clipped_to_max(self, engine):
        assert engine.calculate_optimal_bet_size(55, 80) == 5.0

    def test_in_range_stake(self, engine):
        assert engine.calculate_optimal_bet_size(12, 90) == 1.7

    def test_never_negative(self, engine):
        assert engine.calculate_optimal_bet_size(10, 70) == 0.0
        assert engine.calculate_optimal_bet_size(-5, 60) == 0.0
        assert engine.calculate_optimal_bet_size(0, 60) == 0.0

    def test_configurable_fraction(self):
        engine = MarketValueEngine(MarketConfig(kelly_fraction=0.5))
        assert engine.calculate_optimal_bet_size(12, 90) == 3.3


class TestMarketMetrics:
    def test_metrics(self, engine, enriched):
        metrics = engine.calculate_market_metrics(enriched)
        edges = [30.0, 78 - 600 / 11, 60 - 200 / 3]
        implied = [50.0, 600 / 11, 200 / 3]

        assert metrics.total_fights == 4
        assert metrics.fights_with_odds == 3
        assert metrics.average_edge == pytest.approx(sum(edges) / 3)
        assert metrics.market_balance == pytest.approx(abs(100 - sum(implied) / 3))
        assert metrics.market_efficiency == pytest.approx(100 - abs(sum(edges) / 3) * 10)
        assert metrics.sharpness == 'Low'
        assert metrics.value_opportunities == 2

    def test_no_odds(self, engine, parsed_predictions):
        metrics = engine.calculate_market_metrics(engine.enrich_fights(parsed_predictions, []))

        assert metrics.total_fights == 4
        assert metrics.fights_with_odds == 0
        assert metrics.average_edge == 0.0
        assert metrics.market_efficiency == 0.0
        assert metrics.sharpness == 'Unknown'


class TestValueOpportunities:
    def test_identified_and_sorted(self, engine, enriched):
        opportunities = engine.identify_value_opportunities(enriched)

        assert [o.fighter for o in opportunities] == ['Alpha', 'Charlie']
        alpha = opportunities[0]
        assert alpha.value_rating == 5
        assert alpha.recommended_bet_size == 3.3
        assert alpha.method == 'KO/TKO'
        assert alpha.analysis == (
            "Strong Value Play: Significant edge against market odds. "
            "Strong KO/TKO probability (70%). "
            "High model confidence supports value"
        )

    def test_moderate_value_text(self, engine):
        fight = EnrichedFight('A', 'B', 'A', 62.0, probability_breakdown=MethodBreakdown(30, 20, 50),
                              odds=120, implied_probability=45.45, edge=7.0)
        assert engine.generate_value_analysis(fight) == "Moderate Value: Small but notable edge"


class TestRisk:
    """Market and per-pick risk assessment"""

    def test_market_risk_levels(self, engine):
        calm = engine.calculate_market_risk(MarketMetrics(market_efficiency=90, market_balance=3))
        assert (calm.level, calm.score, calm.factors) == ('Low', 0, [])

        imbalanced = engine.calculate_market_risk(MarketMetrics(market_efficiency=90, market_balance=20))
        assert imbalanced.level == 'Moderate'
        assert imbalanced.factors == ["Significant market imbalance detected"]

        risky = engine.calculate_market_risk(MarketMetrics(market_efficiency=50, market_balance=20))
        assert risky.level == 'High'
        assert risky.score == 5

    def test_individual_risk(self, engine):
        underdog = _opportunity(edge=20, confidence=60, odds=200)

        assert engine.calculate_individual_risk_level(underdog) == 'High'
        assert engine.identify_risk_factors(underdog) == [
            "Large edge suggests potential market inefficiency",
            "Lower confidence indicates prediction uncertainty",
            "Underdog position increases variance",
        ]
        assert engine.calculate_individual_risk_level(_opportunity(edge=20)) == 'Medium'
        assert engine.calculate_individual_risk_level(_opportunity(edge=8)) == 'Low'

    def test_exposure_limits(self, engine):
        limits = engine.calculate_exposure_limits(MarketMetrics(market_efficiency=80))
        assert limits.max_single_bet == pytest.approx(4.0)
        assert limits.max_parlay == pytest.approx(1.6)
        assert limits.total_exposure == pytest.approx(16.0)

    def test_exposure_limits_floor_at_zero(self, engine):
        limits = engine.calculate_exposure_limits(MarketMetrics(market_efficiency=-55))
        assert (limits.max_single_bet, limits.max_parlay, limits.total_exposure) == (0.0, 0.0, 0.0)

    def test_volatility(self, engine):
        wide = [_opportunity(edge=30), _opportunity(edge=6)]
        assessment = engine.assess_volatility(MarketMetrics(market_efficiency=60), wide)

        assert assessment.market_efficiency == 'High'
        assert assessment.edge_distribution == 'Wide'
        assert assessment.recommended_adjustments == [
            "Reduce position sizes by 25%",
            "Focus on highest confidence plays",
        ]
        assert engine.calculate_edge_distribution([]) == 'Normal'


class TestBankrollStrategy:
    def test_without_opportunities(self, engine):
        strategy = engine.calculate_bankroll_strategy([], ParlayRecommendations())

        assert strategy.straight_bet_allocation == 35.0
        assert strategy.parlay_allocation == 10.0
        assert strategy.reserve_allocation == 55.0
        assert strategy.max_straight_bet_size == 0.0
        assert strategy.max_parlay_bet_size == 0.5

    def test_allocations_are_capped(self, engine):
        opportunities = [_opportunity(edge=12 + i) for i in range(6)]
        strategy = engine.calculate_bankroll_strategy(opportunities, ParlayRecommendations())

        assert strategy.straight_bet_allocation == 60.0
        assert strategy.max_straight_bet_size == pytest.approx(3.7)
        assert strategy.straight_bet_allocation + strategy.parlay_allocation + strategy.reserve_allocation == 100.0


class TestMethodProps:
    def test_finishes_and_round_props(self, engine, enriched):
        props = engine.analyze_method_props(enriched)

        finishes = {f.fighter: f for f in props.high_confidence_finishes}
        assert set(finishes) == {'Alpha', 'Charlie'}
        assert finishes['Alpha'].method == 'KO/TKO'
        assert finishes['Alpha'].probability == 70
        assert finishes['Alpha'].analysis == (
            "Strong KO/TKO potential (70% probability). "
            "High confidence in winner prediction reinforces method likelihood"
        )
        assert finishes['Charlie'].method == 'Submission'

        rounds = {r.fight: r for r in props.round_props}
        assert set(rounds) == {'Alpha vs Bravo', 'Charlie vs Delta'}
        assert rounds['Alpha vs Bravo'].prediction == 'Under 2.5'
        assert rounds['Alpha vs Bravo'].confidence == 80
        assert rounds['Alpha vs Bravo'].analysis == "High finish probability (80.0%) suggests early ending"
        assert rounds['Charlie vs Delta'].confidence == 85

    def test_round_prop_text_tiers(self, engine):
        def fight(ko, sub):
            return EnrichedFight('A', 'B', 'A', 60.0, probability_breakdown=MethodBreakdown(ko, sub, 100 - ko - sub))

        assert engine.generate_round_prop_analysis(fight(45, 15)) == (
            "Moderate finish potential (60.0%) with timing uncertainty"
        )
        assert engine.generate_round_prop_analysis(fight(20, 10)) == (
            "Fight likely to extend, suggesting over consideration"
        )


class TestComputeMarketAnalysis:
    """Full report assembly"""

    def test_report(self, engine, parsed_predictions, mock_quotes):
        event = EventDetails(name='UFC Fight Night', model_used='gpt')
        report = engine.compute_market_analysis(parsed_predictions, mock_quotes, event)

        assert report.event_details.name == 'UFC Fight Night'
        assert [p.fighter for p in report.value_picks] == ['Alpha', 'Charlie']
        assert report.market_overview.sharpness == 'Low'
        assert report.risk_assessment.market_risk.level == 'High'
        assert report.risk_assessment.exposure_limits.max_single_bet == 0.0

        two_leg = report.parlay_recommendations.two_leg
        assert len(two_leg) == 1
        assert set(two_leg[0].fighters) == {'Alpha', 'Charlie'}
        assert two_leg[0].potential_return == '+267'
        assert report.parlay_recommendations.overall_risk_rating == 3

        bankroll = report.bankroll_strategy
        assert bankroll.straight_bet_allocation == 45.0
        assert bankroll.parlay_allocation == 13.0
        assert bankroll.reserve_allocation == 42.0
        assert bankroll.max_straight_bet_size == 5.0
        assert bankroll.max_parlay_bet_size == 2.0

    def test_idempotent(self, engine, parsed_predictions, mock_quotes):
        first = engine.compute_market_analysis(parsed_predictions, mock_quotes).to_dict()
        second = engine.compute_market_analysis(parsed_predictions, mock_quotes).to_dict()
        first.pop('generated_at')
        second.pop('generated_at')

        assert first == second

    def test_internal_fault_gives_empty_report(self, engine, parsed_predictions, mock_quotes, monkeypatch):
        def broken(fights):
            raise ZeroDivisionError("boom")

        monkeypatch.setattr(engine, 'calculate_market_metrics', broken)
        report = engine.compute_market_analysis(parsed_predictions, mock_quotes, EventDetails(name='UFC 300'))

        assert isinstance(report, MarketReport)
        assert report.value_picks == []
        assert report.event_details.name == 'UFC 300'
