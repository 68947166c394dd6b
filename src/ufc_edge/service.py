"""
UFC Edge Analysis Service

Public entry points tying the analysers together:
- compare_matchup / classify_style / analyze_common_opponents
- build_advantage_bundle: the assembled fight-level bundle
- compute_market_analysis / compose_parlays: pure market calculations
- generate_market_report: cached per event and model, odds from the odds client
- validate_fighter_stats: data freshness check

Usage:
    repository = DataFrameFightRepository.from_csv("fighters.csv", "fights.csv")
    service = EdgeAnalysisService(repository, odds_client=OddsAPIClient(config.odds, cache_config=config.cache))
    bundle = await service.build_advantage_bundle("Jon Jones", "Stipe Miocic")
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .analysis.common_opponents import CommonOpponentAnalyzer, CommonOpponentReport
from .analysis.matchup_comparator import MatchupAnalysis, compare_matchup
from .analysis.style_classifier import StyleClassifier, StyleLabel
from .betting.market_analysis import MarketValueEngine
from .betting.parlay_builder import ParlayComposer
from .betting.report import EventDetails, MarketReport, ParlayRecommendations
from .data.models import FightOddsQuote, FightPrediction
from .data.repository import FightDataRepository
from .data.stats_service import FighterStatsService, StatsValidation
from .odds.odds_client import OddsAPIClient
from .utils.cache import TTLCache, market_analysis_key
from .utils.logging_config import DataUnavailableError, MalformedInputError, create_performance_logger
from .utils.unified_config import ModelSelectionStore, UnifiedConfig

logger = logging.getLogger(__name__)

PredictionLike = Union[FightPrediction, Mapping[str, Any]]


@dataclass
class AdvantageBundle:
    """Everything known about one matchup from the fighter data alone"""
    fighter1: str
    fighter2: str
    matchup: MatchupAnalysis
    fighter1_style: StyleLabel
    fighter2_style: StyleLabel
    common_opponents: CommonOpponentReport

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _parse_predictions(predictions: Optional[Sequence[PredictionLike]]) -> List[FightPrediction]:
    """Convert prediction dicts, skipping entries that cannot be read"""
    parsed = []
    for index, prediction in enumerate(predictions or []):
        if isinstance(prediction, FightPrediction):
            parsed.append(prediction)
            continue
        try:
            if not isinstance(prediction, Mapping):
                raise MalformedInputError(f"Prediction is not a mapping: {type(prediction).__name__}",
                                          raw_value=prediction)
            parsed.append(FightPrediction.from_dict(prediction))
        except MalformedInputError as e:
            logger.warning(f"Skipping prediction {index}: {e}", extra={'field': e.field_name})
    return parsed


class EdgeAnalysisService:
    """Facade over the fighter analysis and market value components"""

    def __init__(self, repository: FightDataRepository,
                 odds_client: Optional[OddsAPIClient] = None,
                 cache: Optional[TTLCache] = None,
                 config: Optional[UnifiedConfig] = None,
                 model_store: Optional[ModelSelectionStore] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.config = config or UnifiedConfig()
        self.repository = repository
        self.cache = cache if cache is not None else TTLCache(max_entries=self.config.cache.max_entries)
        self.odds_client = odds_client
        self.model_store = model_store or ModelSelectionStore()

        self.stats = FighterStatsService(repository, self.cache, self.config.cache,
                                         self.config.freshness, clock=clock)
        self.style_classifier = StyleClassifier(repository)
        self.common_opponents = CommonOpponentAnalyzer(repository, self.style_classifier, clock=clock)
        self.parlay_composer = ParlayComposer(self.config.parlay)
        self.market_engine = MarketValueEngine(self.config.market, self.parlay_composer)
        self.performance = create_performance_logger(__name__)

    # ------------------------------------------------------------------
    # Fighter analysis
    # ------------------------------------------------------------------

    async def compare_matchup(self, fighter1: str, fighter2: str, strict: bool = False) -> MatchupAnalysis:
        """
        Stat and experience comparison.

        Storage failures propagate as LookupFailedError. Missing stats give
        empty comparison sections unless strict is set, in which case
        DataUnavailableError is raised.
        """
        f1, f2, f1_history, f2_history = await asyncio.gather(
            self.stats.get_fighter_stats(fighter1),
            self.stats.get_fighter_stats(fighter2),
            self.repository.get_fight_history(fighter1),
            self.repository.get_fight_history(fighter2),
        )

        if strict:
            for name, profile in ((fighter1, f1), (fighter2, f2)):
                if profile is None:
                    raise DataUnavailableError(f"No stats available for {name}", subject=name)

        return compare_matchup(f1, f2, fighter1, fighter2, f1_history, f2_history)

    async def classify_style(self, fighter: str) -> StyleLabel:
        return await self.style_classifier.classify(fighter)

    async def analyze_common_opponents(self, fighter1: str, fighter2: str) -> CommonOpponentReport:
        return await self.common_opponents.analyze(fighter1, fighter2)

    async def build_advantage_bundle(self, fighter1: str, fighter2: str) -> AdvantageBundle:
        logger.info(f"Building advantage bundle for {fighter1} vs {fighter2}",
                    extra={'fighter_a': fighter1, 'fighter_b': fighter2})

        matchup, style1, style2, common = await asyncio.gather(
            self.compare_matchup(fighter1, fighter2),
            self.classify_style(fighter1),
            self.classify_style(fighter2),
            self.analyze_common_opponents(fighter1, fighter2),
        )

        return AdvantageBundle(
            fighter1=fighter1,
            fighter2=fighter2,
            matchup=matchup,
            fighter1_style=style1,
            fighter2_style=style2,
            common_opponents=common,
        )

    async def validate_fighter_stats(self, fighter: str) -> StatsValidation:
        return await self.stats.validate(fighter)

    # ------------------------------------------------------------------
    # Market analysis
    # ------------------------------------------------------------------

    def compute_market_analysis(self, predictions: Sequence[PredictionLike],
                                quotes: Sequence[FightOddsQuote],
                                event_details: Optional[EventDetails] = None) -> MarketReport:
        return self.market_engine.compute_market_analysis(
            _parse_predictions(predictions), quotes, event_details
        )

    def compose_parlays(self, picks: Sequence[Any]) -> ParlayRecommendations:
        return self.parlay_composer.compose(picks)

    async def fetch_quotes(self, predictions: Sequence[FightPrediction],
                           bookmaker: Optional[str] = None) -> List[FightOddsQuote]:
        """Quotes for the predicted fights; empty when no odds client is configured"""
        if self.odds_client is None:
            logger.warning("No odds client configured; market report will carry no prices")
            return []
        fights = [(p.fighter1, p.fighter2) for p in predictions]
        return await self.odds_client.get_quotes_for_card(fights, bookmaker)

    async def generate_market_report(self, event: EventDetails, predictions: Sequence[PredictionLike],
                                     server_id: Optional[str] = None,
                                     bookmaker: Optional[str] = None) -> MarketReport:
        """
        Market report for an event under the server's selected model.

        Reports are cached for CacheConfig.market_analysis_ttl per event and
        model. OddsLookupError from the odds feed propagates to the caller.
        """
        model = self.model_store.get_model(server_id)
        key = market_analysis_key(event.name, model)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Using cached market analysis for {event.name}",
                        extra={'event': event.name, 'model': model})
            return MarketReport.from_dict(cached)

        parsed = _parse_predictions(predictions)
        details = EventDetails(name=event.name, date=event.date, location=event.location, model_used=model)

        with self.performance.timed_operation('generate_market_report'):
            quotes = await self.fetch_quotes(parsed, bookmaker)
            report = self.market_engine.compute_market_analysis(parsed, quotes, details)

        self.cache.set(key, report.to_dict(), ttl=self.config.cache.market_analysis_ttl)
        logger.info(f"Market analysis for {event.name}: {len(report.value_picks)} value picks, "
                    f"{len(report.parlay_recommendations.all())} parlays",
                    extra={'event': event.name, 'model': model})
        return report
