"""
UFC Edge

Fighter matchup analysis and betting-value engine.
"""

from .analysis.common_opponents import CommonOpponentAnalyzer, CommonOpponentReport
from .analysis.matchup_comparator import MatchupAnalysis, compare_matchup
from .analysis.method_classifier import MethodCategory, MethodClassifier, MethodRule
from .analysis.style_classifier import StyleClassifier, StyleLabel
from .betting.market_analysis import MarketValueEngine
from .betting.odds_utils import OddsConverter, calculate_value_rating
from .betting.parlay_builder import ParlayComposer, ParlayValidator, filter_parlays
from .betting.report import EventDetails, MarketReport
from .data.models import FighterProfile, FightOddsQuote, FightPrediction, FightRecord
from .data.repository import DataFrameFightRepository, FightDataRepository
from .odds.odds_client import OddsAPIClient
from .service import AdvantageBundle, EdgeAnalysisService
from .utils.cache import TTLCache
from .utils.logging_config import (
    ComputationError,
    DataUnavailableError,
    LookupFailedError,
    MalformedInputError,
    OddsLookupError,
    UFCEdgeError,
    setup_logging,
)
from .utils.unified_config import ModelSelectionStore, UnifiedConfig, load_config

__version__ = "1.0.0"

__all__ = [
    'AdvantageBundle',
    'CommonOpponentAnalyzer',
    'CommonOpponentReport',
    'ComputationError',
    'DataFrameFightRepository',
    'DataUnavailableError',
    'EdgeAnalysisService',
    'EventDetails',
    'FightDataRepository',
    'FighterProfile',
    'FightOddsQuote',
    'FightPrediction',
    'FightRecord',
    'LookupFailedError',
    'MalformedInputError',
    'MarketReport',
    'MarketValueEngine',
    'MatchupAnalysis',
    'MethodCategory',
    'MethodClassifier',
    'MethodRule',
    'ModelSelectionStore',
    'OddsAPIClient',
    'OddsConverter',
    'OddsLookupError',
    'ParlayComposer',
    'ParlayValidator',
    'StyleClassifier',
    'StyleLabel',
    'TTLCache',
    'UFCEdgeError',
    'UnifiedConfig',
    'calculate_value_rating',
    'compare_matchup',
    'filter_parlays',
    'load_config',
    'setup_logging',
]
