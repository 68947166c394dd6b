"""
Unified Configuration System for UFC Edge
=========================================

Centralized configuration for the matchup analysis and betting value core.

Features:
- Dataclass sections for caching, freshness, market, parlay, odds and logging settings
- Environment-specific overrides (dev/test/prod)
- JSON / YAML loading and saving
- Explicit per-server model selection store

Configuration objects are created by the caller and passed into the services;
there is no module-level configuration instance.

Usage:
    from ufc_edge.utils.unified_config import load_config

    config = load_config()
    config.market.kelly_fraction = 0.2
    config.configure_logging()
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .logging_config import configure_for_testing, setup_logging

logger = logging.getLogger(__name__)

SUPPORTED_MODELS = ('gpt', 'claude')


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


@dataclass
class CacheConfig:
    """Time-to-live settings for the read-through cache (seconds)"""
    fighter_stats_ttl: int = 7 * 24 * 60 * 60
    market_analysis_ttl: int = 60 * 60
    odds_ttl: int = 30 * 60
    max_entries: int = 5000


@dataclass
class FreshnessConfig:
    """Fighter data freshness policy"""
    needs_update_days: int = 14
    missing_field_threshold: int = 4
    stat_fields: List[str] = field(default_factory=lambda: [
        'slpm', 'sapm', 'str_acc', 'str_def', 'td_avg', 'td_acc', 'td_def', 'sub_avg'
    ])


@dataclass
class MarketConfig:
    """Single-bet value and risk settings"""
    kelly_fraction: float = 0.25
    max_bet_size: float = 5.0
    value_edge_threshold: float = 5.0
    quality_edge_threshold: float = 10.0
    exposure_base_limit: float = 5.0
    efficiency_risk_threshold: float = 70.0
    balance_risk_threshold: float = 15.0
    volatility_efficiency_threshold: float = 75.0
    wide_edge_spread: float = 15.0


@dataclass
class ParlayConfig:
    """Parlay pool and selection settings"""
    lock_min_confidence: float = 75.0
    lock_min_edge: float = 5.0
    general_min_confidence: float = 65.0
    underdog_min_confidence: float = 60.0
    underdog_min_odds: int = 100
    underdog_min_edge: float = 7.5
    cross_pool_min_edge: float = 7.5
    cross_pool_favorites: int = 2
    cross_pool_underdogs: int = 2
    top_two_leg: int = 3
    top_three_leg: int = 2
    top_cross_pool: int = 2


@dataclass
class OddsConfig:
    """Odds feed settings"""
    api_base_url: str = 'https://api.the-odds-api.com'
    sport_key: str = 'mma_mixed_martial_arts'
    regions: str = 'us'
    markets: str = 'h2h'
    odds_format: str = 'american'
    date_format: str = 'iso'
    default_bookmaker: str = 'fanduel'
    supported_bookmakers: List[str] = field(default_factory=lambda: ['fanduel', 'draftkings'])
    timeout: int = 10  # seconds
    api_key: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging configuration"""
    default_level: str = 'INFO'
    log_file: Optional[str] = None
    log_file_max_size: int = 10 * 1024 * 1024  # 10MB
    log_file_backup_count: int = 5
    enable_performance_logging: bool = True


class UnifiedConfig:
    """Main configuration class that consolidates all settings"""

    SECTIONS = ('cache', 'freshness', 'market', 'parlay', 'odds', 'logging')

    def __init__(self, environment: Environment = Environment.DEVELOPMENT):
        self.environment = environment
        self._config_file = None

        self.cache = CacheConfig()
        self.freshness = FreshnessConfig()
        self.market = MarketConfig()
        self.parlay = ParlayConfig()
        self.odds = OddsConfig()
        self.logging = LoggingConfig()

        self._load_environment_config()

    def set_environment(self, environment: Union[Environment, str]):
        """Set the application environment"""
        if isinstance(environment, str):
            environment = Environment(environment)

        self.environment = environment
        self._load_environment_config()
        logger.info(f"Environment set to: {environment.value}")

    def _load_environment_config(self):
        if self.environment == Environment.DEVELOPMENT:
            self.logging.default_level = 'DEBUG'
            self.cache.odds_ttl = 5 * 60
        elif self.environment == Environment.TESTING:
            self.logging.default_level = 'WARNING'
            self.odds.timeout = 5
        elif self.environment == Environment.PRODUCTION:
            self.logging.default_level = 'INFO'
            self.cache.odds_ttl = 30 * 60

    def configure_logging(self):
        """Set up root logging for the current environment from the logging section"""
        if self.environment == Environment.TESTING:
            configure_for_testing()
            return

        production = self.environment == Environment.PRODUCTION
        setup_logging(
            level=self.logging.default_level,
            log_file=self.logging.log_file,
            max_file_size=self.logging.log_file_max_size,
            backup_count=self.logging.log_file_backup_count,
            console_output=not production or self.logging.log_file is None,
            structured_format=production,
        )

    def load_from_file(self, config_file: Union[str, Path]):
        """Load configuration from file (JSON or YAML)"""
        config_path = Path(config_file)
        self._config_file = config_path

        if not config_path.exists():
            logger.warning(f"Configuration file not found: {config_path}")
            return

        with open(config_path, 'r') as f:
            if config_path.suffix.lower() in ('.yaml', '.yml'):
                config_data = yaml.safe_load(f) or {}
            else:
                config_data = json.load(f)

        self._apply_config_data(config_data)
        logger.info(f"Configuration loaded from: {config_path}")

    def save_to_file(self, config_file: Union[str, Path], format: str = 'json'):
        """Save current configuration to file"""
        config_path = Path(config_file)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        config_data = self.to_dict()
        # Never persist credentials
        config_data['odds'].pop('api_key', None)

        with open(config_path, 'w') as f:
            if format.lower() in ('yaml', 'yml'):
                yaml.dump(config_data, f, default_flow_style=False, indent=2)
            else:
                json.dump(config_data, f, indent=2, default=str)

        logger.info(f"Configuration saved to: {config_path}")

    def _apply_config_data(self, config_data: Dict[str, Any]):
        if 'environment' in config_data:
            self.set_environment(config_data['environment'])

        for section_name, section_data in config_data.items():
            if section_name in self.SECTIONS and isinstance(section_data, dict):
                section_obj = getattr(self, section_name)
                for key, value in section_data.items():
                    if hasattr(section_obj, key):
                        setattr(section_obj, key, value)
                    else:
                        logger.warning(f"Ignoring unknown setting {section_name}.{key}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        data = {'environment': self.environment.value}
        for section_name in self.SECTIONS:
            data[section_name] = asdict(getattr(self, section_name))
        return data

    def validate(self) -> List[str]:
        """Validate configuration settings and return list of issues"""
        issues = []

        if not (0 < self.market.kelly_fraction <= 1):
            issues.append("Kelly fraction must be between 0 and 1")

        if self.market.max_bet_size <= 0:
            issues.append("Max bet size must be positive")

        if self.parlay.lock_min_confidence < self.parlay.general_min_confidence:
            issues.append("Lock tier confidence cannot be below the general pool confidence")

        for name in ('fighter_stats_ttl', 'market_analysis_ttl', 'odds_ttl'):
            if getattr(self.cache, name) <= 0:
                issues.append(f"Cache TTL {name} must be positive")

        if self.odds.default_bookmaker not in self.odds.supported_bookmakers:
            issues.append(f"Unsupported default bookmaker: {self.odds.default_bookmaker}")

        return issues


class ModelSelectionStore:
    """
    Per-server prediction model selection.

    Passed by reference into the services that need it.
    """

    def __init__(self, default_model: str = 'gpt', supported_models=SUPPORTED_MODELS):
        self.supported_models = tuple(m.lower() for m in supported_models)
        if default_model.lower() not in self.supported_models:
            raise ValueError(f"Unsupported default model: {default_model}")
        self.default_model = default_model.lower()
        self._selections: Dict[str, str] = {}

    def get_model(self, server_id: Optional[str] = None) -> str:
        if server_id is None:
            return self.default_model
        return self._selections.get(str(server_id), self.default_model)

    def set_model(self, server_id: str, model: str) -> str:
        model = model.lower()
        if model not in self.supported_models:
            raise ValueError(f"Unsupported model '{model}', expected one of {self.supported_models}")
        self._selections[str(server_id)] = model
        logger.info(f"Model for server {server_id} set to {model}")
        return model

    def reset(self, server_id: str):
        self._selections.pop(str(server_id), None)


def load_config(config_file: Optional[Union[str, Path]] = None,
                environment: Optional[Union[Environment, str]] = None) -> UnifiedConfig:
    """
    Build a configuration from defaults, an optional file and the environment.

    The file path falls back to the UFC_EDGE_CONFIG environment variable and
    the odds API key is read from ODDS_API_KEY.
    """
    config = UnifiedConfig()
    if environment is not None:
        config.set_environment(environment)

    config_file = config_file or os.getenv('UFC_EDGE_CONFIG')
    if config_file:
        config.load_from_file(config_file)

    if config.odds.api_key is None:
        config.odds.api_key = os.getenv('ODDS_API_KEY')

    issues = config.validate()
    for issue in issues:
        logger.warning(f"Configuration issue: {issue}")

    return config
