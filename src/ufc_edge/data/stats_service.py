"""
Read-through fighter stats access and data freshness validation.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..analysis.method_classifier import MethodCategory
from ..utils.cache import TTLCache, fighter_stats_key
from ..utils.unified_config import CacheConfig, FreshnessConfig
from .models import FighterProfile
from .repository import FightDataRepository

logger = logging.getLogger(__name__)


@dataclass
class FightTally:
    wins: int = 0
    losses: int = 0
    draws: int = 0

    def __str__(self):
        return f"{self.wins}-{self.losses}-{self.draws}"


@dataclass
class StatsValidation:
    """Data quality status for one fighter"""
    fighter: str
    status: str  # missing, needs_update, outdated, complete
    details: str
    has_data: bool
    fight_count: int = 0
    record: FightTally = field(default_factory=FightTally)
    last_update: Optional[datetime] = None
    missing_fields: List[str] = field(default_factory=list)
    needs_update: bool = True


class FighterStatsService:
    """
    Cached fighter stats lookups.

    Stats are cached for CacheConfig.fighter_stats_ttl (7 days). The
    "needs update" window from FreshnessConfig (14 days) is a separate
    policy used only by validate().
    """

    def __init__(self, repository: FightDataRepository, cache: Optional[TTLCache] = None,
                 cache_config: Optional[CacheConfig] = None,
                 freshness_config: Optional[FreshnessConfig] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.repository = repository
        self.cache_config = cache_config or CacheConfig()
        self.freshness = freshness_config or FreshnessConfig()
        self.cache = cache if cache is not None else TTLCache(default_ttl=self.cache_config.fighter_stats_ttl)
        self._clock = clock

    async def get_fighter_stats(self, name: str) -> Optional[FighterProfile]:
        key = fighter_stats_key(name)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        profile = await self.repository.get_fighter_stats(name)
        if profile is not None:
            self.cache.set(key, profile, ttl=self.cache_config.fighter_stats_ttl)
        return profile

    def invalidate(self, name: str):
        self.cache.invalidate(fighter_stats_key(name))

    def missing_fields(self, profile: FighterProfile) -> List[str]:
        return [name for name in self.freshness.stat_fields if not getattr(profile, name, 0)]

    async def validate(self, name: str) -> StatsValidation:
        """Report completeness and staleness of a fighter's stored stats"""
        profile = await self.repository.get_fighter_stats(name)
        if profile is None:
            return StatsValidation(fighter=name, status='missing', details='No data found',
                                   has_data=False, needs_update=True)

        history = await self.repository.get_fight_history(name)
        record = FightTally()
        for fight in history:
            if fight.method_category == MethodCategory.DRAW:
                record.draws += 1
            elif fight.winner == name:
                record.wins += 1
            else:
                record.losses += 1

        missing = self.missing_fields(profile)
        too_sparse = len(missing) >= self.freshness.missing_field_threshold
        outdated = profile.is_stale(timedelta(days=self.freshness.needs_update_days), self._clock())

        if too_sparse:
            status = 'needs_update'
        elif outdated:
            status = 'outdated'
        else:
            status = 'complete'

        details = f"{record} ({len(history)} fights)"
        if missing:
            details += f"\n└ {len(missing)} missing/zero statistical fields"

        logger.debug(f"Validated stats for {name}: {status}")
        return StatsValidation(
            fighter=name,
            status=status,
            details=details,
            has_data=not too_sparse,
            fight_count=len(history),
            record=record,
            last_update=profile.last_updated,
            missing_fields=missing,
            needs_update=outdated or too_sparse,
        )
