"""
Parlay Builder

Builds multi-leg parlay recommendations from single-fight picks:
- Lock tier: confidence >= 75 and edge > 5 with odds available
- General pool: confidence >= 65 and edge > 0 with odds available
- 2-leg (top 3) and 3-leg (top 2) combinations of the lock tier
- Value underdogs: confidence > 60, plus-money odds and edge > 7.5; drawn
  from every priced pick, so they may sit below the general pool floor
- Cross-pool value parlays pairing top locks with value underdogs

Each pool keeps one pick per fight, and every combination is checked so
that no fighter or fight appears in two legs.

Combined confidence is the arithmetic mean of the legs while the combined
implied probability is the product of the legs. The two are deliberately
not on the same footing; the mean is kept for compatibility with stored
reports.
"""

import logging
from itertools import combinations
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..utils.logging_config import ErrorHandler
from ..utils.unified_config import ParlayConfig
from .odds_utils import calculate_value_rating, combined_implied_probability, compound_return
from .report import ParlayCandidate, ParlayLeg, ParlayRecommendations

logger = logging.getLogger(__name__)


def legs_are_independent(legs: Sequence[ParlayLeg]) -> bool:
    """True when no fighter and no fight appears in more than one leg"""
    names = [name for leg in legs for name in (leg.fighter, leg.opponent)]
    fights = {leg.fight_key for leg in legs}
    return len(set(names)) == len(names) and len(fights) == len(legs)


def overall_risk_rating(two_leg: Sequence[ParlayCandidate]) -> int:
    """0 without 2-leg parlays, otherwise 3 / 2 / 1 by their average edge"""
    if not two_leg:
        return 0
    average_edge = float(np.mean([p.edge for p in two_leg]))
    if average_edge > 10:
        return 3
    if average_edge > 7.5:
        return 2
    return 1


class ParlayComposer:
    """Generates parlay candidates from picks carrying odds, confidence and edge"""

    def __init__(self, config: Optional[ParlayConfig] = None):
        self.config = config or ParlayConfig()
        self.error_handler = ErrorHandler(logger)

    @staticmethod
    def _dedupe_by_fight(legs: Iterable[ParlayLeg]) -> List[ParlayLeg]:
        """Sort by confidence and keep the strongest pick per fight"""
        ordered = sorted(legs, key=lambda leg: leg.confidence, reverse=True)
        seen = set()
        unique = []
        for leg in ordered:
            if leg.fight_key not in seen:
                seen.add(leg.fight_key)
                unique.append(leg)
        return unique

    @staticmethod
    def priced_legs(picks: Iterable[Any]) -> List[ParlayLeg]:
        """Legs for picks carrying odds, implied probability and edge"""
        return [
            ParlayLeg.from_pick(pick) for pick in picks
            if pick.odds is not None and pick.edge is not None and pick.implied_probability is not None
        ]

    def build_pools(self, picks: Iterable[Any]) -> Tuple[List[ParlayLeg], List[ParlayLeg]]:
        """Split picks into (lock tier, general pool); picks without odds or edge are dropped"""
        legs = self.priced_legs(picks)

        lock = [leg for leg in legs
                if leg.confidence >= self.config.lock_min_confidence and leg.edge > self.config.lock_min_edge]
        general = [leg for leg in legs
                   if leg.confidence >= self.config.general_min_confidence and leg.edge > 0]

        return self._dedupe_by_fight(lock), self._dedupe_by_fight(general)

    def build_underdogs(self, picks: Iterable[Any]) -> List[ParlayLeg]:
        cfg = self.config
        return self._dedupe_by_fight(
            leg for leg in self.priced_legs(picks)
            if leg.confidence > cfg.underdog_min_confidence
            and leg.odds > cfg.underdog_min_odds and leg.edge > cfg.underdog_min_edge
        )

    def build_parlay(self, legs: Sequence[ParlayLeg], is_value_parlay: bool = False) -> Optional[ParlayCandidate]:
        """Price a combination; None when legs overlap or the parlay has no edge"""
        if len(legs) < 2 or not legs_are_independent(legs):
            return None

        confidence = float(np.mean([leg.confidence for leg in legs]))
        implied = combined_implied_probability([leg.implied_probability for leg in legs])
        payout = compound_return([leg.odds for leg in legs])
        edge = confidence - implied

        if edge <= 0:
            return None

        return ParlayCandidate(
            legs=list(legs),
            combined_confidence=confidence,
            combined_implied_probability=implied,
            potential_return=f"+{payout:.0f}",
            potential_return_value=payout,
            edge=edge,
            rating=calculate_value_rating(edge, confidence),
            is_value_parlay=is_value_parlay,
        )

    def generate_combinations(self, pool: Sequence[ParlayLeg], size: int, top_n: int) -> List[ParlayCandidate]:
        candidates = []
        for combo in combinations(pool, size):
            parlay = self.build_parlay(combo)
            if parlay is not None:
                candidates.append(parlay)

        candidates.sort(key=lambda p: p.edge, reverse=True)
        return candidates[:top_n]

    def generate_value_parlays(self, favorites: Sequence[ParlayLeg],
                               underdogs: Sequence[ParlayLeg]) -> List[ParlayCandidate]:
        """Pair the top favorites with the top value underdogs"""
        cfg = self.config
        parlays = []
        for favorite in favorites[:cfg.cross_pool_favorites]:
            for underdog in underdogs[:cfg.cross_pool_underdogs]:
                parlay = self.build_parlay([favorite, underdog], is_value_parlay=True)
                if parlay is not None and parlay.edge > cfg.cross_pool_min_edge:
                    parlays.append(parlay)

        parlays.sort(key=lambda p: p.potential_return_value, reverse=True)
        return parlays[:cfg.top_cross_pool]

    def _compose(self, picks: Sequence[Any]) -> ParlayRecommendations:
        cfg = self.config
        lock, _ = self.build_pools(picks)
        underdogs = self.build_underdogs(picks)

        two_leg = self.generate_combinations(lock, 2, cfg.top_two_leg)
        three_leg = self.generate_combinations(lock, 3, cfg.top_three_leg)
        cross_pool = self.generate_value_parlays(lock, underdogs)

        logger.info(f"Built {len(two_leg)} 2-leg, {len(three_leg)} 3-leg and {len(cross_pool)} value parlays "
                    f"from {len(lock)} locks and {len(underdogs)} underdogs")

        return ParlayRecommendations(
            two_leg=two_leg,
            three_leg=three_leg,
            cross_pool=cross_pool,
            overall_risk_rating=overall_risk_rating(two_leg),
        )

    def compose(self, picks: Sequence[Any]) -> ParlayRecommendations:
        """Never raises on internal faults; returns empty recommendations instead"""
        return self.error_handler.safe_execute(
            'compose_parlays', self._compose, list(picks or []),
            fallback=ParlayRecommendations
        )


class ParlayValidator:
    """
    Validation pass for externally sourced parlay suggestions.

    A parlay is rejected when it names the same fighter twice or includes
    both fighters of one bout on the card.
    """

    def __init__(self, card: Iterable[Any]):
        self.opponents: Dict[str, str] = {}
        for bout in card:
            fighter1, fighter2 = self._bout_fighters(bout)
            self.opponents[fighter1] = fighter2
            self.opponents[fighter2] = fighter1

    @staticmethod
    def _bout_fighters(bout: Any) -> Tuple[str, str]:
        if isinstance(bout, Mapping):
            return bout['fighter1'], bout['fighter2']
        if isinstance(bout, (tuple, list)):
            return bout[0], bout[1]
        return bout.fighter1, bout.fighter2

    @staticmethod
    def _parlay_fighters(parlay: Any) -> List[str]:
        if isinstance(parlay, ParlayCandidate):
            return parlay.fighters
        if isinstance(parlay, Mapping):
            if 'picks' in parlay:
                return [pick['fighter'] if isinstance(pick, Mapping) else pick for pick in parlay['picks']]
            return list(parlay.get('fighters', []))
        return list(parlay)

    def is_valid(self, parlay: Any) -> bool:
        used = set()
        for fighter in self._parlay_fighters(parlay):
            if fighter in used or self.opponents.get(fighter) in used:
                return False
            used.add(fighter)
        return True

    def filter_parlays(self, parlays: Iterable[Any]) -> List[Any]:
        return [p for p in parlays if self.is_valid(p)]

    def validate_betting_analysis(self, analysis: Dict[str, Any]) -> Dict[str, Any]:
        """
        Clean an externally produced betting analysis in place.

        Filters parlays.combinations and parlays.value_combinations and keeps
        one high-confidence finish per fighter.
        """
        parlays = analysis.get('parlays') or {}
        for key in ('combinations', 'value_combinations'):
            if parlays.get(key):
                before = len(parlays[key])
                parlays[key] = self.filter_parlays(parlays[key])
                if len(parlays[key]) < before:
                    logger.info(f"Removed {before - len(parlays[key])} invalid parlays from {key}")

        method_props = analysis.get('method_props') or {}
        finishes = method_props.get('high_confidence_finishes')
        if finishes:
            seen = set()
            unique = []
            for prop in finishes:
                if prop.get('fighter') not in seen:
                    seen.add(prop.get('fighter'))
                    unique.append(prop)
            method_props['high_confidence_finishes'] = unique

        return analysis


def filter_parlays(parlays: Iterable[Any], card: Iterable[Any]) -> List[Any]:
    return ParlayValidator(card).filter_parlays(parlays)
