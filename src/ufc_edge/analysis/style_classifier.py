"""
Fighting style classification from win methods and stat heuristics.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..data.models import FighterProfile
from ..data.repository import FightDataRepository
from .method_classifier import DEFAULT_METHOD_CLASSIFIER, MethodCategory, MethodClassifier

logger = logging.getLogger(__name__)


class StyleLabel(str, Enum):
    STRIKER = "Striker"
    SUBMISSION_GRAPPLER = "Submission Grappler"
    CONTROL_GRAPPLER = "Control Grappler"
    MIXED = "Mixed"
    BALANCED = "Balanced"
    UNKNOWN = "Unknown"


# Win method that marks an opponent as sharing a style
STYLE_WIN_METHODS = {
    StyleLabel.STRIKER: MethodCategory.KO_TKO,
    StyleLabel.SUBMISSION_GRAPPLER: MethodCategory.SUBMISSION,
    StyleLabel.CONTROL_GRAPPLER: MethodCategory.DECISION,
}


@dataclass
class WinMethodBreakdown:
    ko_tko: int = 0
    submission: int = 0
    decision: int = 0

    @property
    def total(self) -> int:
        return self.ko_tko + self.submission + self.decision

    @classmethod
    def from_methods(cls, methods: Iterable[Optional[str]],
                     classifier: MethodClassifier = DEFAULT_METHOD_CLASSIFIER) -> 'WinMethodBreakdown':
        counts = classifier.count(methods)
        return cls(
            ko_tko=counts[MethodCategory.KO_TKO],
            submission=counts[MethodCategory.SUBMISSION],
            decision=counts[MethodCategory.DECISION],
        )


def _classify_from_stats(slpm: float, td_avg: float, sub_avg: float) -> StyleLabel:
    if slpm > 3.5 and td_avg < 1.0:
        return StyleLabel.STRIKER
    if sub_avg > 1.0 or td_avg > 2.5:
        return StyleLabel.SUBMISSION_GRAPPLER
    if td_avg > 2.0:
        return StyleLabel.CONTROL_GRAPPLER
    if slpm > 3.0 and td_avg > 1.5:
        return StyleLabel.MIXED
    return StyleLabel.BALANCED


def classify_style_from_record(stats: Optional[FighterProfile], win_methods: Iterable[Optional[str]],
                               classifier: MethodClassifier = DEFAULT_METHOD_CLASSIFIER) -> StyleLabel:
    """
    Classify a fighter's style.

    The cascade order is fixed; later branches only apply when earlier
    ones fail. Without any classified win the stat-only heuristic is used,
    and a profile with no striking or grappling rates is Unknown.

    Args:
        stats: Stat snapshot, or None when unavailable
        win_methods: Method strings of the fighter's wins
        classifier: Method rule table

    Returns:
        One of the six StyleLabel values
    """
    if stats is None:
        return StyleLabel.UNKNOWN

    slpm, td_avg, sub_avg = stats.slpm, stats.td_avg, stats.sub_avg
    wins = WinMethodBreakdown.from_methods(win_methods, classifier)

    if wins.total == 0:
        # 0 means unknown, so there is nothing for the heuristic to read
        if not (slpm or td_avg or sub_avg):
            return StyleLabel.UNKNOWN
        return _classify_from_stats(slpm, td_avg, sub_avg)

    ko_ratio = wins.ko_tko / wins.total
    sub_ratio = wins.submission / wins.total
    dec_ratio = wins.decision / wins.total

    if ko_ratio > 0.5 and slpm > 3.5:
        return StyleLabel.STRIKER
    elif sub_ratio > 0.4 or sub_avg > 1.0:
        return StyleLabel.SUBMISSION_GRAPPLER
    elif td_avg > 2.0 and dec_ratio > 0.5:
        return StyleLabel.CONTROL_GRAPPLER
    elif slpm > 3.0 and td_avg > 1.5:
        return StyleLabel.MIXED
    else:
        return StyleLabel.BALANCED


class StyleClassifier:
    """Looks up a fighter's stats and wins and classifies the style"""

    def __init__(self, repository: FightDataRepository,
                 method_classifier: MethodClassifier = DEFAULT_METHOD_CLASSIFIER):
        self.repository = repository
        self.method_classifier = method_classifier

    async def classify(self, name: str) -> StyleLabel:
        """Never raises; lookup failures and missing stats give StyleLabel.UNKNOWN"""
        try:
            stats, record = await asyncio.gather(
                self.repository.get_fighter_stats(name),
                self.repository.get_wins_and_losses(name),
            )
            style = classify_style_from_record(stats, (w.method for w in record.wins), self.method_classifier)
        except Exception as e:
            logger.warning(f"Style classification failed for {name}: {e}", extra={'fighter_a': name})
            return StyleLabel.UNKNOWN

        logger.debug(f"{name} classified as {style.value}")
        return style
