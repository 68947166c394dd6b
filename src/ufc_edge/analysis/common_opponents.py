"""
Common Opponent Analysis
========================

Indirect comparison of two fighters through the opponents both have faced,
plus their records against pools of fighters sharing the other subject's
style.

Scoring:
- recency: how long ago the more recent of the two bouts took place
  (1.0 -> 0.75 over the first 12 months, 0.75 -> 0.5 to 24, 0.5 -> 0.25 to 36,
  then decaying to 0)
- relevance: how far apart in time the two bouts took place
  (1.0 -> 0.75 within 6 months, 0.75 -> 0.5 to 12, 0.5 -> 0.25 to 24,
  then decaying to 0)

Months are 30-day periods.

Usage:
    analyzer = CommonOpponentAnalyzer(repository)
    report = await analyzer.analyze('Jon Jones', 'Stipe Miocic')
    for insight in report.performance_insights:
        print(insight)
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..data.models import FightResult, OpponentBout, WinsAndLosses
from ..data.repository import FightDataRepository
from .method_classifier import DEFAULT_METHOD_CLASSIFIER, MethodClassifier
from .style_classifier import STYLE_WIN_METHODS, StyleClassifier, StyleLabel

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30
MAX_INSIGHTS = 5
TOP_FINDINGS = 3
SIMILAR_STYLE_POOL_SIZE = 5
SIMILAR_STYLE_MIN_WINS = 2

PERFORMANCE_RATING_ORDER = {
    "Excellent": 4,
    "Good": 3,
    "Average": 2,
    "Poor": 1,
    "Unknown": 0,
}

DateLike = Union[date, datetime, None]


@dataclass
class CommonOpponentDetail:
    opponent: str
    fighter1_result: str
    fighter1_method: str
    fighter2_result: str
    fighter2_method: str
    recency: float
    relevance: float
    fighter1_date: Optional[date] = None
    fighter2_date: Optional[date] = None

    @property
    def weight(self) -> float:
        return self.recency + self.relevance


@dataclass
class FighterPerformance:
    wins: int
    win_rate: float


@dataclass
class CommonOpponentPerformance:
    fighter1_performance: Optional[FighterPerformance] = None
    fighter2_performance: Optional[FighterPerformance] = None
    comparative_advantage: Optional[str] = None
    detailed_analysis: List[CommonOpponentDetail] = field(default_factory=list)


@dataclass
class StylePerformance:
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    performance_rating: str = "Unknown"


@dataclass
class FighterStyleProfile:
    style: StyleLabel = StyleLabel.UNKNOWN
    performance_against_similar_styles: Optional[StylePerformance] = None
    similar_style_opponents: List[str] = field(default_factory=list)


@dataclass
class SimilarStyleAnalysis:
    fighter1: FighterStyleProfile = field(default_factory=FighterStyleProfile)
    fighter2: FighterStyleProfile = field(default_factory=FighterStyleProfile)
    stylistic_advantage: Optional[str] = None


@dataclass
class CommonOpponentReport:
    fighter1: str
    fighter2: str
    common_opponent_count: int = 0
    common_opponent_analysis: Optional[CommonOpponentPerformance] = None
    similar_style_analysis: Optional[SimilarStyleAnalysis] = None
    performance_insights: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls, fighter1: str, fighter2: str) -> 'CommonOpponentReport':
        return cls(fighter1=fighter1, fighter2=fighter2)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _as_date(value: DateLike) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


def _months_between(later: date, earlier: date) -> float:
    return (later - earlier).days / DAYS_PER_MONTH


def recency_score(date1: DateLike, date2: DateLike, now: DateLike = None) -> float:
    """Recency of the more recent of two bout dates, in [0, 1]; 0 when both are unknown"""
    dates = [d for d in (_as_date(date1), _as_date(date2)) if d is not None]
    if not dates:
        return 0.0

    now = _as_date(now) or date.today()
    months = _months_between(now, max(dates))

    if months <= 12:
        score = 1.0 - months / 48
    elif months <= 24:
        score = 0.75 - (months - 12) / 48
    elif months <= 36:
        score = 0.5 - (months - 24) / 48
    else:
        score = max(0.25 - (months - 36) / 48, 0.0)

    return min(max(score, 0.0), 1.0)


def relevance_score(date1: DateLike, date2: DateLike) -> float:
    """Closeness in time of the two bouts, in [0, 1]; 0 when either date is unknown"""
    date1, date2 = _as_date(date1), _as_date(date2)
    if date1 is None or date2 is None:
        return 0.0

    months = abs(_months_between(date1, date2))

    if months <= 6:
        score = 1.0 - months / 24
    elif months <= 12:
        score = 0.75 - (months - 6) / 24
    elif months <= 24:
        score = 0.5 - (months - 12) / 48
    else:
        score = max(0.25 - (months - 24) / 96, 0.0)

    return min(max(score, 0.0), 1.0)


def performance_rating(wins: int, losses: int) -> StylePerformance:
    total = wins + losses
    win_rate = wins / total if total else 0.0

    if total == 0:
        rating = "Unknown"
    elif win_rate >= 0.75:
        rating = "Excellent"
    elif win_rate >= 0.6:
        rating = "Good"
    elif win_rate >= 0.4:
        rating = "Average"
    else:
        rating = "Poor"

    return StylePerformance(wins=wins, losses=losses, win_rate=win_rate, performance_rating=rating)


def bouts_from_record(record: WinsAndLosses) -> List[OpponentBout]:
    """Every bout from both sides of the record, most recent first, undated last"""
    bouts = [OpponentBout(f.loser, f.method, f.date, FightResult.WIN) for f in record.wins]
    bouts += [OpponentBout(f.winner, f.method, f.date, FightResult.LOSS) for f in record.losses]

    dated = sorted((b for b in bouts if b.date is not None), key=lambda b: b.date, reverse=True)
    return dated + [b for b in bouts if b.date is None]


def find_common(f1_opponents: Sequence[OpponentBout], f2_opponents: Sequence[OpponentBout]) -> List[str]:
    """Opponents faced by both, once each, in fighter 1's most-recent-first order"""
    f2_names = {bout.opponent for bout in f2_opponents}
    common = []
    seen = set()
    for bout in f1_opponents:
        if bout.opponent in f2_names and bout.opponent not in seen:
            seen.add(bout.opponent)
            common.append(bout.opponent)
    return common


def _latest_bouts(bouts: Sequence[OpponentBout]) -> Dict[str, OpponentBout]:
    # bouts are most recent first, so the first bout per opponent is the latest rematch
    latest = {}
    for bout in bouts:
        latest.setdefault(bout.opponent, bout)
    return latest


def analyze_performance(fighter1: str, fighter2: str, common: Sequence[str],
                        f1_opponents: Sequence[OpponentBout], f2_opponents: Sequence[OpponentBout],
                        now: DateLike = None) -> CommonOpponentPerformance:
    if not common:
        return CommonOpponentPerformance()

    f1_latest = _latest_bouts(f1_opponents)
    f2_latest = _latest_bouts(f2_opponents)

    f1_wins = 0
    f2_wins = 0
    details = []
    for opponent in common:
        f1_bout = f1_latest.get(opponent)
        f2_bout = f2_latest.get(opponent)
        if f1_bout is None or f2_bout is None:
            continue

        if f1_bout.result == FightResult.WIN:
            f1_wins += 1
        if f2_bout.result == FightResult.WIN:
            f2_wins += 1

        details.append(CommonOpponentDetail(
            opponent=opponent,
            fighter1_result=f1_bout.result.value,
            fighter1_method=f1_bout.method,
            fighter2_result=f2_bout.result.value,
            fighter2_method=f2_bout.method,
            recency=recency_score(f1_bout.date, f2_bout.date, now),
            relevance=relevance_score(f1_bout.date, f2_bout.date),
            fighter1_date=f1_bout.date,
            fighter2_date=f2_bout.date,
        ))

    if f1_wins > f2_wins:
        advantage = fighter1
    elif f2_wins > f1_wins:
        advantage = fighter2
    else:
        advantage = None

    return CommonOpponentPerformance(
        fighter1_performance=FighterPerformance(wins=f1_wins, win_rate=f1_wins / len(common)),
        fighter2_performance=FighterPerformance(wins=f2_wins, win_rate=f2_wins / len(common)),
        comparative_advantage=advantage,
        detailed_analysis=details,
    )


def determine_style_advantage(fighter1: str, fighter2: str,
                              f1_performance: Optional[StylePerformance],
                              f2_performance: Optional[StylePerformance]) -> Optional[str]:
    if f1_performance is None or f2_performance is None:
        return None

    f1_rating = PERFORMANCE_RATING_ORDER.get(f1_performance.performance_rating, 0)
    f2_rating = PERFORMANCE_RATING_ORDER.get(f2_performance.performance_rating, 0)
    if f1_rating > f2_rating:
        return fighter1
    if f2_rating > f1_rating:
        return fighter2
    return None


def _is_grappler(style: StyleLabel) -> bool:
    return style in (StyleLabel.SUBMISSION_GRAPPLER, StyleLabel.CONTROL_GRAPPLER)


def generate_insights(fighter1: str, fighter2: str,
                      performance: Optional[CommonOpponentPerformance],
                      style_analysis: Optional[SimilarStyleAnalysis]) -> List[str]:
    insights = []

    if performance is not None:
        if performance.comparative_advantage:
            insights.append(f"{performance.comparative_advantage} has performed better against common opposition")

        strongest = sorted(performance.detailed_analysis, key=lambda d: d.weight, reverse=True)[:TOP_FINDINGS]
        for detail in strongest:
            if detail.fighter1_result != detail.fighter2_result:
                if detail.fighter1_result == FightResult.WIN.value:
                    winner, loser = fighter1, fighter2
                else:
                    winner, loser = fighter2, fighter1
                insights.append(f"{winner} defeated {detail.opponent} while {loser} lost")
            elif detail.fighter1_result == FightResult.WIN.value and detail.fighter1_method != detail.fighter2_method:
                insights.append(
                    f"Both fighters defeated {detail.opponent}, but by different methods "
                    f"({detail.fighter1_method} vs {detail.fighter2_method})"
                )

    if style_analysis is not None:
        if style_analysis.stylistic_advantage == fighter1:
            insights.append(f"{fighter1} has performed well against opponents with a similar style to {fighter2}")
        elif style_analysis.stylistic_advantage == fighter2:
            insights.append(f"{fighter2} has performed well against opponents with a similar style to {fighter1}")

        style1 = style_analysis.fighter1.style
        style2 = style_analysis.fighter2.style
        if style1 == StyleLabel.STRIKER and _is_grappler(style2):
            insights.append("Classic striker vs grappler matchup")
        elif _is_grappler(style1) and style2 == StyleLabel.STRIKER:
            insights.append("Classic grappler vs striker matchup")
        elif style1 == style2 and style1 != StyleLabel.UNKNOWN:
            insights.append(f"Both fighters have similar {style1.value.lower()} styles")

    return insights[:MAX_INSIGHTS]


class CommonOpponentAnalyzer:
    """Common-opponent and similar-style comparison of two fighters"""

    def __init__(self, repository: FightDataRepository,
                 style_classifier: Optional[StyleClassifier] = None,
                 method_classifier: MethodClassifier = DEFAULT_METHOD_CLASSIFIER,
                 clock: Callable[[], datetime] = datetime.now):
        self.repository = repository
        self.method_classifier = method_classifier
        self.style_classifier = style_classifier or StyleClassifier(repository, method_classifier)
        self._clock = clock

    async def get_opponents(self, fighter: str) -> List[OpponentBout]:
        record = await self.repository.get_wins_and_losses(fighter)
        return bouts_from_record(record)

    async def similar_style_pool(self, style: StyleLabel, exclude: Sequence[str]) -> List[str]:
        """Fighters winning mostly by the method tied to style; empty for Mixed, Balanced and Unknown"""
        category = STYLE_WIN_METHODS.get(style)
        if category is None:
            return []
        return await self.repository.find_fighters_by_win_method(
            self.method_classifier.keywords_for(category),
            exclude=list(exclude),
            min_wins=SIMILAR_STYLE_MIN_WINS,
            limit=SIMILAR_STYLE_POOL_SIZE,
        )

    @staticmethod
    def performance_against_pool(record: WinsAndLosses, pool: Sequence[str]) -> StylePerformance:
        if not pool:
            return StylePerformance()
        members = set(pool)
        wins = sum(1 for f in record.wins if f.loser in members)
        losses = sum(1 for f in record.losses if f.winner in members)
        return performance_rating(wins, losses)

    async def similar_style_analysis(self, fighter1: str, fighter2: str,
                                     f1_record: Optional[WinsAndLosses] = None,
                                     f2_record: Optional[WinsAndLosses] = None) -> SimilarStyleAnalysis:
        style1, style2 = await asyncio.gather(
            self.style_classifier.classify(fighter1),
            self.style_classifier.classify(fighter2),
        )

        # Each subject is measured against fighters resembling the other subject
        exclude = [fighter1, fighter2]
        pool1, pool2 = await asyncio.gather(
            self.similar_style_pool(style2, exclude),
            self.similar_style_pool(style1, exclude),
        )

        if f1_record is None or f2_record is None:
            f1_record, f2_record = await asyncio.gather(
                self.repository.get_wins_and_losses(fighter1),
                self.repository.get_wins_and_losses(fighter2),
            )

        f1_performance = self.performance_against_pool(f1_record, pool1)
        f2_performance = self.performance_against_pool(f2_record, pool2)

        return SimilarStyleAnalysis(
            fighter1=FighterStyleProfile(style1, f1_performance, list(pool1)),
            fighter2=FighterStyleProfile(style2, f2_performance, list(pool2)),
            stylistic_advantage=determine_style_advantage(fighter1, fighter2, f1_performance, f2_performance),
        )

    async def _analyze(self, fighter1: str, fighter2: str) -> CommonOpponentReport:
        f1_record, f2_record = await asyncio.gather(
            self.repository.get_wins_and_losses(fighter1),
            self.repository.get_wins_and_losses(fighter2),
        )
        f1_opponents = bouts_from_record(f1_record)
        f2_opponents = bouts_from_record(f2_record)

        common = find_common(f1_opponents, f2_opponents)
        logger.info(f"Found {len(common)} common opponents",
                    extra={'fighter_a': fighter1, 'fighter_b': fighter2})

        performance = analyze_performance(fighter1, fighter2, common, f1_opponents, f2_opponents, self._clock())
        style_analysis = await self.similar_style_analysis(fighter1, fighter2, f1_record, f2_record)

        return CommonOpponentReport(
            fighter1=fighter1,
            fighter2=fighter2,
            common_opponent_count=len(common),
            common_opponent_analysis=performance,
            similar_style_analysis=style_analysis,
            performance_insights=generate_insights(fighter1, fighter2, performance, style_analysis),
        )

    async def analyze(self, fighter1: str, fighter2: str) -> CommonOpponentReport:
        """Never raises; any failure yields an empty report with zero counts"""
        try:
            return await self._analyze(fighter1, fighter2)
        except Exception as e:
            logger.error(f"Common opponent analysis failed: {e}",
                         extra={'fighter_a': fighter1, 'fighter_b': fighter2})
            return CommonOpponentReport.empty(fighter1, fighter2)
