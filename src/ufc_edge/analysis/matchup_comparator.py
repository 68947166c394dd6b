"""
Head-to-head matchup comparison.

Every comparison is a pure function of two FighterProfile snapshots, taken
as an ordered (fighter1, fighter2) pair. Swapping the pair negates every
differential and inverts every verdict.

Verdicts come from summing the signs of the per-component differentials:

    striking:  SLPM, strike defense               (significant at |score| >= 1.5)
    grappling: TD avg, TD defense, sub avg        (significant at |score| >= 2)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..data.models import FighterProfile, FightRecord, Stance
from .method_classifier import DEFAULT_METHOD_CLASSIFIER, MethodCategory

logger = logging.getLogger(__name__)

STRIKING_SIGNIFICANT_SCORE = 1.5
GRAPPLING_SIGNIFICANT_SCORE = 2
RECENT_FORM_WINDOW = 3


class AdvantageVerdict(str, Enum):
    SIGNIFICANT_ADVANTAGE = "Significant Advantage"
    SLIGHT_ADVANTAGE = "Slight Advantage"
    EVEN = "Even"
    SLIGHT_DISADVANTAGE = "Slight Disadvantage"
    SIGNIFICANT_DISADVANTAGE = "Significant Disadvantage"

    def inverse(self) -> 'AdvantageVerdict':
        return _INVERSE_VERDICTS[self]


_INVERSE_VERDICTS = {
    AdvantageVerdict.SIGNIFICANT_ADVANTAGE: AdvantageVerdict.SIGNIFICANT_DISADVANTAGE,
    AdvantageVerdict.SLIGHT_ADVANTAGE: AdvantageVerdict.SLIGHT_DISADVANTAGE,
    AdvantageVerdict.EVEN: AdvantageVerdict.EVEN,
    AdvantageVerdict.SLIGHT_DISADVANTAGE: AdvantageVerdict.SLIGHT_ADVANTAGE,
    AdvantageVerdict.SIGNIFICANT_DISADVANTAGE: AdvantageVerdict.SIGNIFICANT_ADVANTAGE,
}


class StanceMatchup(str, Enum):
    ADVANTAGE = "Advantage"
    COMPLEX = "Complex matchup"
    NEUTRAL = "Neutral"
    UNKNOWN = "Unknown"


# Ordered stance pairs; anything not listed is Unknown
STANCE_MATCHUPS: Dict[Tuple[Stance, Stance], StanceMatchup] = {
    (Stance.ORTHODOX, Stance.SOUTHPAW): StanceMatchup.COMPLEX,
    (Stance.SOUTHPAW, Stance.ORTHODOX): StanceMatchup.COMPLEX,
    (Stance.ORTHODOX, Stance.ORTHODOX): StanceMatchup.NEUTRAL,
    (Stance.SOUTHPAW, Stance.SOUTHPAW): StanceMatchup.NEUTRAL,
    (Stance.SWITCH, Stance.SWITCH): StanceMatchup.NEUTRAL,
    (Stance.SWITCH, Stance.ORTHODOX): StanceMatchup.ADVANTAGE,
    (Stance.SWITCH, Stance.SOUTHPAW): StanceMatchup.ADVANTAGE,
}


@dataclass
class StrikingComparison:
    volume_differential: float
    defense_comparison: float
    score: int
    advantage: AdvantageVerdict

    def swapped(self) -> 'StrikingComparison':
        return StrikingComparison(
            volume_differential=-self.volume_differential,
            defense_comparison=-self.defense_comparison,
            score=-self.score,
            advantage=self.advantage.inverse(),
        )


@dataclass
class GrapplingComparison:
    takedown_differential: float
    takedown_defense: float
    submission_threat: float
    score: int
    advantage: AdvantageVerdict

    def swapped(self) -> 'GrapplingComparison':
        return GrapplingComparison(
            takedown_differential=-self.takedown_differential,
            takedown_defense=-self.takedown_defense,
            submission_threat=-self.submission_threat,
            score=-self.score,
            advantage=self.advantage.inverse(),
        )


@dataclass
class PhysicalComparison:
    """Height and reach differentials are None when either side is unknown"""
    height_differential: Optional[int]
    reach_differential: Optional[int]
    fighter1_stance: Stance
    fighter2_stance: Stance
    stance_matchup: StanceMatchup

    def swapped(self) -> 'PhysicalComparison':
        return PhysicalComparison(
            height_differential=None if self.height_differential is None else -self.height_differential,
            reach_differential=None if self.reach_differential is None else -self.reach_differential,
            fighter1_stance=self.fighter2_stance,
            fighter2_stance=self.fighter1_stance,
            stance_matchup=analyze_stance_matchup(self.fighter2_stance, self.fighter1_stance),
        )


@dataclass
class RecentForm:
    trend: str
    win_streak: int = 0
    recent_results: List[str] = field(default_factory=list)


@dataclass
class ExperienceComparison:
    fighter1_total_fights: int
    fighter2_total_fights: int
    fighter1_recent_form: RecentForm
    fighter2_recent_form: RecentForm

    @property
    def fight_differential(self) -> int:
        return self.fighter1_total_fights - self.fighter2_total_fights

    def swapped(self) -> 'ExperienceComparison':
        return ExperienceComparison(
            fighter1_total_fights=self.fighter2_total_fights,
            fighter2_total_fights=self.fighter1_total_fights,
            fighter1_recent_form=self.fighter2_recent_form,
            fighter2_recent_form=self.fighter1_recent_form,
        )


@dataclass
class MatchupAnalysis:
    fighter1: str
    fighter2: str
    striking: Optional[StrikingComparison] = None
    grappling: Optional[GrapplingComparison] = None
    physical: Optional[PhysicalComparison] = None
    experience: Optional[ExperienceComparison] = None

    def swapped(self) -> 'MatchupAnalysis':
        return MatchupAnalysis(
            fighter1=self.fighter2,
            fighter2=self.fighter1,
            striking=self.striking.swapped() if self.striking else None,
            grappling=self.grappling.swapped() if self.grappling else None,
            physical=self.physical.swapped() if self.physical else None,
            experience=self.experience.swapped() if self.experience else None,
        )


def _sign(value: float) -> int:
    return int(np.sign(value))


def _verdict(score: float, significant: float) -> AdvantageVerdict:
    if score >= significant:
        return AdvantageVerdict.SIGNIFICANT_ADVANTAGE
    if score > 0:
        return AdvantageVerdict.SLIGHT_ADVANTAGE
    if score == 0:
        return AdvantageVerdict.EVEN
    if score > -significant:
        return AdvantageVerdict.SLIGHT_DISADVANTAGE
    return AdvantageVerdict.SIGNIFICANT_DISADVANTAGE


def compare_striking(f1: Optional[FighterProfile], f2: Optional[FighterProfile]) -> Optional[StrikingComparison]:
    if f1 is None or f2 is None:
        return None

    volume = f1.slpm - f2.slpm
    defense = f1.str_def - f2.str_def
    score = _sign(volume) + _sign(defense)
    return StrikingComparison(
        volume_differential=volume,
        defense_comparison=defense,
        score=score,
        advantage=_verdict(score, STRIKING_SIGNIFICANT_SCORE),
    )


def compare_grappling(f1: Optional[FighterProfile], f2: Optional[FighterProfile]) -> Optional[GrapplingComparison]:
    if f1 is None or f2 is None:
        return None

    takedowns = f1.td_avg - f2.td_avg
    takedown_defense = f1.td_def - f2.td_def
    submissions = f1.sub_avg - f2.sub_avg
    score = _sign(takedowns) + _sign(takedown_defense) + _sign(submissions)
    return GrapplingComparison(
        takedown_differential=takedowns,
        takedown_defense=takedown_defense,
        submission_threat=submissions,
        score=score,
        advantage=_verdict(score, GRAPPLING_SIGNIFICANT_SCORE),
    )


def analyze_stance_matchup(stance1: Stance, stance2: Stance) -> StanceMatchup:
    return STANCE_MATCHUPS.get((stance1, stance2), StanceMatchup.UNKNOWN)


def _known_differential(a: int, b: int) -> Optional[int]:
    # 0 means the measurement was never recorded
    if not a or not b:
        return None
    return a - b


def compare_physical(f1: Optional[FighterProfile], f2: Optional[FighterProfile]) -> Optional[PhysicalComparison]:
    if f1 is None or f2 is None:
        return None

    return PhysicalComparison(
        height_differential=_known_differential(f1.height, f2.height),
        reach_differential=_known_differential(f1.reach, f2.reach),
        fighter1_stance=f1.stance,
        fighter2_stance=f2.stance,
        stance_matchup=analyze_stance_matchup(f1.stance, f2.stance),
    )


def _result_for(fight: FightRecord, name: str) -> str:
    if DEFAULT_METHOD_CLASSIFIER.classify(fight.method) == MethodCategory.DRAW:
        return "Draw"
    return "Win" if fight.winner == name else "Loss"


def analyze_recent_form(name: str, history: Sequence[FightRecord],
                        window: int = RECENT_FORM_WINDOW) -> RecentForm:
    """Trend over the last `window` fights; history must be most recent first"""
    recent = [_result_for(fight, name) for fight in list(history)[:window]]
    if not recent:
        return RecentForm(trend="Unknown")

    wins = recent.count("Win")
    if wins >= 3:
        trend = "Strong"
    elif wins == 2:
        trend = "Good"
    elif wins == 1:
        trend = "Mixed"
    else:
        trend = "Poor"

    streak = 0
    for result in recent:
        if result != "Win":
            break
        streak += 1

    return RecentForm(trend=trend, win_streak=streak, recent_results=recent)


def compare_experience(fighter1: str, f1_history: Sequence[FightRecord],
                       fighter2: str, f2_history: Sequence[FightRecord]) -> ExperienceComparison:
    return ExperienceComparison(
        fighter1_total_fights=len(f1_history),
        fighter2_total_fights=len(f2_history),
        fighter1_recent_form=analyze_recent_form(fighter1, f1_history),
        fighter2_recent_form=analyze_recent_form(fighter2, f2_history),
    )


def compare_matchup(f1: Optional[FighterProfile], f2: Optional[FighterProfile],
                    fighter1: Optional[str] = None, fighter2: Optional[str] = None,
                    f1_history: Optional[Sequence[FightRecord]] = None,
                    f2_history: Optional[Sequence[FightRecord]] = None) -> MatchupAnalysis:
    """
    Assemble the full matchup analysis for an ordered pair.

    Stat sections are None when either snapshot is missing. The experience
    section is only filled when both histories are supplied.
    """
    fighter1 = fighter1 or (f1.name if f1 else '')
    fighter2 = fighter2 or (f2.name if f2 else '')

    experience = None
    if f1_history is not None and f2_history is not None:
        experience = compare_experience(fighter1, f1_history, fighter2, f2_history)

    if f1 is None or f2 is None:
        logger.info(f"Stats unavailable for {fighter1 if f1 is None else fighter2}; stat sections left empty",
                    extra={'fighter_a': fighter1, 'fighter_b': fighter2})

    return MatchupAnalysis(
        fighter1=fighter1,
        fighter2=fighter2,
        striking=compare_striking(f1, f2),
        grappling=compare_grappling(f1, f2),
        physical=compare_physical(f1, f2),
        experience=experience,
    )
