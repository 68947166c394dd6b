"""
Fight method classification.

Free-text method strings ("KO/TKO - Punches", "Submission - Rear Naked Choke",
"Decision - Unanimous", "S-DEC") are mapped onto a fixed set of categories
through an ordered rule table. The first rule whose keyword appears in the
lower-cased method wins, so every method lands in exactly one bucket.

New method spellings are supported by passing extra rules:

    classifier = MethodClassifier().with_rule(
        MethodRule(MethodCategory.KO_TKO, ('doctor stoppage',))
    )
"""

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class MethodCategory(str, Enum):
    """Categories a fight result method can fall into"""
    KO_TKO = "KO/TKO"
    SUBMISSION = "Submission"
    DECISION = "Decision"
    DRAW = "Draw"
    OTHER = "Other"


# Categories that count towards a win-method breakdown
FINISH_CATEGORIES = (MethodCategory.KO_TKO, MethodCategory.SUBMISSION, MethodCategory.DECISION)


@dataclass(frozen=True)
class MethodRule:
    """Maps a set of case-insensitive substrings onto a category"""
    category: MethodCategory
    keywords: Tuple[str, ...]

    def matches(self, method: str) -> bool:
        method = method.lower()
        return any(keyword in method for keyword in self.keywords)


DEFAULT_METHOD_RULES: Tuple[MethodRule, ...] = (
    MethodRule(MethodCategory.DRAW, ('draw',)),
    MethodRule(MethodCategory.KO_TKO, ('ko', 'tko', 'knockout')),
    MethodRule(MethodCategory.SUBMISSION, ('submission', 'sub')),
    MethodRule(MethodCategory.DECISION, ('decision', 'dec')),
)


class MethodClassifier:
    """Ordered, injectable rule table for method strings"""

    def __init__(self, rules: Optional[Sequence[MethodRule]] = None):
        self.rules: Tuple[MethodRule, ...] = tuple(rules) if rules is not None else DEFAULT_METHOD_RULES

    def classify(self, method: Optional[str]) -> MethodCategory:
        if not method or not isinstance(method, str):
            return MethodCategory.OTHER

        for rule in self.rules:
            if rule.matches(method):
                return rule.category

        logger.debug(f"Unclassified fight method: {method!r}")
        return MethodCategory.OTHER

    def count(self, methods: Iterable[Optional[str]]) -> Dict[MethodCategory, int]:
        """Count methods per category; every category is present in the result"""
        counts = Counter(self.classify(m) for m in methods)
        return {category: counts.get(category, 0) for category in MethodCategory}

    def keywords_for(self, category: MethodCategory) -> Tuple[str, ...]:
        keywords = []
        for rule in self.rules:
            if rule.category == category:
                keywords.extend(k for k in rule.keywords if k not in keywords)
        return tuple(keywords)

    def with_rule(self, rule: MethodRule, first: bool = True) -> 'MethodClassifier':
        """Return a new classifier with rule added at the front (or back) of the table"""
        rules = (rule,) + self.rules if first else self.rules + (rule,)
        return MethodClassifier(rules)


DEFAULT_METHOD_CLASSIFIER = MethodClassifier()
