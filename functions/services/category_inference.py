"""Category Inference for the Quantity Engine.

Classifies a free-text material name against the coverage rate keywords.

Precedence when several keywords occur in the same name:
1. Longest keyword wins ("ceramic tile" beats "tile")
2. Equal lengths: the keyword occurring earliest in the name wins
3. Still tied: alphabetical keyword order

Categories listed in CATEGORY_EXCLUSIONS are skipped when the name contains
one of their excluded words.

Each match is also graded, which drives resolution confidence:
- EXACT: the whole normalized name is the keyword
- WORD: the keyword (or its plural) appears on word boundaries in the name
- PARTIAL: the keyword only appears inside a larger word
"""

import re
from typing import Dict, List, Optional, Tuple
from enum import Enum
from dataclasses import dataclass

import structlog

from models.quantity import MaterialCategory
from services.coverage_rates import COVERAGE_RATES, CoverageRate

logger = structlog.get_logger(__name__)

# Words that rule a category out whatever keyword matched
# ("Acoustic ceiling tile" is not floor or wall tile)
CATEGORY_EXCLUSIONS: Dict[MaterialCategory, Tuple[str, ...]] = {
    MaterialCategory.TILE: ("ceiling",),
}


class MatchGrade(Enum):
    """How much of the material name a keyword accounts for."""
    EXACT = "exact"
    WORD = "word"
    PARTIAL = "partial"


@dataclass(frozen=True)
class KeywordMatch:
    """A coverage keyword found in a material name."""
    rate: CoverageRate
    grade: MatchGrade
    position: int

    @property
    def keyword(self) -> str:
        return self.rate.keyword

    @property
    def category(self) -> MaterialCategory:
        return self.rate.category


def normalize_name(material_name: Optional[str]) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    return " ".join((material_name or "").lower().split())


def _word_pattern(keyword: str) -> "re.Pattern[str]":
    return re.compile(r"(?<![a-z0-9])" + re.escape(keyword) + r"(?:e?s)?(?![a-z0-9])")


_WORD_PATTERNS = {rate.keyword: _word_pattern(rate.keyword) for rate in COVERAGE_RATES}


def _grade(name: str, keyword: str) -> Optional[Tuple[MatchGrade, int]]:
    position = name.find(keyword)
    if position < 0:
        return None
    if name == keyword:
        return MatchGrade.EXACT, 0
    word_match = _WORD_PATTERNS[keyword].search(name)
    if word_match:
        return MatchGrade.WORD, word_match.start()
    return MatchGrade.PARTIAL, position


def find_matches(material_name: Optional[str]) -> List[KeywordMatch]:
    """Get every keyword contained in the name, in precedence order."""
    name = normalize_name(material_name)
    if not name:
        return []

    excluded = {
        category
        for category, words in CATEGORY_EXCLUSIONS.items()
        if any(word in name for word in words)
    }

    matches = []
    for rate in COVERAGE_RATES:
        if rate.category in excluded:
            continue
        graded = _grade(name, rate.keyword)
        if graded is None:
            continue
        grade, position = graded
        matches.append(KeywordMatch(rate=rate, grade=grade, position=position))

    matches.sort(key=lambda m: (-len(m.keyword), m.position, m.keyword))
    return matches


def match_material(material_name: Optional[str]) -> Optional[KeywordMatch]:
    """Get the winning keyword match for a name, or None."""
    matches = find_matches(material_name)
    if not matches:
        return None

    best = matches[0]
    if len(matches) > 1:
        logger.debug(
            "category_keyword_conflict",
            material_name=material_name,
            winner=best.keyword,
            candidates=[m.keyword for m in matches],
        )
    return best


def infer_category(material_name: Optional[str]) -> MaterialCategory:
    """Classify a material name; UNKNOWN when no keyword matches."""
    match = match_material(material_name)
    if match is None:
        return MaterialCategory.UNKNOWN
    return match.category


def get_coverage_info(material_name: Optional[str]) -> Optional[CoverageRate]:
    """Get the coverage entry that would be used for a name, or None."""
    match = match_material(material_name)
    return match.rate if match else None


def can_resolve(material_name: Optional[str]) -> bool:
    """True if the resolver can classify this material."""
    return infer_category(material_name) != MaterialCategory.UNKNOWN
