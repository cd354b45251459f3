"""
Competition and Difficulty Tier Classification

Thresholds are strict: a score exactly on a boundary falls into the lower
tier (0.7 competition is MEDIUM, 40 difficulty is LOW).
"""

from enum import Enum
from typing import Optional


class CompetitionLevel(str, Enum):
    """Paid-search competition tiers (0-1 score)."""
    LOW = "LOW"         # <= 0.4
    MEDIUM = "MEDIUM"   # 0.4 - 0.7
    HIGH = "HIGH"       # > 0.7


class DifficultyLevel(str, Enum):
    """Keyword difficulty tiers (0-100 score)."""
    LOW = "LOW"         # <= 40
    MEDIUM = "MEDIUM"   # 41 - 70
    HIGH = "HIGH"       # > 70


class DifficultyComplexity(str, Enum):
    """Finer difficulty tag on 20-point steps."""
    EASY = "easy"           # KD 0-20
    MODERATE = "moderate"   # KD 21-40
    MEDIUM = "medium"       # KD 41-60
    HARD = "hard"           # KD 61-80
    VERY_HARD = "very_hard" # KD 81-100


def classify_competition(score: Optional[float]) -> CompetitionLevel:
    """
    Classify a 0-1 competition score.

    Args:
        score: Competition score (None treated as 0)

    Returns:
        CompetitionLevel enum
    """
    score = score or 0.0
    if score > 0.7:
        return CompetitionLevel.HIGH
    elif score > 0.4:
        return CompetitionLevel.MEDIUM
    else:
        return CompetitionLevel.LOW


def classify_difficulty(score: Optional[float]) -> DifficultyLevel:
    """
    Classify a 0-100 keyword difficulty score.

    Args:
        score: Keyword difficulty (None treated as 0)

    Returns:
        DifficultyLevel enum
    """
    score = score or 0
    if score > 70:
        return DifficultyLevel.HIGH
    elif score > 40:
        return DifficultyLevel.MEDIUM
    else:
        return DifficultyLevel.LOW


def classify_complexity(score: Optional[float]) -> DifficultyComplexity:
    """Classify keyword difficulty into the five-step complexity tag."""
    score = score or 0
    if score > 80:
        return DifficultyComplexity.VERY_HARD
    elif score > 60:
        return DifficultyComplexity.HARD
    elif score > 40:
        return DifficultyComplexity.MEDIUM
    elif score > 20:
        return DifficultyComplexity.MODERATE
    else:
        return DifficultyComplexity.EASY


def competition_percentage(score: Optional[float]) -> int:
    """Competition score as a rounded 0-100 percentage."""
    return round((score or 0.0) * 100)
