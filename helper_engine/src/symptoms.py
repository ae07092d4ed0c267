"""
Symptom Matcher - Picks the diagnostic question set for a customer concern.

Each catalog category is scored by the total length of its keywords found in
the concern text, so longer and more specific phrases outweigh short ones.
Keywords match on word boundaries ("AC" never matches inside "vacuum");
keywords longer than 5 characters also match as plain substrings so that
punctuation-adjacent phrases still count.

A best score under MIN_MATCH_SCORE means no match, and the caller falls back
to GENERAL_QUESTIONS.
"""

import re
from pathlib import Path
from typing import Optional

from loguru import logger

from helper_engine.config.settings import load_symptom_config
from helper_engine.src.models import SymptomCategory

# Lets single keywords like "heat", "odor", "leak" or "tire" match while
# 2-3 character keywords alone stay below it.
MIN_MATCH_SCORE = 4

# Phrase keywords longer than this also match without word boundaries.
SUBSTRING_MATCH_MIN_LENGTH = 5

ADDITIONAL_QUESTIONS = [
    "How long have you been experiencing these symptoms?",
    "Do these symptoms occur at a specific time or under specific conditions?",
    "Are any warning lights on?",
]


def load_symptom_catalog(path: Path | None = None) -> tuple[list[str], list[SymptomCategory]]:
    """Load (general questions, categories) from the YAML catalog."""
    config = load_symptom_config(path)
    general = list(config.get("general_questions", []))
    categories = [SymptomCategory(**item) for item in config.get("categories", [])]
    return general, categories


GENERAL_QUESTIONS, SYMPTOM_CATEGORIES = load_symptom_catalog()


def keyword_matches(concern: str, keyword: str) -> bool:
    lower_keyword = keyword.lower()
    lower_concern = concern.lower()

    if re.search(rf"\b{re.escape(lower_keyword)}\b", lower_concern):
        return True

    # e.g. "check engine light," with trailing punctuation
    if len(lower_keyword) > SUBSTRING_MATCH_MIN_LENGTH and lower_keyword in lower_concern:
        return True

    return False


def score_category(concern: str, category: SymptomCategory) -> int:
    return sum(len(kw) for kw in category.keywords if keyword_matches(concern, kw))


def match_category(
    concern: str,
    categories: list[SymptomCategory] | None = None,
) -> Optional[SymptomCategory]:
    """
    Return the best matching category for the concern, or None.

    Ties keep the category that comes first in catalog order.
    """
    if not concern or not concern.strip():
        return None

    best_match: Optional[SymptomCategory] = None
    best_score = 0
    for category in SYMPTOM_CATEGORIES if categories is None else categories:
        score = score_category(concern, category)
        if score > best_score:
            best_score = score
            best_match = category

    if best_score < MIN_MATCH_SCORE:
        return None

    logger.debug(f"Concern matched '{best_match.name}' (score {best_score})")
    return best_match


def questions_for(concern: str) -> tuple[Optional[SymptomCategory], list[str]]:
    """Category questions for the concern, or the general fallback list."""
    category = match_category(concern)
    if category is None:
        return None, list(GENERAL_QUESTIONS)
    return category, list(category.questions)


def _numbered(questions: list[str]) -> str:
    return "\n".join(f"{i}. {q}" for i, q in enumerate(questions, start=1))


def build_questions_context(concern: str) -> str:
    """Prompt context listing the questions to guide the intake conversation."""
    category = match_category(concern)

    if category is None:
        return (
            "\nUse these general diagnostic questions as a guide:\n"
            f"{_numbered(GENERAL_QUESTIONS)}\n"
        )

    additional = "\n".join(f"- {q}" for q in ADDITIONAL_QUESTIONS)
    return (
        f"\nThe customer's concern appears to be related to: {category.name}\n\n"
        "Use these expert diagnostic questions as a guide for this type of issue:\n"
        f"{_numbered(list(category.questions))}\n\n"
        "Additional general questions if needed:\n"
        f"{additional}\n"
    )


def category_names() -> list[str]:
    return [c.name for c in SYMPTOM_CATEGORIES]
