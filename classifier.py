"""Category classifier for task text.

Rules are an ordered list of (predicate, category) pairs evaluated top to
bottom; the first predicate that matches decides the category. Text that
matches nothing is GENERAL.
"""

from functools import lru_cache
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from database import CategoryEnum
from config import settings

Predicate = Callable[[str], bool]
Rule = Tuple[Predicate, CategoryEnum]


def keyword_predicate(keywords: Iterable[str]) -> Predicate:
    """Build a case-insensitive substring predicate over the given keywords."""
    lowered = tuple(k.lower() for k in keywords if k)

    def _matches(text: str) -> bool:
        t = text.lower()
        return any(k in t for k in lowered)

    return _matches


def rules_from_keywords(keywords: Dict[str, Sequence[str]]) -> List[Rule]:
    """Turn an ordered {category: [keywords]} mapping into rules.

    Raises:
        ValueError: if a key is not a known category
    """
    rules: List[Rule] = []
    for category_name, words in keywords.items():
        try:
            category = CategoryEnum(category_name.lower())
        except ValueError:
            raise ValueError(f"Unknown category in keyword rules: {category_name!r}") from None
        rules.append((keyword_predicate(words), category))
    return rules


class Classifier:
    """Maps free text to a category using ordered rules."""

    def __init__(self, rules: Optional[List[Rule]] = None):
        if rules is None:
            rules = rules_from_keywords(settings.CATEGORY_KEYWORDS)
        self.rules = list(rules)

    def classify(self, text: str) -> CategoryEnum:
        for predicate, category in self.rules:
            if predicate(text):
                return category
        return CategoryEnum.GENERAL


@lru_cache(maxsize=8)
def _classifier_for(keywords: Tuple[Tuple[str, Tuple[str, ...]], ...]) -> Classifier:
    return Classifier(rules_from_keywords(dict(keywords)))


def classify(text: str) -> CategoryEnum:
    """Classify text with the rules currently in settings.CATEGORY_KEYWORDS.

    The rules are rebuilt whenever the keyword settings change.
    """
    key = tuple((category, tuple(words)) for category, words in settings.CATEGORY_KEYWORDS.items())
    return _classifier_for(key).classify(text)
