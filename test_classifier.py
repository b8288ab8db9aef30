"""Tests for the category classifier."""

import pytest

from classifier import Classifier, classify, keyword_predicate, rules_from_keywords
from config import settings
from database import CategoryEnum


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Buy a new shirt", CategoryEnum.CLOTHING),
        ("Pick up the dress from the tailor", CategoryEnum.CLOTHING),
        ("buy MILK", CategoryEnum.GROCERY),
        ("apples and fruit", CategoryEnum.GROCERY),
        ("Refill medicine", CategoryEnum.PHARMACY),
        ("headache tablet", CategoryEnum.PHARMACY),
        ("call mom", CategoryEnum.GENERAL),
        ("", CategoryEnum.GENERAL),
    ],
)
def test_default_keywords(text, expected):
    assert classify(text) == expected


def test_first_matching_rule_wins():
    # matches both clothing and grocery keywords; clothing is listed first
    assert classify("spill milk on shirt") == CategoryEnum.CLOTHING
    # grocery before pharmacy
    assert classify("milk and a tablet") == CategoryEnum.GROCERY


def test_custom_rule_order_changes_result():
    classifier = Classifier(rules_from_keywords({
        "pharmacy": ["tablet"],
        "grocery": ["milk"],
    }))
    assert classifier.classify("milk and a tablet") == CategoryEnum.PHARMACY
    assert classifier.classify("new shirt") == CategoryEnum.GENERAL


def test_arbitrary_predicates_are_allowed():
    classifier = Classifier([(lambda text: text.endswith("!"), CategoryEnum.PHARMACY)])
    assert classifier.classify("urgent!") == CategoryEnum.PHARMACY
    assert classifier.classify("calm") == CategoryEnum.GENERAL


def test_unknown_category_in_keywords_rejected():
    with pytest.raises(ValueError):
        rules_from_keywords({"hardware": ["hammer"]})


def test_keyword_predicate_is_case_insensitive():
    matches = keyword_predicate(["Milk"])
    assert matches("SKIMMED MILK")
    assert not matches("bread")


def test_classify_follows_keyword_settings(monkeypatch):
    assert classify("buy milk") == CategoryEnum.GROCERY

    monkeypatch.setattr(settings, "CATEGORY_KEYWORDS", {"pharmacy": ["milk"]})
    assert classify("buy milk") == CategoryEnum.PHARMACY
    assert classify("new shirt") == CategoryEnum.GENERAL

    monkeypatch.undo()
    assert classify("buy milk") == CategoryEnum.GROCERY
