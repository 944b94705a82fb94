import pytest

from newswatch.models import SchedulePreset, Subscription
from newswatch.subscription import validator
from newswatch.subscription.id_generator import generate_unique_id, slugify
from newswatch.subscription.sanitizer import (
    contains_same_keywords,
    normalize_keywords,
    uses_same_language,
    uses_same_schedule,
)

from conftest import make_subscription


# Sanitizer

def test_normalize_keywords_dedupes_case_and_whitespace():
    assert normalize_keywords(["AI", "ai", "AI ", " ai"]) == ["ai"]


def test_normalize_keywords_keeps_first_seen_order_and_drops_blanks():
    assert normalize_keywords(["Crypto", None, "  ", "AI", "crypto", "Space X"]) == ["crypto", "ai", "space x"]


def test_normalize_keywords_none():
    assert normalize_keywords(None) == []


def test_same_keywords_ignores_case_and_order():
    a = make_subscription(keywords=["AI", "Robotics"])
    b = make_subscription(keywords=["robotics", "ai"])
    assert contains_same_keywords(a, b)
    assert not contains_same_keywords(a, make_subscription(keywords=["ai"]))


def test_same_language_ignores_case_and_treats_none_as_equal():
    assert uses_same_language(make_subscription(language="EN"), make_subscription(language="en"))
    assert uses_same_language(make_subscription(language=None), make_subscription(language=None))
    assert not uses_same_language(make_subscription(language="en"), make_subscription(language=None))


def test_same_schedule():
    a = make_subscription(schedule=SchedulePreset.MORNING)
    assert uses_same_schedule(a, make_subscription(schedule=SchedulePreset.MORNING))
    assert not uses_same_schedule(a, make_subscription(schedule=SchedulePreset.EVENING))
    assert uses_same_schedule(make_subscription(schedule=None), make_subscription(schedule=None))


# Validator

def test_validate_accepts_new_subscription():
    assert validator.validate(make_subscription(), []) is None
    assert validator.validate(make_subscription(), None) is None


def test_validate_structural_errors_have_distinct_messages():
    no_filter = Subscription(chat_id=1)
    no_keywords = make_subscription(keywords=[])
    blank_language = make_subscription(language="  ")
    no_language = make_subscription(language=None)

    assert validator.validate(None, []) == validator.NULL_SUBSCRIPTION
    assert validator.validate(no_filter, []) == validator.NULL_FILTER
    assert validator.validate(no_keywords, []) == validator.NO_KEYWORDS
    assert validator.validate(blank_language, []) == validator.NO_LANGUAGE
    assert validator.validate(no_language, []) == validator.NO_LANGUAGE
    assert len({
        validator.NULL_SUBSCRIPTION, validator.NULL_FILTER,
        validator.NO_KEYWORDS, validator.NO_LANGUAGE,
    }) == 4


def test_validate_rejects_duplicate_of_same_chat():
    existing = [make_subscription(keywords=["Robotics", "AI"], language="EN", sub_id="sub-123-robotics")]
    candidate = make_subscription(keywords=["ai", "robotics"], language="en")
    assert validator.validate(candidate, existing) == validator.DUPLICATE


def test_validate_allows_same_keywords_in_other_chat_or_language():
    existing = [make_subscription(chat_id=111, keywords=["AI"], language="en")]
    assert validator.validate(make_subscription(chat_id=222, keywords=["AI"]), existing) is None
    assert validator.validate(make_subscription(chat_id=111, keywords=["AI"], language="sv"), existing) is None
    assert validator.validate(make_subscription(chat_id=111, keywords=["AI", "ML"]), existing) is None


# Identifier generator

def test_generate_id_is_deterministic():
    a = make_subscription(keywords=["AI"])
    b = make_subscription(keywords=["AI"])
    assert generate_unique_id(a, []) == generate_unique_id(b, []) == "sub-123-ai"


def test_generate_id_appends_suffix_on_collision():
    existing = [make_subscription(sub_id="sub-123-ai")]
    assert generate_unique_id(make_subscription(keywords=["AI"]), existing) == "sub-123-ai-2"


def test_generate_id_uses_first_free_suffix():
    existing = [make_subscription(sub_id="sub-123-ai"), make_subscription(sub_id="sub-123-ai-3")]
    assert generate_unique_id(make_subscription(keywords=["AI"]), existing) == "sub-123-ai-2"


def test_generate_id_skips_taken_suffixes():
    existing = [make_subscription(sub_id=i) for i in ("sub-123-ai", "sub-123-ai-2", "sub-123-ai-3")]
    assert generate_unique_id(make_subscription(keywords=["AI"]), existing) == "sub-123-ai-4"


def test_generate_id_is_scoped_to_chat():
    existing = [make_subscription(chat_id=111, sub_id="sub-111-ai")]
    assert generate_unique_id(make_subscription(chat_id=222, keywords=["AI"]), existing) == "sub-222-ai"


def test_generate_id_ignores_records_without_id():
    existing = [make_subscription(sub_id=None)]
    assert generate_unique_id(make_subscription(keywords=["AI"]), existing) == "sub-123-ai"


def test_generate_id_is_case_sensitive_on_existing_ids():
    existing = [make_subscription(sub_id="SUB-123-AI")]
    assert generate_unique_id(make_subscription(keywords=["AI"]), existing) == "sub-123-ai"


def test_generate_id_fails_without_slug():
    with pytest.raises(ValueError, match="slug"):
        generate_unique_id(make_subscription(keywords=["日本"]), [])


def test_generate_id_fails_without_keywords():
    with pytest.raises(ValueError):
        generate_unique_id(make_subscription(keywords=[]), [])


@pytest.mark.parametrize("text, expected", [
    ("AI", "ai"),
    ("Silicon Valley", "silicon-valley"),
    ("node.js", "node-js"),
    ("C++ / Rust", "c-rust"),
    ("snake_case", "snake-case"),
    ("  --Crypto!!  News--  ", "crypto-news"),
    ("Åland", "land"),
    ("???", ""),
])
def test_slugify(text, expected):
    assert slugify(text) == expected
