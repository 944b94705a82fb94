from typing import List, Optional

from ..models import Subscription
from .sanitizer import contains_same_keywords, uses_same_language

NULL_SUBSCRIPTION = "Subscription cannot be null."
NULL_FILTER = "Subscription filter cannot be null."
NO_KEYWORDS = "At least one keyword must be specified."
NO_LANGUAGE = "Language must be specified."
DUPLICATE = "A subscription with the same keywords and language already exists for this chat."


def _validate_structure(candidate: Optional[Subscription]) -> Optional[str]:
    """Check mandatory fields before looking for duplicates"""
    if candidate is None:
        return NULL_SUBSCRIPTION
    if candidate.filter is None:
        return NULL_FILTER
    if not candidate.filter.keywords:
        return NO_KEYWORDS
    if candidate.filter.language is None or not candidate.filter.language.strip():
        return NO_LANGUAGE
    return None


def validate(candidate: Optional[Subscription], existing: Optional[List[Subscription]]) -> Optional[str]:
    """Validate a subscription before it is saved.

    Returns:
        An error message, or None when the candidate is complete and
        not a duplicate of a subscription of the same chat.
    """
    error = _validate_structure(candidate)
    if error:
        return error

    for other in existing or []:
        if (
            other.chat_id == candidate.chat_id
            and uses_same_language(other, candidate)
            and contains_same_keywords(other, candidate)
        ):
            return DUPLICATE
    return None
