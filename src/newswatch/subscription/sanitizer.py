from typing import Iterable, List, Optional, Set

from ..models import SchedulePreset, Subscription


def _normalize(value: str) -> str:
    # str.lower is locale independent
    return value.lower()


def normalize_keywords(incoming: Optional[Iterable[Optional[str]]]) -> List[str]:
    """Trim, lowercase and deduplicate keywords, keeping first-seen order.

    None and blank entries are dropped.
    """
    if incoming is None:
        return []
    seen: Set[str] = set()
    result = []
    for keyword in incoming:
        if keyword is None:
            continue
        keyword = keyword.strip()
        if not keyword:
            continue
        keyword = _normalize(keyword)
        if keyword not in seen:
            seen.add(keyword)
            result.append(keyword)
    return result


def _keywords(subscription: Optional[Subscription]) -> List[str]:
    if subscription is None or subscription.filter is None:
        return []
    return subscription.filter.keywords or []


def _language(subscription: Optional[Subscription]) -> Optional[str]:
    if subscription is None or subscription.filter is None:
        return None
    language = subscription.filter.language
    return None if language is None else _normalize(language)


def _schedule(subscription: Optional[Subscription]) -> Optional[SchedulePreset]:
    return None if subscription is None else subscription.schedule


def contains_same_keywords(a: Optional[Subscription], b: Optional[Subscription]) -> bool:
    """Whether both subscriptions hold the same keyword set, ignoring case and order"""
    return {_normalize(k) for k in _keywords(a)} == {_normalize(k) for k in _keywords(b)}


def uses_same_language(a: Optional[Subscription], b: Optional[Subscription]) -> bool:
    """Whether both subscriptions use the same language, ignoring case"""
    return _language(a) == _language(b)


def uses_same_schedule(a: Optional[Subscription], b: Optional[Subscription]) -> bool:
    """Whether both subscriptions use the same schedule preset"""
    return _schedule(a) == _schedule(b)
