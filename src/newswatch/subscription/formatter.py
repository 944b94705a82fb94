from typing import Optional

from ..models import Subscription


def _or_fallback(value: Optional[str], fallback: str) -> str:
    return fallback if value is None or not value.strip() else value


def format_subscription(subscription: Optional[Subscription]) -> str:
    """Render a subscription as a single display line"""
    if subscription is None:
        return "(invalid subscription)"

    sub_filter = subscription.filter
    keywords = ", ".join(sub_filter.keywords) if sub_filter and sub_filter.keywords else "(no keywords)"
    language = _or_fallback(sub_filter.language if sub_filter else None, "(unknown)")
    schedule = subscription.schedule.value if subscription.schedule else "(default)"

    return (
        f"ID: {_or_fallback(subscription.id, '(no id)')} | "
        f"Keywords: {keywords} | "
        f"Lang: {language} | "
        f"Schedule: {schedule} | "
        f"Max: {subscription.max_items} | "
        f"Enabled: {str(subscription.enabled).lower()}"
    )
