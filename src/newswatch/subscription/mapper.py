from typing import List, Optional

from ..errors import FormatError
from ..models import (
    DEFAULT_TIMEZONE,
    ParsedCommand,
    SchedulePreset,
    Subscription,
    SubscriptionFilter,
)


def _normalize_language(language: Optional[str]) -> Optional[str]:
    if language is None:
        return None
    language = language.strip()
    return language or None


def to_subscription(
    command: ParsedCommand,
    keywords: List[str],
    default_schedule: SchedulePreset = SchedulePreset.MORNING_EVENING,
    timezone: str = DEFAULT_TIMEZONE,
) -> Subscription:
    """Build a new, enabled subscription from a parsed /subscribe command.

    Args:
        command: Parsed command
        keywords: Normalized keywords to store instead of the raw ones
        default_schedule: Used when the command carries no schedule
        timezone: Delivery timezone

    Raises:
        FormatError: if the first keyword is blank or max_items is not positive
    """
    if not keywords or keywords[0] is None or not keywords[0].strip():
        raise FormatError("First keyword must be non-blank")
    if command.max_items < 1:
        raise FormatError("maxItems must be a positive integer")

    return Subscription(
        chat_id=command.chat_id,
        schedule=command.schedule or default_schedule,
        timezone=timezone,
        max_items=command.max_items,
        enabled=True,
        filter=SubscriptionFilter(
            keywords=list(keywords),
            tickers=[],
            language=_normalize_language(command.language),
        ),
    )
