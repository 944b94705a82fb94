import re
from typing import List, Optional

from ..errors import FormatError
from ..models import ParsedCommand, SchedulePreset

SUBSCRIBE_COMMAND = "/subscribe"
USAGE = "Usage: /subscribe <keywords> <language> [schedule] <maxItems>"

# Either a double-quoted run or a run of non-whitespace characters
TOKEN_PATTERN = re.compile(r'"([^"]+)"|(\S+)')
LANGUAGE_TOKEN = re.compile(r"[a-zA-Z]{2}")
INTEGER_TOKEN = re.compile(r"[+-]?[0-9]+")

SCHEDULE_ALIASES = {
    "morning": SchedulePreset.MORNING,
    "m": SchedulePreset.MORNING,
    "evening": SchedulePreset.EVENING,
    "e": SchedulePreset.EVENING,
    "morning_evening": SchedulePreset.MORNING_EVENING,
    "me": SchedulePreset.MORNING_EVENING,
    "morning_lunch_evening": SchedulePreset.MORNING_LUNCH_EVENING,
    "mle": SchedulePreset.MORNING_LUNCH_EVENING,
}


def tokenize(text: str) -> List[str]:
    """Split text into quoted or whitespace-delimited tokens"""
    return [quoted or bare for quoted, bare in TOKEN_PATTERN.findall(text)]


def parse_schedule(token: Optional[str]) -> Optional[SchedulePreset]:
    """Resolve a schedule alias, or None if the token is not one"""
    if token is None:
        return None
    return SCHEDULE_ALIASES.get(token.lower())


def _parse_max_items(token: str) -> int:
    if not INTEGER_TOKEN.fullmatch(token):
        raise FormatError("maxItems must be an integer")
    return int(token)


def _parse_language(token: str) -> str:
    if not LANGUAGE_TOKEN.fullmatch(token):
        raise FormatError("Language code must be exactly two letters")
    return token.lower()


def parse_subscribe(chat_id: int, text: str) -> ParsedCommand:
    """Parse a /subscribe command.

    Format:
        /subscribe <keywords...> <language> [schedule] <maxItems>

    Positions are read from the right: the last token is maxItems, the one
    before it is either a schedule alias or the language.

    Raises:
        FormatError: with a user-facing reason
    """
    tokens = tokenize((text or "").strip())
    if len(tokens) < 4 or tokens[0].lower() != SUBSCRIBE_COMMAND:
        raise FormatError(USAGE)

    max_items = _parse_max_items(tokens[-1])

    schedule = parse_schedule(tokens[-2])
    boundary = len(tokens) - 3 if schedule else len(tokens) - 2
    language = _parse_language(tokens[boundary])

    keywords = tokens[1:boundary]
    if not keywords:
        raise FormatError("At least one keyword is required")

    return ParsedCommand(
        chat_id=chat_id,
        language=language,
        max_items=max_items,
        keywords=keywords,
        schedule=schedule,
    )
