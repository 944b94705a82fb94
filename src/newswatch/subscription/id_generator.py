import re
from typing import Iterable, Set

from ..models import Subscription

ID_PREFIX = "sub"

_SEPARATORS = re.compile(r"[/._+]+")
_INVALID_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASH_RUNS = re.compile(r"-{2,}")
_EDGE_DASHES = re.compile(r"^-+|-+$")


def slugify(text: str) -> str:
    """Lowercase ASCII slug made of letters, digits and single dashes"""
    slug = (text or "").lower()
    slug = _SEPARATORS.sub("-", slug)
    slug = _INVALID_CHARS.sub("", slug)
    slug = _WHITESPACE.sub("-", slug)
    slug = _DASH_RUNS.sub("-", slug)
    return _EDGE_DASHES.sub("", slug)


def _first_keyword(candidate: Subscription) -> str:
    if candidate.filter is None or not candidate.filter.keywords:
        raise ValueError("Subscription has no keywords")
    return candidate.filter.keywords[0]


def _taken_ids(existing: Iterable[Subscription], chat_id: int) -> Set[str]:
    return {s.id for s in existing if s.chat_id == chat_id and s.id is not None}


def generate_unique_id(candidate: Subscription, existing: Iterable[Subscription]) -> str:
    """Build an id of the form sub-<chat_id>-<slug>, unique within the chat.

    On collision the first free numeric suffix starting at -2 is used.
    Records of other chats are ignored.

    Raises:
        ValueError: if the first keyword does not produce a slug
    """
    slug = slugify(_first_keyword(candidate))
    if not slug:
        raise ValueError("Keyword does not produce a valid slug")

    base = f"{ID_PREFIX}-{candidate.chat_id}-{slug}"
    taken = _taken_ids(existing or [], candidate.chat_id)
    if base not in taken:
        return base

    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"
