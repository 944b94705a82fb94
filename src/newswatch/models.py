import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

LANGUAGE_PATTERN = re.compile(r"^[A-Za-z]{2}(-[A-Za-z]{2})?$")
DEFAULT_TIMEZONE = "Europe/Stockholm"


class SchedulePreset(str, Enum):
    """Delivery schedule presets, each backed by a cron expression"""
    MORNING = "MORNING"
    EVENING = "EVENING"
    MORNING_EVENING = "MORNING_EVENING"
    MORNING_LUNCH_EVENING = "MORNING_LUNCH_EVENING"

    @property
    def cron(self) -> str:
        return _SCHEDULE_CRON[self]


_SCHEDULE_CRON = {
    SchedulePreset.MORNING: "0 0 8 * * *",
    SchedulePreset.EVENING: "0 0 20 * * *",
    SchedulePreset.MORNING_EVENING: "0 0 8,20 * * *",
    SchedulePreset.MORNING_LUNCH_EVENING: "0 0 8,12,20 * * *",
}


class SubscriptionFilter(BaseModel):
    """Filtering rules of a subscription"""
    keywords: List[str] = Field(default_factory=list, description="Keywords, compared case-insensitively")
    tickers: List[str] = Field(default_factory=list, description="Stock tickers")
    language: Optional[str] = Field(default=None, description="ISO code like 'en' or 'sv-SE'; None means any")

    @field_validator("language")
    @classmethod
    def check_language(cls, value: Optional[str]) -> Optional[str]:
        # Blank values are left for SubscriptionValidator to report
        if value is None or not value.strip():
            return value
        if not LANGUAGE_PATTERN.match(value.strip()):
            raise ValueError("Language must be ISO code like 'en' or 'sv-SE'")
        return value


class Subscription(BaseModel):
    """A chat's keyword subscription"""
    id: Optional[str] = None
    chat_id: int = Field(gt=0)
    filter: Optional[SubscriptionFilter] = None
    schedule: Optional[SchedulePreset] = None
    timezone: str = DEFAULT_TIMEZONE
    max_items: int = Field(default=5, gt=0)
    enabled: bool = True


class SubscriptionList(BaseModel):
    """File wrapper for persisted subscriptions"""
    subscriptions: List[Subscription] = Field(default_factory=list)


@dataclass
class ParsedCommand:
    """Structured /subscribe command"""
    chat_id: int
    language: Optional[str]
    max_items: int
    keywords: List[str] = field(default_factory=list)
    schedule: Optional[SchedulePreset] = None


@dataclass
class InboundCommand:
    """Text message extracted from an update"""
    chat_id: int
    text: str


@dataclass
class Update:
    """Single update as returned by getUpdates"""
    update_id: int
    chat_id: Optional[int] = None
    text: Optional[str] = None


@dataclass
class UpdateBatch:
    """Result of one getUpdates call"""
    ok: bool
    updates: List[Update] = field(default_factory=list)
