from typing import List, Optional

import pytest

from newswatch.models import SchedulePreset, Subscription, SubscriptionFilter
from newswatch.subscription.service import SubscriptionService
from newswatch.subscription.storage import SubscriptionStorage


def make_subscription(
    chat_id: int = 123,
    keywords: Optional[List[str]] = None,
    language: Optional[str] = "en",
    sub_id: Optional[str] = None,
    schedule: Optional[SchedulePreset] = SchedulePreset.MORNING,
    max_items: int = 5,
) -> Subscription:
    return Subscription(
        id=sub_id,
        chat_id=chat_id,
        schedule=schedule,
        max_items=max_items,
        filter=SubscriptionFilter(
            keywords=["AI"] if keywords is None else keywords,
            language=language,
        ),
    )


@pytest.fixture
def subscriptions_path(tmp_path):
    return tmp_path / "data" / "subscriptions.json"


@pytest.fixture
def storage(subscriptions_path):
    return SubscriptionStorage(subscriptions_path)


@pytest.fixture
def service(storage, subscriptions_path):
    return SubscriptionService(storage, storage_path=subscriptions_path)
