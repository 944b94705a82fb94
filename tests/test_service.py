import json
from unittest.mock import MagicMock

import pytest

from newswatch.errors import FormatError, PersistenceError
from newswatch.models import ParsedCommand, SchedulePreset
from newswatch.subscription import validator
from newswatch.subscription.formatter import format_subscription
from newswatch.subscription.mapper import to_subscription
from newswatch.subscription.service import SubscriptionService
from newswatch.subscription.storage import SubscriptionStorage

from conftest import make_subscription


# Storage

def test_storage_round_trip(storage, subscriptions_path):
    subs = [make_subscription(sub_id="sub-123-ai"), make_subscription(chat_id=7, keywords=["Space"], sub_id="sub-7-space")]
    assert storage.save(subs) is True
    assert subscriptions_path.exists()

    loaded = storage.load()
    assert [s.id for s in loaded] == ["sub-123-ai", "sub-7-space"]
    assert loaded[0].filter.keywords == ["AI"]
    assert loaded[0].schedule == SchedulePreset.MORNING
    assert loaded[0].timezone == "Europe/Stockholm"


def test_storage_file_layout(storage, subscriptions_path):
    storage.save([make_subscription(sub_id="sub-123-ai")])
    data = json.loads(subscriptions_path.read_text(encoding="utf-8"))
    assert data["subscriptions"][0]["chat_id"] == 123
    assert data["subscriptions"][0]["filter"]["language"] == "en"


def test_storage_none_path_falls_back_to_default(storage, subscriptions_path):
    assert storage.save([make_subscription(sub_id="sub-123-ai")], None) is True
    assert subscriptions_path.exists()
    assert [s.id for s in storage.load(None)] == ["sub-123-ai"]


def test_storage_missing_file_returns_empty(tmp_path):
    assert SubscriptionStorage(tmp_path / "missing.json").load() == []


@pytest.mark.parametrize("content", ["not json", "{\"subscriptions\": [{\"chat_id\": -1}]}", "[]", ""])
def test_storage_invalid_content_returns_empty(tmp_path, content):
    path = tmp_path / "subs.json"
    path.write_text(content, encoding="utf-8")
    assert SubscriptionStorage(path).load() == []


def test_storage_save_failure_is_reported_not_raised(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    assert SubscriptionStorage().save([make_subscription()], blocker / "subs.json") is False


# Mapper and formatter

def test_mapper_applies_defaults():
    parsed = ParsedCommand(chat_id=5, language=" en ", max_items=3, keywords=["AI"])
    sub = to_subscription(parsed, ["ai"])
    assert sub.chat_id == 5
    assert sub.schedule == SchedulePreset.MORNING_EVENING
    assert sub.timezone == "Europe/Stockholm"
    assert sub.enabled is True
    assert sub.id is None
    assert sub.filter.keywords == ["ai"]
    assert sub.filter.tickers == []
    assert sub.filter.language == "en"


def test_mapper_keeps_explicit_schedule():
    parsed = ParsedCommand(chat_id=5, language="en", max_items=3, keywords=["AI"], schedule=SchedulePreset.EVENING)
    assert to_subscription(parsed, ["ai"], default_schedule=SchedulePreset.MORNING).schedule == SchedulePreset.EVENING


@pytest.mark.parametrize("keywords, max_items", [([], 3), (["  "], 3), (["ai"], 0), (["ai"], -2)])
def test_mapper_rejects_blank_keyword_or_non_positive_max(keywords, max_items):
    parsed = ParsedCommand(chat_id=5, language="en", max_items=max_items, keywords=["x"])
    with pytest.raises(FormatError):
        to_subscription(parsed, keywords)


def test_format_subscription():
    line = format_subscription(make_subscription(keywords=["ai", "robotics"], sub_id="sub-123-ai"))
    assert line == "ID: sub-123-ai | Keywords: ai, robotics | Lang: en | Schedule: MORNING | Max: 5 | Enabled: true"


def test_format_subscription_fallbacks():
    line = format_subscription(make_subscription(keywords=[], language=None, schedule=None))
    assert "ID: (no id)" in line
    assert "Keywords: (no keywords)" in line
    assert "Lang: (unknown)" in line
    assert format_subscription(None) == "(invalid subscription)"


# Service

def test_save_assigns_id_and_persists(service, storage):
    result = service.save(make_subscription(keywords=["ai"]))
    assert result.success
    assert "sub-123-ai" in result.message
    assert [s.id for s in storage.load()] == ["sub-123-ai"]


def test_save_second_subscription_with_same_first_keyword_gets_suffix(service, storage):
    assert service.save(make_subscription(keywords=["ai"])).success
    result = service.save(make_subscription(keywords=["ai", "chips"]))
    assert result.success
    assert [s.id for s in storage.load()] == ["sub-123-ai", "sub-123-ai-2"]


def test_same_keyword_in_two_chats_never_collides(service, storage):
    assert service.save(make_subscription(chat_id=111, keywords=["ai"])).success
    assert service.save(make_subscription(chat_id=222, keywords=["ai"])).success
    assert sorted(s.id for s in storage.load()) == ["sub-111-ai", "sub-222-ai"]


def test_save_rejects_duplicate(service, storage):
    service.save(make_subscription(keywords=["ai", "ml"]))
    result = service.save(make_subscription(keywords=["ML", "AI"], language="EN"))
    assert not result.success
    assert result.message == validator.DUPLICATE
    assert len(storage.load()) == 1


def test_save_none_fails(service):
    result = service.save(None)
    assert not result.success


def test_save_with_explicit_storage_path(service, tmp_path):
    other = tmp_path / "other.json"
    assert service.save(make_subscription(), other).success
    assert SubscriptionStorage(other).load()[0].id == "sub-123-ai"


def test_save_converts_errors_into_failure():
    storage = MagicMock()
    storage.load.return_value = []
    result = SubscriptionService(storage).save(make_subscription(keywords=["日本"]))
    assert not result.success
    assert "Failed to save subscription" in result.message
    storage.save.assert_not_called()


def test_save_reports_write_failure():
    storage = MagicMock()
    storage.load.return_value = []
    storage.save.return_value = False
    assert not SubscriptionService(storage).save(make_subscription()).success


def test_list_by_chat_id(service):
    service.save(make_subscription(chat_id=1, keywords=["ai"]))
    service.save(make_subscription(chat_id=2, keywords=["space"]))
    service.save(make_subscription(chat_id=1, keywords=["crypto"]))

    lines = service.list_by_chat_id(1)
    assert len(lines) == 2
    assert lines[0].startswith("ID: sub-1-ai |")
    assert lines[1].startswith("ID: sub-1-crypto |")
    assert service.list_by_chat_id(3) == []


def test_list_wraps_storage_errors():
    storage = MagicMock()
    storage.load.side_effect = RuntimeError("disk gone")
    with pytest.raises(PersistenceError, match="Failed to list subscriptions"):
        SubscriptionService(storage).list_by_chat_id(1)


def test_remove_by_id_case_insensitive(service, storage):
    service.save(make_subscription(keywords=["ai"]))
    service.save(make_subscription(keywords=["space"]))
    assert service.remove_by_id_or_keyword(123, "SUB-123-AI") is True
    assert [s.id for s in storage.load()] == ["sub-123-space"]


def test_remove_by_keyword_removes_every_match_of_chat_only(service, storage):
    service.save(make_subscription(chat_id=1, keywords=["ai", "ml"]))
    service.save(make_subscription(chat_id=1, keywords=["robots", "AI"], language="sv"))
    service.save(make_subscription(chat_id=2, keywords=["ai"]))

    assert service.remove_by_id_or_keyword(1, "  Ai ") is True
    assert [s.chat_id for s in storage.load()] == [2]


def test_remove_without_match_does_not_write(service, storage, subscriptions_path):
    service.save(make_subscription(keywords=["ai"]))
    before = subscriptions_path.read_text(encoding="utf-8")
    assert service.remove_by_id_or_keyword(123, "space") is False
    assert service.remove_by_id_or_keyword(999, "ai") is False
    assert subscriptions_path.read_text(encoding="utf-8") == before


@pytest.mark.parametrize("arg", ["", "   ", None])
def test_remove_blank_argument_does_not_touch_storage(arg):
    storage = MagicMock()
    assert SubscriptionService(storage).remove_by_id_or_keyword(1, arg) is False
    storage.load.assert_not_called()
