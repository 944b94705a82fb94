from .client import TelegramClient
from .handlers import BotHandlers, CommandKind
from .parser import parse_subscribe
from .poller import LongPollRunner

__all__ = ["BotHandlers", "CommandKind", "LongPollRunner", "TelegramClient", "parse_subscribe"]
