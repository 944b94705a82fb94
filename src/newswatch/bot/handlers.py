import logging
import re
from enum import Enum
from typing import List, Optional, Protocol

from ..config import DefaultsConfig, MessagesConfig
from ..errors import FormatError
from ..models import InboundCommand
from ..subscription.mapper import to_subscription
from ..subscription.sanitizer import normalize_keywords
from ..subscription.service import SubscriptionService
from .parser import parse_subscribe

logger = logging.getLogger(__name__)

UNSUBSCRIBE_PREFIX = re.compile(r"^/unsubscribe\s*")


class Replier(Protocol):
    def send_text(self, chat_id: int, text: str) -> bool:
        ...


class CommandKind(Enum):
    """Commands the bot understands, keyed by their exact chat literal"""
    HELP = "/help"
    START = "/start"
    SUBSCRIBE = "/subscribe"
    LIST = "/list"
    UNSUBSCRIBE = "/unsubscribe"
    UNKNOWN = ""

    @classmethod
    def from_text(cls, text: Optional[str]) -> "CommandKind":
        """Resolve the first token by exact, case-sensitive match"""
        parts = (text or "").split()
        if not parts:
            return cls.UNKNOWN
        for kind in cls:
            if kind is not cls.UNKNOWN and kind.value == parts[0]:
                return kind
        return cls.UNKNOWN


def render_list(lines: List[str]) -> str:
    """Number display lines as '1. ...', one per line"""
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))


class BotHandlers:
    """Routes inbound chat commands to subscription operations and replies"""

    def __init__(
        self,
        replier: Replier,
        service: SubscriptionService,
        messages: Optional[MessagesConfig] = None,
        defaults: Optional[DefaultsConfig] = None,
    ):
        self.replier = replier
        self.service = service
        self.messages = messages or MessagesConfig()
        self.defaults = defaults or DefaultsConfig()

    def dispatch(self, command: InboundCommand) -> None:
        """Handle one command. Never raises; failures are logged and answered."""
        kind = CommandKind.from_text(command.text)
        try:
            if kind in (CommandKind.HELP, CommandKind.START):
                self.help(command)
            elif kind is CommandKind.SUBSCRIBE:
                self.subscribe(command)
            elif kind is CommandKind.LIST:
                self.list_subscriptions(command)
            elif kind is CommandKind.UNSUBSCRIBE:
                self.unsubscribe(command)
            else:
                self.unknown(command)
        except Exception as e:
            logger.exception(f"Error while handling {kind.name} for chat {command.chat_id}: {e}")
            self._reply_safely(command, self.messages.unexpected)

    def help(self, command: InboundCommand) -> None:
        """Handle /help and /start"""
        logger.debug(f"Help requested by chat {command.chat_id}")
        self._reply(command, self.messages.help)

    def subscribe(self, command: InboundCommand) -> None:
        """Handle /subscribe: parse, map, save and confirm"""
        try:
            parsed = parse_subscribe(command.chat_id, command.text)
            subscription = to_subscription(
                parsed,
                normalize_keywords(parsed.keywords),
                default_schedule=self.defaults.schedule,
                timezone=self.defaults.timezone,
            )
        except FormatError as e:
            logger.debug(f"Invalid /subscribe from chat {command.chat_id}: {e}")
            self._reply(command, self.messages.invalid_format.format(reason=e))
            self._reply(command, self.messages.help)
            return

        result = self.service.save(subscription)
        if result.success:
            logger.info(f"✅ New subscription {subscription.id} for chat {command.chat_id}")
            self._reply(command, self.messages.saved.format(id=subscription.id))
        else:
            self._reply(command, f"⚠️ {result.message}")

    def list_subscriptions(self, command: InboundCommand) -> None:
        """Handle /list"""
        lines = self.service.list_by_chat_id(command.chat_id)
        if not lines:
            self._reply(command, self.messages.none)
        else:
            self._reply(command, self.messages.listing.format(subscriptions=render_list(lines)))
        logger.debug(f"Listed subscriptions for chat {command.chat_id} (count={len(lines)})")

    def unsubscribe(self, command: InboundCommand) -> None:
        """Handle /unsubscribe <id or keyword>"""
        arg = UNSUBSCRIBE_PREFIX.sub("", command.text.strip(), count=1).strip()
        if not arg:
            self._reply(command, self.messages.not_found)
            return
        removed = self.service.remove_by_id_or_keyword(command.chat_id, arg)
        self._reply(command, self.messages.removed if removed else self.messages.not_found)
        logger.info(f"Unsubscribe for chat {command.chat_id} arg={arg!r} removed={removed}")

    def unknown(self, command: InboundCommand) -> None:
        """Answer anything that is not a known command"""
        logger.warning(f"Unknown command from chat {command.chat_id}: {command.text[:50]!r}")
        self._reply(command, self.messages.unknown_command)

    def _reply(self, command: InboundCommand, text: str) -> None:
        if not self.replier.send_text(command.chat_id, text):
            logger.warning(f"Reply to chat {command.chat_id} was not delivered")

    def _reply_safely(self, command: InboundCommand, text: str) -> None:
        try:
            self._reply(command, text)
        except Exception as e:
            logger.error(f"Failed to send error reply to chat {command.chat_id}: {e}")
