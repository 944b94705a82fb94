import logging
import logging.handlers
import signal
import threading
from pathlib import Path
from typing import List, Optional

from .bot.client import TelegramClient
from .bot.handlers import BotHandlers
from .bot.poller import LongPollRunner
from .config import AppConfig, ConfigManager
from .subscription.service import SubscriptionService
from .subscription.storage import SubscriptionStorage

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_FILE = "app.log"
LOG_BACKUP_DAYS = 30
QUIET_LOGGERS = ("urllib3",)


def _rotating_file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_dir / LOG_FILE,
        when="midnight",
        backupCount=LOG_BACKUP_DAYS,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    return handler


def setup_logging(log_dir: Optional[Path] = None, level: int = logging.INFO) -> None:
    """Route the root logger to stdout and, given log_dir, to a daily rotated file.

    Replaces any handlers installed earlier, including the CLI's console default.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_dir:
        handlers.append(_rotating_file_handler(log_dir))

    formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def create_service(config: AppConfig, config_manager: ConfigManager) -> SubscriptionService:
    """Build the subscription service for the configured storage file"""
    path = config_manager.get_subscriptions_path(config)
    return SubscriptionService(SubscriptionStorage(path), storage_path=path)


class Application:
    """Wires the Telegram client, subscription service and long-poll worker"""

    def __init__(self, config: AppConfig, config_manager: ConfigManager):
        self.config = config
        self.config_manager = config_manager
        telegram = config.telegram

        self.client = TelegramClient(
            token=telegram.bot_token,
            base_url=telegram.base_url,
            request_timeout=telegram.request_timeout_seconds,
        )
        self.service = create_service(config, config_manager)
        self.handlers = BotHandlers(
            replier=self.client,
            service=self.service,
            messages=config.messages,
            defaults=config.defaults,
        )
        self.poller = LongPollRunner(
            source=self.client,
            dispatch=self.handlers.dispatch,
            bot_token=telegram.bot_token,
            enabled=telegram.enabled,
            initial_offset=telegram.initial_offset,
            long_poll_timeout=telegram.long_poll_timeout_seconds,
        )
        self._shutdown = threading.Event()

    def start(self) -> bool:
        """Start polling; returns whether the worker is running"""
        self.poller.start()
        return self.poller.running

    def stop(self) -> None:
        self.poller.stop()
        self._shutdown.set()

    def run(self) -> None:
        """Start the application and block until SIGINT/SIGTERM"""
        if not self.start():
            logger.error("❌ Long-poll worker did not start, check the telegram config")
            return

        def handle_signal(signum, frame):
            logger.info(f"Received signal {signum}, shutting down")
            self._shutdown.set()

        signal.signal(signal.SIGINT, handle_signal)
        signal.signal(signal.SIGTERM, handle_signal)

        logger.info(f"🚀 Bot running, subscriptions stored in {self.config_manager.get_subscriptions_path(self.config)}")
        # Wait in short slices so signal handlers get a chance to run
        while not self._shutdown.wait(1.0):
            pass
        self.stop()
