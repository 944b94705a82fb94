import json
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import DEFAULT_TIMEZONE, SchedulePreset

TOKEN_ENV_VAR = "NEWSWATCH_BOT_TOKEN"


class TelegramConfig(BaseModel):
    """Telegram Bot API and long-poll configuration"""
    enabled: bool = Field(
        default=True,
        description="Whether the long-poll worker should start"
    )
    bot_token: str = Field(
        default="",
        description="Telegram Bot Token"
    )
    base_url: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )
    initial_offset: int = Field(
        default=0,
        ge=0,
        description="First update_id to request after startup"
    )
    long_poll_timeout_seconds: int = Field(
        default=25,
        description="getUpdates long-poll timeout in seconds"
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout added on top of the long-poll timeout"
    )


class StorageConfig(BaseModel):
    """Subscription storage configuration"""
    subscriptions_file: str = Field(
        default="subscriptions.json",
        description="Subscription file, relative to the config directory"
    )


class DefaultsConfig(BaseModel):
    """Values applied to new subscriptions"""
    timezone: str = Field(default=DEFAULT_TIMEZONE, description="Delivery timezone")
    schedule: SchedulePreset = Field(
        default=SchedulePreset.MORNING_EVENING,
        description="Schedule used when a command has none"
    )


class MessagesConfig(BaseModel):
    """User-facing bot replies"""
    help: str = (
        "📖 News alerts bot\n\n"
        "/subscribe <keywords> <language> [schedule] <maxItems>\n"
        "  schedule: morning|m, evening|e, morning_evening|me, morning_lunch_evening|mle\n"
        "  quote multi-word keywords: /subscribe \"Silicon Valley\" en me 5\n"
        "/list - show your subscriptions\n"
        "/unsubscribe <id or keyword> - remove a subscription\n"
        "/help - this message"
    )
    unknown_command: str = "🤔 Unknown command. Send /help to see what I understand."
    saved: str = "✅ Subscription saved: {id}"
    invalid_format: str = "❌ Invalid command: {reason}"
    listing: str = "📋 Your subscriptions:\n{subscriptions}"
    none: str = "📭 You have no subscriptions yet."
    removed: str = "✅ Subscription removed."
    not_found: str = "⚠️ No matching subscription found."
    unexpected: str = "⚠️ Something went wrong, please try again later."


class AppConfig(BaseModel):
    """Application configuration"""
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)


class ConfigManager:
    """Manages application configuration"""

    CONFIG_FILE = "config.json"
    LOG_DIR = "logs"

    def __init__(self, config_dir: Optional[Path] = None):
        # Default to current working directory
        self.config_dir = Path(config_dir) if config_dir else Path.cwd()
        self.config_path = self.config_dir / self.CONFIG_FILE

    def ensure_config_dir(self) -> None:
        """Ensure config directory exists"""
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def load(self) -> Optional[AppConfig]:
        """Load configuration from file, applying the token environment override"""
        if not self.config_path.exists():
            return None
        with open(self.config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        config = AppConfig.model_validate(data)

        env_token = os.environ.get(TOKEN_ENV_VAR, "").strip()
        if env_token:
            config.telegram.bot_token = env_token
        return config

    def load_raw(self) -> Optional[dict]:
        """Load the configuration file as a plain dict, without validation"""
        if not self.config_path.exists():
            return None
        with open(self.config_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def unknown_keys(self) -> List[str]:
        """Keys in the config file that AppConfig does not define (they are ignored on load)"""
        raw = self.load_raw()
        if not isinstance(raw, dict):
            return []
        unknown = []
        for key, value in raw.items():
            field = AppConfig.model_fields.get(key)
            if field is None:
                unknown.append(key)
                continue
            section = field.annotation
            if isinstance(value, dict) and hasattr(section, "model_fields"):
                unknown.extend(f"{key}.{name}" for name in value if name not in section.model_fields)
        return unknown

    def save(self, config: AppConfig) -> None:
        """Save configuration to file"""
        self.ensure_config_dir()
        with open(self.config_path, "w", encoding="utf-8") as f:
            data = config.model_dump(mode="json", exclude_none=True)
            json.dump(data, f, indent=2, ensure_ascii=False)

    def exists(self) -> bool:
        """Check if configuration file exists"""
        return self.config_path.exists()

    def get_subscriptions_path(self, config: AppConfig) -> Path:
        """Resolve the subscription file against the config directory"""
        path = Path(config.storage.subscriptions_file)
        if not path.is_absolute():
            path = self.config_dir / path
        return path

    def get_log_dir(self) -> Path:
        """Get log directory path"""
        return self.config_dir / self.LOG_DIR
