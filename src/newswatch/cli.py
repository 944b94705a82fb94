import json
import logging

import click
from pydantic import ValidationError

from . import __version__
from .config import AppConfig, ConfigManager, StorageConfig, TelegramConfig
from .errors import FormatError, PersistenceError
from .models import SchedulePreset

CONFIG_DIR_OPTION = click.option(
    "--config-dir",
    type=click.Path(),
    default=None,
    help="Configuration directory"
)


def _mask(token: str) -> str:
    if not token:
        return "(not set)"
    if len(token) <= 15:
        return "***"
    return f"{token[:10]}...{token[-5:]}"


def _load_config(config_manager: ConfigManager) -> AppConfig:
    """Load config or exit with a readable error"""
    if not config_manager.exists():
        raise click.ClickException("Config file not found, run 'newswatch init' first")
    try:
        return config_manager.load()
    except (ValidationError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Invalid config file {config_manager.config_path}: {e}")


@click.group(name="newswatch", help="Keyword news alert subscriptions over Telegram")
def cli():
    from .app import LOG_FORMAT

    # Console-only default; `run` replaces it with setup_logging
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)


@cli.command(help="Show version")
def version():
    click.echo(f"newswatch {__version__}")


@cli.command(help="Create a configuration interactively")
@CONFIG_DIR_OPTION
def init(config_dir):
    config_manager = ConfigManager(config_dir)

    click.echo("🚀 newswatch - initial configuration\n")

    if config_manager.exists():
        click.echo(f"A configuration already exists at {config_manager.config_path}")
        if not click.confirm("Overwrite it?", default=False):
            click.echo("Cancelled")
            return

    click.echo("1. Telegram Bot Token")
    click.echo("   Get one from @BotFather (or set NEWSWATCH_BOT_TOKEN instead)")
    bot_token = click.prompt("   Bot Token", type=str, default="", show_default=False)

    click.echo("\n2. Subscription storage")
    subscriptions_file = click.prompt("   Subscription file", type=str, default="subscriptions.json")

    click.echo("\n3. Long polling")
    poll_timeout = click.prompt("   getUpdates timeout (seconds)", type=click.IntRange(min=1), default=25)
    initial_offset = click.prompt("   Initial update offset", type=click.IntRange(min=0), default=0)

    config = AppConfig(
        telegram=TelegramConfig(
            bot_token=bot_token.strip(),
            long_poll_timeout_seconds=poll_timeout,
            initial_offset=initial_offset,
        ),
        storage=StorageConfig(subscriptions_file=subscriptions_file),
    )
    config_manager.save(config)

    click.echo(f"\n✅ Configuration saved to {config_manager.config_path}")
    click.echo("   Start the bot with: newswatch run")


@cli.command(help="Show the current configuration")
@CONFIG_DIR_OPTION
def config(config_dir):
    config_manager = ConfigManager(config_dir)
    cfg = _load_config(config_manager)

    click.echo("📋 Current configuration:")
    click.echo(f"  Config file: {config_manager.config_path}")
    click.echo(f"  Enabled: {cfg.telegram.enabled}")
    click.echo(f"  Bot Token: {_mask(cfg.telegram.bot_token)}")
    click.echo(f"  API URL: {cfg.telegram.base_url}")
    click.echo(f"  Long-poll timeout: {cfg.telegram.long_poll_timeout_seconds}s")
    click.echo(f"  Initial offset: {cfg.telegram.initial_offset}")
    click.echo(f"  Subscriptions: {config_manager.get_subscriptions_path(cfg)}")
    click.echo(f"  Default schedule: {cfg.defaults.schedule.value} ({cfg.defaults.schedule.cron})")
    click.echo(f"  Default timezone: {cfg.defaults.timezone}")

    unknown = config_manager.unknown_keys()
    if unknown:
        click.echo(f"⚠️ Unknown keys (ignored): {', '.join(unknown)}")


@cli.command(help="Start the bot")
@CONFIG_DIR_OPTION
def run(config_dir):
    config_manager = ConfigManager(config_dir)
    cfg = _load_config(config_manager)

    from .app import Application, setup_logging

    log_dir = config_manager.get_log_dir()
    setup_logging(log_dir)

    click.echo("🚀 Starting newswatch bot...")
    click.echo(f"   Subscriptions: {config_manager.get_subscriptions_path(cfg)}")
    click.echo(f"   Log directory: {log_dir}\n")

    Application(cfg, config_manager).run()


@cli.command(help="Dry-run the /subscribe parser on TEXT")
@click.argument("text")
@click.option("--chat-id", type=int, default=1, show_default=True, help="Chat id to parse for")
def parse(text, chat_id):
    from .bot.parser import parse_subscribe

    try:
        parsed = parse_subscribe(chat_id, text)
    except FormatError as e:
        raise click.ClickException(str(e))

    click.echo(f"keywords: {parsed.keywords}")
    click.echo(f"language: {parsed.language}")
    schedule = parsed.schedule.value if parsed.schedule else f"(default {SchedulePreset.MORNING_EVENING.value})"
    click.echo(f"schedule: {schedule}")
    click.echo(f"maxItems: {parsed.max_items}")


@cli.group(help="Inspect and manage stored subscriptions")
def subscriptions():
    pass


@subscriptions.command(name="list", help="List the subscriptions of a chat")
@CONFIG_DIR_OPTION
@click.option("--chat-id", type=int, required=True, help="Chat id")
def list_subscriptions(config_dir, chat_id):
    from .app import create_service

    config_manager = ConfigManager(config_dir)
    service = create_service(_load_config(config_manager), config_manager)
    try:
        lines = service.list_by_chat_id(chat_id)
    except PersistenceError as e:
        raise click.ClickException(str(e))

    if not lines:
        click.echo(f"📭 No subscriptions for chat {chat_id}")
        return
    for i, line in enumerate(lines, start=1):
        click.echo(f"{i}. {line}")


@subscriptions.command(name="remove", help="Remove a chat's subscriptions by id or keyword")
@CONFIG_DIR_OPTION
@click.option("--chat-id", type=int, required=True, help="Chat id")
@click.argument("target")
def remove_subscription(config_dir, chat_id, target):
    from .app import create_service

    config_manager = ConfigManager(config_dir)
    service = create_service(_load_config(config_manager), config_manager)
    try:
        removed = service.remove_by_id_or_keyword(chat_id, target)
    except PersistenceError as e:
        raise click.ClickException(str(e))

    if removed:
        click.echo(f"✅ Removed subscriptions matching '{target}'")
    else:
        click.echo(f"⚠️ Nothing matched '{target}' for chat {chat_id}")
