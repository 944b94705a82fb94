import logging
import time
from typing import Any, Dict, List, Optional

import requests

from ..errors import TransportError
from ..models import Update, UpdateBatch

logger = logging.getLogger(__name__)

# Telegram API timeouts
CONNECT_TIMEOUT = 10.0  # seconds
READ_TIMEOUT = 30.0     # seconds, for sendMessage

# Retry configuration for sendMessage
MAX_RETRIES = 3
RETRY_DELAY = 2.0       # seconds


class TelegramClient:
    """Minimal Telegram Bot API client for long polling and text replies"""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.telegram.org",
        request_timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.token = token
        self.api_url = f"{base_url.rstrip('/')}/bot{token}"
        self.request_timeout = request_timeout
        self.session = session or requests.Session()

    def _redact(self, text: str) -> str:
        """Strip the bot token from error text before it reaches logs"""
        return text.replace(self.token, "***") if self.token else text

    def get_updates(self, timeout_seconds: int, offset: int) -> UpdateBatch:
        """Long-poll getUpdates for updates with update_id >= offset.

        Raises:
            TransportError: on network failure, HTTP error status or invalid JSON
        """
        timeout_seconds = max(1, timeout_seconds)
        try:
            resp = self.session.get(
                f"{self.api_url}/getUpdates",
                params={"timeout": timeout_seconds, "offset": offset},
                timeout=(CONNECT_TIMEOUT, timeout_seconds + self.request_timeout),
            )
            if resp.status_code >= 400:
                raise TransportError(f"getUpdates {resp.status_code} -> {self._redact(resp.text[:200])}")
            payload = resp.json()
        except requests.RequestException as e:
            raise TransportError(f"getUpdates failed: {self._redact(str(e))}") from e
        except ValueError as e:
            raise TransportError(f"getUpdates returned invalid JSON: {e}") from e

        return parse_updates(payload)

    def send_text(self, chat_id: int, text: str) -> bool:
        """Send a plain text message, retrying on timeouts and connection errors.

        Returns:
            True: sent
            False: failed (bot blocked by the user or other error)
        """
        last_error = None

        for attempt in range(MAX_RETRIES):
            try:
                resp = self.session.post(
                    f"{self.api_url}/sendMessage",
                    json={"chat_id": chat_id, "text": text},
                    timeout=(CONNECT_TIMEOUT, READ_TIMEOUT),
                )
            except (requests.Timeout, requests.ConnectionError) as e:
                # Network problem, retry
                last_error = self._redact(str(e))
                if attempt < MAX_RETRIES - 1:
                    logger.warning(f"[telegram] send timed out for {chat_id}, retry {attempt + 1}...")
                    time.sleep(RETRY_DELAY)
                continue
            except requests.RequestException as e:
                logger.error(f"[telegram] send failed for {chat_id}: {self._redact(str(e))}")
                return False

            if resp.status_code == 403:
                # The user blocked the bot, no point in retrying
                logger.debug(f"[telegram] chat {chat_id} has blocked the bot")
                return False
            if resp.status_code >= 400:
                logger.error(f"[telegram] send failed for {chat_id}: {resp.status_code} {resp.text[:200]}")
                return False
            return True

        logger.error(f"[telegram] send failed for {chat_id} after {MAX_RETRIES} attempts: {last_error}")
        return False


def parse_updates(payload: Dict[str, Any]) -> UpdateBatch:
    """Reduce a getUpdates response to update ids, chat ids and texts.

    Updates that are not plain messages are kept (with chat_id and text
    set to None) so that the caller can still move past them.
    """
    if not isinstance(payload, dict):
        return UpdateBatch(ok=False)
    ok = payload.get("ok") is True
    result = payload.get("result")
    if not isinstance(result, list):
        return UpdateBatch(ok=ok)

    updates: List[Update] = []
    for raw in result:
        if not isinstance(raw, dict):
            continue
        message = raw.get("message") if isinstance(raw.get("message"), dict) else {}
        chat = message.get("chat") if isinstance(message.get("chat"), dict) else {}
        chat_id = chat.get("id")
        text = message.get("text")
        updates.append(Update(
            update_id=_as_int(raw.get("update_id")),
            chat_id=_as_int(chat_id) if chat_id is not None else None,
            text=text if isinstance(text, str) else None,
        ))
    return UpdateBatch(ok=ok, updates=updates)


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
