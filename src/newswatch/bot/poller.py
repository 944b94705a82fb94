import logging
import threading
from typing import Callable, Optional, Protocol

from ..models import InboundCommand, Update, UpdateBatch

logger = logging.getLogger(__name__)

SLEEP_SHORT = 0.15       # seconds, after a batch or an empty/not-ok response
SLEEP_ON_ERROR = 1.5     # seconds, after a failed iteration
JOIN_TIMEOUT = 2.0       # seconds to wait for the worker on stop()


class UpdateSource(Protocol):
    def get_updates(self, timeout_seconds: int, offset: int) -> UpdateBatch:
        ...


class LongPollRunner:
    """Background worker that long-polls for updates and dispatches text commands.

    Updates are handled one at a time, in the order received. The offset is
    moved past an update before it is dispatched, so an update is never
    fetched twice even when dispatching it fails. The dispatcher must not
    raise: an exception aborts the rest of the batch, and only the updates
    the offset has not yet passed are fetched again.
    """

    def __init__(
        self,
        source: UpdateSource,
        dispatch: Callable[[InboundCommand], None],
        bot_token: str,
        enabled: bool = True,
        initial_offset: int = 0,
        long_poll_timeout: int = 25,
        sleep_short: float = SLEEP_SHORT,
        sleep_on_error: float = SLEEP_ON_ERROR,
        join_timeout: float = JOIN_TIMEOUT,
    ):
        self.source = source
        self.dispatch = dispatch
        self.bot_token = bot_token
        self.enabled = enabled
        self.offset = initial_offset
        self.long_poll_timeout = max(1, long_poll_timeout)
        self.sleep_short = sleep_short
        self.sleep_on_error = sleep_on_error
        self.join_timeout = join_timeout
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state_lock = threading.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def _should_start(self) -> bool:
        if not self.enabled:
            logger.info("[telegram] long-poll disabled by config")
            return False
        if not self.bot_token or not self.bot_token.strip():
            logger.error("[telegram] long-poll not started: missing bot token")
            return False
        return True

    def start(self) -> None:
        """Start the worker thread; a no-op if running or not configured.

        Refuses to start while a worker from a previous run is still alive,
        so that at most one worker fetches and dispatches at any time.
        """
        with self._state_lock:
            if self._running or not self._should_start():
                return
            if self._thread is not None and self._thread.is_alive():
                logger.warning("[telegram] previous worker has not exited yet, not starting a new one")
                return
            self._running = True
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._poll_loop,
                args=(self._stop_event,),
                name="telegram-long-poll",
                daemon=True,
            )
            self._thread.start()
        logger.info(f"[telegram] 🤖 long-poll started (offset={self.offset})")

    def stop(self) -> None:
        """Signal the worker to exit and wait up to join_timeout for it"""
        with self._state_lock:
            if not self._running:
                return
            logger.info("[telegram] stopping long-poll...")
            self._running = False
            self._stop_event.set()
            thread = self._thread
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(self.join_timeout)
            if thread.is_alive():
                logger.warning(f"[telegram] worker still busy after {self.join_timeout}s, not waiting any longer")
        logger.info("[telegram] 🛑 long-poll stopped")

    def _poll_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.poll_once(stop_event)
            except Exception as e:
                logger.warning(f"[telegram] poll loop error: {e}")
                stop_event.wait(self.sleep_on_error)

    def poll_once(self, stop_event: Optional[threading.Event] = None) -> None:
        """Run one fetch-and-dispatch cycle, including its trailing pause.

        Once stop_event is set no further update is dispatched, and the
        offset stays on the first undelivered one. Errors from the source or
        the dispatcher propagate to the caller.
        """
        stop_event = stop_event or self._stop_event
        batch = self.source.get_updates(self.long_poll_timeout, self.offset)
        if batch is None or not batch.ok or not batch.updates:
            stop_event.wait(self.sleep_short)
            return

        for update in batch.updates:
            if stop_event.is_set():
                logger.info(f"[telegram] stopped before update {update.update_id}, leaving it for the next run")
                return
            self._advance_offset(update)
            command = to_command(update)
            if command is not None:
                self.dispatch(command)
        stop_event.wait(self.sleep_short)

    def _advance_offset(self, update: Update) -> None:
        if update.update_id > 0:
            self.offset = max(self.offset, update.update_id + 1)


def to_command(update: Update) -> Optional[InboundCommand]:
    """Extract a text command from an update, or None if it carries no usable text"""
    if update.chat_id is None or update.chat_id <= 0:
        return None
    if update.text is None or not update.text.strip():
        return None
    return InboundCommand(chat_id=update.chat_id, text=update.text)
