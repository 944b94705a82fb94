import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

from ..errors import PersistenceError
from ..models import Subscription
from .formatter import format_subscription
from .id_generator import generate_unique_id
from .storage import PathLike, SubscriptionStorage
from .validator import NULL_SUBSCRIPTION, validate

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    """Outcome of SubscriptionService.save"""
    success: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> "SaveResult":
        return cls(True, message)

    @classmethod
    def fail(cls, message: str) -> "SaveResult":
        return cls(False, message)


class SubscriptionService:
    """Creates, lists and removes subscriptions on top of SubscriptionStorage.

    Every read-modify-write runs under one lock, making this service the
    single writer of the store within the process. Several processes
    sharing one file can still overwrite each other's changes.
    """

    def __init__(self, storage: SubscriptionStorage, storage_path: Optional[PathLike] = None):
        self.storage = storage
        self.storage_path = storage_path
        self._lock = threading.Lock()

    def save(self, candidate: Optional[Subscription], storage_path: Optional[PathLike] = None) -> SaveResult:
        """Validate a new subscription, assign its id and persist it.

        Never raises: validation and persistence problems come back as a
        failed SaveResult.
        """
        if candidate is None:
            return SaveResult.fail(NULL_SUBSCRIPTION)

        path = storage_path or self.storage_path
        with self._lock:
            try:
                existing = list(self.storage.load(path) or [])

                error = validate(candidate, existing)
                if error:
                    logger.info(f"Subscription rejected for chat {candidate.chat_id}: {error}")
                    return SaveResult.fail(error)

                candidate.id = generate_unique_id(candidate, existing)
                existing.append(candidate)
                if not self.storage.save(existing, path):
                    return SaveResult.fail("Failed to save subscription: storage write failed")

                logger.info(f"💾 Subscription {candidate.id} saved for chat {candidate.chat_id}")
                return SaveResult.ok(f"Subscription created with id: {candidate.id}")
            except Exception as e:
                logger.error(f"❌ Failed to save subscription for chat {candidate.chat_id}: {e}")
                return SaveResult.fail(f"Failed to save subscription: {e}")

    def list_all(self) -> List[Subscription]:
        """Load every stored subscription"""
        with self._lock:
            return list(self.storage.load(self.storage_path) or [])

    def list_by_chat_id(self, chat_id: int) -> List[str]:
        """Display lines for every subscription of a chat, in stored order"""
        try:
            return [format_subscription(s) for s in self.list_all() if s.chat_id == chat_id]
        except Exception as e:
            raise PersistenceError(f"Failed to list subscriptions: {e}") from e

    def remove_by_id_or_keyword(self, chat_id: int, arg: Optional[str]) -> bool:
        """Remove the chat's subscriptions whose id or any keyword matches arg, ignoring case.

        Returns:
            True if at least one subscription was removed
        """
        if arg is None or not arg.strip():
            return False

        target = arg.strip().lower()
        with self._lock:
            try:
                remaining = []
                removed = []
                for sub in self.storage.load(self.storage_path) or []:
                    if sub.chat_id == chat_id and self._matches(sub, target):
                        removed.append(sub)
                    else:
                        remaining.append(sub)

                if not removed:
                    return False
                if not self.storage.save(remaining, self.storage_path):
                    raise PersistenceError("storage write failed")
            except Exception as e:
                raise PersistenceError(f"Failed to remove subscription: {e}") from e

        logger.info(f"🗑️ Removed {len(removed)} subscription(s) for chat {chat_id}: {[s.id for s in removed]}")
        return True

    @staticmethod
    def _matches(subscription: Subscription, target: str) -> bool:
        if subscription.id is not None and subscription.id.lower() == target:
            return True
        keywords = subscription.filter.keywords if subscription.filter else []
        return any(k.lower() == target for k in keywords)
