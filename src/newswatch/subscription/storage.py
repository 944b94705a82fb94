import logging
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from ..models import Subscription, SubscriptionList

logger = logging.getLogger(__name__)

DEFAULT_FILE = "subscriptions.json"

PathLike = Union[str, Path]


class SubscriptionStorage:
    """JSON file storage for the full subscription list.

    The whole file is read and rewritten on every access; there is no
    locking, so only one writer may use a given file.
    """

    def __init__(self, default_path: PathLike = DEFAULT_FILE):
        self.default_path = Path(default_path)

    def load(self, path: Optional[PathLike] = None) -> List[Subscription]:
        """Load subscriptions, returning an empty list if the file is missing or invalid"""
        file_path = Path(path) if path else self.default_path
        if not file_path.exists():
            logger.info(f"📂 Subscription file not found, starting empty: {file_path}")
            return []
        try:
            content = file_path.read_text(encoding="utf-8")
            if not content.strip():
                return []
            return SubscriptionList.model_validate_json(content).subscriptions
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"⚠️ Failed to load subscriptions from {file_path}: {e}")
            return []

    def save(self, subscriptions: List[Subscription], path: Optional[PathLike] = None) -> bool:
        """Overwrite the file with the given subscriptions.

        Returns:
            True if written, False if the write failed (the error is logged)
        """
        file_path = Path(path) if path else self.default_path
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            wrapper = SubscriptionList(subscriptions=list(subscriptions))
            file_path.write_text(wrapper.model_dump_json(indent=2), encoding="utf-8")
            return True
        except OSError as e:
            logger.error(f"❌ Failed to save subscriptions to {file_path}: {e}")
            return False
