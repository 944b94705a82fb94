from .service import SaveResult, SubscriptionService
from .storage import SubscriptionStorage

__all__ = ["SaveResult", "SubscriptionService", "SubscriptionStorage"]
