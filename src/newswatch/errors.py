class FormatError(ValueError):
    """Raised when a chat command does not follow its grammar"""


class TransportError(Exception):
    """Raised when the messaging platform cannot be reached or answers with an error"""


class PersistenceError(Exception):
    """Raised when subscriptions cannot be read or written"""
