class FeedError(Exception):
    """Base class for everything a feed raises."""


class TransportError(FeedError):
    """Non-200 response or a network failure while talking to the feed host."""


class FormatError(FeedError, ValueError):
    """Payload or header could not be decoded."""


class NotFetchedError(FeedError):
    """check() was called before a successful get()."""
