"""Data ingestors for godar."""

from .feed import (
    AUTH_CHAIN,
    AuthMethod,
    FeedAuthError,
    FeedClient,
    FeedDecodeError,
    FeedError,
    FeedFilters,
    FeedResponseError,
    FeedSession,
    FeedTransportError,
    ObserverLocation,
    SessionExpiredError,
)

__all__ = [
    "AUTH_CHAIN",
    "AuthMethod",
    "FeedAuthError",
    "FeedClient",
    "FeedDecodeError",
    "FeedError",
    "FeedFilters",
    "FeedResponseError",
    "FeedSession",
    "FeedTransportError",
    "ObserverLocation",
    "SessionExpiredError",
]
