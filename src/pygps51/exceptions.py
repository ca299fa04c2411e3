"""Custom exception hierarchy for pygps51."""

from __future__ import annotations


class Gps51Error(Exception):
    """Base exception for all pygps51 errors."""


class Gps51ConfigError(Gps51Error):
    """Invalid or missing configuration."""


class Gps51TransportError(Gps51Error):
    """Network-level failure talking to the proxy (timeout, connection, 5xx).

    These are transient: the same call may succeed when retried.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        action: str = "",
    ) -> None:
        self.status_code = status_code
        self.action = action
        super().__init__(message)


class Gps51ApiError(Gps51Error):
    """Vendor returned a non-zero status (application-level error)."""

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        action: str = "",
    ) -> None:
        self.code = code
        self.action = action
        super().__init__(message)


class Gps51AuthenticationError(Gps51ApiError):
    """Login failed or the login response carried no token."""


class Gps51TokenExpiredError(Gps51AuthenticationError):
    """Token rejected by the vendor (status ``9903``).

    The client catches this internally to trigger one re-authentication.
    """


class Gps51RateLimitError(Gps51ApiError):
    """Vendor IP rate limit hit (status ``8902``).

    No further vendor calls may be made until the backoff window recorded
    in :class:`~pygps51.models.sync.SyncState` has elapsed.
    """


class Gps51MalformedResponseError(Gps51Error):
    """Vendor payload or record did not match the expected shape."""


class Gps51DataIntegrityError(Gps51Error):
    """A derived trip violates a hard invariant (e.g. ``end <= start``)."""
