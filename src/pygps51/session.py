"""Session state for authenticated vendor calls."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

#: Vendor tokens last about a day; re-login a little earlier.
DEFAULT_TOKEN_TTL: float = 23 * 3600


class Session(BaseModel):
    """Immutable token state after a successful login.

    Parameters
    ----------
    token : str
        Vendor session token.
    server_id : str
        Vendor server shard the token is bound to.
    expires_at : datetime or None
        Wall-clock instant after which the token is not trusted.
        ``None`` means the session only ends when the vendor rejects it.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    token: str
    server_id: str = "1"
    expires_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at
