"""Authentication token model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class AuthToken(BaseModel):
    """Token returned after successful login.

    Parameters
    ----------
    token : str
        Session token appended to every vendor URL.
    server_id : str
        Vendor server shard (``serverid``) the token belongs to.
    raw : dict
        Full login response for access to additional fields.
    """

    model_config = ConfigDict(frozen=True)

    token: str
    server_id: str
    raw: dict[str, Any]
