"""Vehicle command models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from pygps51.ingestion.normalize import safe_int, safe_str
from pygps51.models._base import VendorBaseModel


class CommandOutcome(StrEnum):
    """Tri-state result of a command confirmation poll."""

    CONFIRMED = "confirmed"
    SENT_UNCONFIRMED = "sent_unconfirmed"
    FAILED = "failed"


class CommandStatus(VendorBaseModel):
    """``querycommand`` response."""

    command_id: str | None = Field(default=None, validation_alias=AliasChoices("commandid", "command_id"))
    command_status: int | None = Field(default=None, validation_alias=AliasChoices("commandstatus"))
    response: str | None = Field(default=None, validation_alias=AliasChoices("responsestr", "response", "content"))

    @field_validator("command_status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("command_id", "response", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str | None:
        return safe_str(value)


class CommandResult(BaseModel):
    """Outcome of :meth:`~pygps51.client.Gps51Client.execute_command`."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    command: str
    outcome: CommandOutcome
    command_id: str | None = None
    attempts: int = 0
    response: str | None = None
    error: str | None = None

    @property
    def confirmed(self) -> bool:
        return self.outcome == CommandOutcome.CONFIRMED
