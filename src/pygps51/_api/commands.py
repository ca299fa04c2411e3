"""Vehicle command actions.

Actions:
  - sendcommand (trigger)
  - querycommand (poll)

The device executes a command asynchronously; ``querycommand`` reports
``commandstatus == 1`` once it has.
"""

from __future__ import annotations

import logging
from typing import Any

from pygps51._api._common import post_action
from pygps51._constants import VEHICLE_COMMANDS
from pygps51._transport import Transport
from pygps51.config import Gps51Config
from pygps51.exceptions import Gps51MalformedResponseError
from pygps51.ingestion.normalize import safe_str
from pygps51.models.command import CommandStatus
from pygps51.session import Session

_logger = logging.getLogger(__name__)

SEND_COMMAND = "sendcommand"
QUERY_COMMAND = "querycommand"


def resolve_command(command: str) -> str:
    """Map a friendly command name to the vendor command string.

    Unknown names are passed through so raw vendor commands still work.
    """
    return VEHICLE_COMMANDS.get(command.strip().lower(), command.strip())


def _flatten_record(response: dict[str, Any]) -> dict[str, Any]:
    record = response.get("record")
    if isinstance(record, dict):
        merged = dict(response)
        merged.update(record)
        return merged
    return response


async def send_command(
    config: Gps51Config,
    session: Session,
    transport: Transport,
    device_id: str,
    command: str,
) -> str:
    """Send *command* to *device_id* and return the vendor command id.

    Raises
    ------
    Gps51MalformedResponseError
        If the vendor accepted the command without returning an id.
    """
    vendor_command = resolve_command(command)
    response = await post_action(
        action=SEND_COMMAND,
        config=config,
        transport=transport,
        session=session,
        data={"deviceid": device_id, "command": vendor_command},
    )
    command_id = safe_str(_flatten_record(response).get("commandid"))
    if command_id is None:
        raise Gps51MalformedResponseError(f"{SEND_COMMAND} returned no commandid for device {device_id}")
    _logger.debug("Command sent device=%s command=%s id=%s", device_id, vendor_command, command_id)
    return command_id


async def query_command(
    config: Gps51Config,
    session: Session,
    transport: Transport,
    command_id: str,
) -> CommandStatus:
    response = await post_action(
        action=QUERY_COMMAND,
        config=config,
        transport=transport,
        session=session,
        data={"commandid": command_id},
    )
    return CommandStatus.model_validate(_flatten_record(response))
