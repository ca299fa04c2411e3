"""Report actions.

Actions:
  - querytrips (pre-aggregated trips for one device)
  - querytrack (raw fixes for one device)
  - reportaccsbytime (ignition intervals for several devices)

Start and end times are sent as vendor wall-clock strings.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from pygps51._api._common import extract_rows, post_action, vendor_time
from pygps51._transport import Transport
from pygps51.config import Gps51Config
from pygps51.session import Session

_logger = logging.getLogger(__name__)

QUERY_TRIPS = "querytrips"
QUERY_TRACK = "querytrack"
REPORT_ACCS = "reportaccsbytime"


async def fetch_trip_rows(
    config: Gps51Config,
    session: Session,
    transport: Transport,
    device_id: str,
    start: datetime,
    end: datetime,
) -> list[Any]:
    """Return raw ``querytrips`` rows for *device_id* between *start* and *end*."""
    response = await post_action(
        action=QUERY_TRIPS,
        config=config,
        transport=transport,
        session=session,
        data={
            "deviceid": device_id,
            "begintime": vendor_time(config, start),
            "endtime": vendor_time(config, end),
            "timezone": config.vendor_utc_offset_hours,
        },
    )
    rows = extract_rows(QUERY_TRIPS, response, "totaltrips", "trips", "records")
    _logger.debug("querytrips device=%s rows=%d", device_id, len(rows))
    return rows


async def fetch_track_rows(
    config: Gps51Config,
    session: Session,
    transport: Transport,
    device_id: str,
    start: datetime,
    end: datetime,
) -> list[Any]:
    """Return raw ``querytrack`` rows (WGS84) for *device_id*."""
    response = await post_action(
        action=QUERY_TRACK,
        config=config,
        transport=transport,
        session=session,
        data={
            "deviceid": device_id,
            "starttime": vendor_time(config, start),
            "endtime": vendor_time(config, end),
            "coordsys": "wgs84",
        },
    )
    rows = extract_rows(QUERY_TRACK, response, "records")
    _logger.debug("querytrack device=%s rows=%d", device_id, len(rows))
    return rows


async def fetch_acc_rows(
    config: Gps51Config,
    session: Session,
    transport: Transport,
    device_ids: Sequence[str],
    start: datetime,
    end: datetime,
) -> list[Any]:
    """Return raw ``reportaccsbytime`` rows for *device_ids*."""
    response = await post_action(
        action=REPORT_ACCS,
        config=config,
        transport=transport,
        session=session,
        data={
            "deviceids": list(device_ids),
            "starttime": vendor_time(config, start),
            "endtime": vendor_time(config, end),
            "offset": config.vendor_utc_offset_hours,
        },
    )
    rows = extract_rows(REPORT_ACCS, response, "records")
    _logger.debug("reportaccsbytime devices=%d rows=%d", len(device_ids), len(rows))
    return rows
