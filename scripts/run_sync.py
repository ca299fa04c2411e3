#!/usr/bin/env python3
"""Run one GPS51 trip sync pass from the command line.

Trips are kept in an in-memory store, so this is meant for checking
credentials, proxy setup and vendor data rather than for production use.

Usage
-----
Set environment variables and run::

    export GPS51_USERNAME="fleet-admin"
    export GPS51_PASSWORD="your-password"
    export GPS51_PROXY_URL="https://relay.example.com/gps51"
    python scripts/run_sync.py 860000000000001 860000000000002

Options::

    --mode positions     Segment raw track points instead of vendor trips
    --acc                Backfill ignition from the ACC report (positions mode)
    --lookback HOURS     Fetch window for devices never synced (default: 24)
    --command NAME       Send a vehicle command to each device instead of syncing
    --trips              Include stored trips in the output
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pygps51 import Gps51Client, Gps51Config, InMemoryTripStore, SyncConfig, VendorSyncClient  # noqa: E402
from pygps51.exceptions import Gps51ConfigError  # noqa: E402


async def main() -> int:
    parser = argparse.ArgumentParser(description="Sync trips for GPS51 devices through the relay proxy.")
    parser.add_argument("devices", nargs="+", help="Vendor device ids")
    parser.add_argument("--mode", choices=("trips", "positions"), default="trips", help="Fetch mode")
    parser.add_argument("--acc", action="store_true", help="Backfill ignition from the ACC report")
    parser.add_argument("--lookback", type=float, default=24.0, help="Initial lookback in hours")
    parser.add_argument("--command", help="Send this vehicle command instead of syncing")
    parser.add_argument("--trips", action="store_true", help="Include stored trips in the output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = Gps51Config.from_env()
        sync_config = SyncConfig.from_env(
            fetch_mode=args.mode,
            use_acc_report=args.acc,
            initial_lookback=args.lookback * 3600,
        )
    except Gps51ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    store = InMemoryTripStore(device_ids=args.devices)
    output: dict[str, Any] = {}

    async with Gps51Client(config) as client:
        engine = VendorSyncClient(client, store, sync_config)
        if args.command:
            results = [await engine.send_command(device_id, args.command) for device_id in args.devices]
            output["commands"] = [r.model_dump(mode="json") for r in results]
        else:
            result = await engine.run(args.devices)
            output["run"] = result.model_dump(mode="json")
            if args.trips:
                output["trips"] = [t.model_dump(mode="json") for t in store.trips()]

    print(json.dumps(output, indent=2, ensure_ascii=False))
    run = output.get("run")
    return 1 if run is not None and run["error"] else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
