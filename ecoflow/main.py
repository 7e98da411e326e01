"""Command line entry point for the EcoFlow client."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from contextlib import suppress
from typing import Sequence

from ecoflow.client import EcoFlowClient
from ecoflow.config import get_settings
from ecoflow.errors import EcoFlowError

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query the EcoFlow IoT open API.")
    parser.add_argument("--sn", help="Dump all quota values of this device instead of listing devices")
    return parser.parse_args(argv)


async def amain(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    async with EcoFlowClient.from_settings(settings) as client:
        try:
            if args.sn:
                result = await client.get_all_quota_info(args.sn)
            else:
                result = [device.model_dump(by_alias=True) for device in await client.get_devices()]
        except EcoFlowError as exc:
            LOGGER.error("%s", exc)
            return 1

    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


def main() -> None:
    with suppress(KeyboardInterrupt):
        raise SystemExit(asyncio.run(amain()))


if __name__ == "__main__":
    main()
