#!/usr/bin/env python
"""Run the upload gateway HTTP service under uvicorn.

The deployment profile comes from --profile or BLOBGATE_PROFILE (see
configs/gateway.py).
"""

from __future__ import annotations

import argparse
import logging
import os

import uvicorn

from blobgate.api import create_app
from blobgate.core.utils.config import ConfigError
from blobgate.core.utils.env import env_int, env_str
from blobgate.settings import load_settings

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    parser = argparse.ArgumentParser(description="Serve the blob upload gateway over HTTP")
    parser.add_argument("--profile", help="Gateway profile from configs/gateway.py")
    parser.add_argument("--host", default=env_str("BLOBGATE_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=env_int("BLOBGATE_PORT", 8080))
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes",
    )

    args = parser.parse_args()

    try:
        settings = load_settings(args.profile)
    except ConfigError as e:
        logger.error(f"Invalid gateway configuration: {e}")
        return 1

    if args.workers > 1:
        # Each worker process builds its own app from the same profile
        if args.profile:
            os.environ["BLOBGATE_PROFILE"] = args.profile
        uvicorn.run(
            "blobgate.api.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            workers=args.workers,
        )
    else:
        uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
