#!/usr/bin/env python
"""Upload local files through the gateway without going over HTTP.

Every file is attempted; the ones that fail are reported and the ones that
succeeded stay uploaded.

Examples:
    python scripts/upload_files.py reports/*.pdf --dir reports
    python scripts/upload_files.py scan.png --profile opaque
"""

from __future__ import annotations

import argparse
import logging
import mimetypes
from contextlib import ExitStack
from pathlib import Path

from blobgate.core.utils.config import ConfigError
from blobgate.gateway.models import IncomingFile
from blobgate.gateway.service import ObjectGateway
from blobgate.settings import load_settings

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    parser = argparse.ArgumentParser(description="Upload local files to blob storage")
    parser.add_argument("paths", nargs="+", type=Path, help="Files to upload")
    parser.add_argument("--dir", help="Directory to place the files under")
    parser.add_argument("--profile", help="Gateway profile from configs/gateway.py")

    args = parser.parse_args()

    missing = [path for path in args.paths if not path.is_file()]
    if missing:
        for path in missing:
            logger.error(f"Not a file: {path}")
        return 1

    try:
        gateway = ObjectGateway.from_settings(load_settings(args.profile))
    except ConfigError as e:
        logger.error(f"Invalid gateway configuration: {e}")
        return 1

    with ExitStack() as stack:
        files = [
            IncomingFile(
                stream=stack.enter_context(path.open("rb")),
                size=path.stat().st_size,
                content_type=mimetypes.guess_type(path.name)[0],
                original_name=path.name,
            )
            for path in args.paths
        ]
        report = gateway.upload_many_isolated(files, args.dir)

    for item in report.items:
        if item.ok:
            print(f"{item.result.outcome.value:>8}  {item.result.key}")
            print(f"          {item.result.signed_read_url.url}")
        else:
            print(f"  failed  {item.original_name}: {item.error.message}")

    print(f"\n{len(report.succeeded)} uploaded, {len(report.failed)} failed")
    return 0 if report.all_succeeded else 1


if __name__ == "__main__":
    raise SystemExit(main())
