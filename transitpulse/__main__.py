"""Command line entry point for transitpulse.

```sh
    python -m transitpulse serve --port 3000
    python -m transitpulse check
```

``serve`` runs the polling loop together with the HTTP/SSE server.
``check`` performs a single aggregation against the configured upstreams
and prints the resulting snapshot, which is handy for verifying URLs and
keys before deploying.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List

from .aggregator import build_aggregator
from .change_detector import fingerprint
from .config import load_settings
from .scheduler import add_service_arguments, run_scheduler, settings_from_args


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="transitpulse CLI")
    sub = parser.add_subparsers(dest="cmd", required=True)

    # ---- serve ----
    p1 = sub.add_parser("serve", help="Run the polling loop and HTTP/SSE server")
    add_service_arguments(p1)

    # ---- check ----
    p2 = sub.add_parser("check", help="Aggregate all feeds once and print the snapshot")
    p2.add_argument("--config", default=None, help="Path to feeds.yaml (optional)")
    p2.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")

    if args.cmd == "serve":
        asyncio.run(run_scheduler(settings_from_args(args)))
    elif args.cmd == "check":
        aggregator = build_aggregator(load_settings(args.config))
        snapshot = asyncio.run(aggregator.aggregate())
        report = snapshot.to_dict()
        report["fingerprint"] = fingerprint(snapshot)
        print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
