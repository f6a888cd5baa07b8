"""
Run the notification worker: pops queued form submissions and emails them.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cms.worker import run_loop


def main() -> int:
    parser = argparse.ArgumentParser(description="CMS notification worker")
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=2.0,
        help="Seconds to wait on the queue between polls",
    )
    args = parser.parse_args()
    run_loop(poll_interval_seconds=args.poll_interval)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
