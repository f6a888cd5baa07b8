"""
Prepare a fresh deployment: create the database tables and every storage
bucket the site reads from.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cms.dependencies import get_db_client, get_storage_client
from cms.routes.media import known_buckets

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Create CMS tables and storage buckets")
    parser.add_argument(
        "--skip-db",
        action="store_true",
        help="Only create storage buckets",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the buckets that would be created without touching storage",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    buckets = known_buckets()

    if args.dry_run:
        for bucket in buckets:
            logger.info("Would ensure bucket %s", bucket)
        return 0

    if not args.skip_db:
        # Creating the client creates any missing tables.
        db = get_db_client()
        logger.info("Database ready (%s)", type(db).__name__)

    storage = get_storage_client()
    created = 0
    for bucket in buckets:
        if storage.ensure_bucket(bucket):
            created += 1
            logger.info("Created bucket %s", bucket)
    logger.info("Ensured %d buckets (%d created)", len(buckets), created)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
