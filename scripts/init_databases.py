#!/usr/bin/env python3
"""
Database Initialization Script
==============================

Create the MongoDB indexes used by the CPE extraction service and report
store health.

Usage:
    python scripts/init_databases.py
    python scripts/init_databases.py --check-only

Version: 0.1.0
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.logging import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False, service_name="init-db")
logger = get_logger(__name__)


async def init_mongodb(check_only: bool = False) -> bool:
    """Initialize MongoDB indexes."""
    from shared.database.mongodb import MongoDBClient

    logger.info("mongodb_init_started", check_only=check_only)

    try:
        health = await MongoDBClient.health_check()
        if health.get("status") != "healthy":
            logger.error("mongodb_unavailable", error=health.get("error"))
            return False

        if not check_only:
            await MongoDBClient.create_indexes()

        logger.info("mongodb_init_completed", latency_ms=health.get("latency_ms"))
        return True

    finally:
        await MongoDBClient.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Initialize CPE extraction databases")
    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Only verify connectivity, do not create indexes",
    )
    args = parser.parse_args()

    ok = asyncio.run(init_mongodb(check_only=args.check_only))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
