"""
Fallback Reconciliation.

Migrates call records written to the local fallback file during a
database outage into the database.
"""

import asyncio

from ddtrace import patch_all
from leadcapture_common.logging import setup_logging

from dependencies import get_persistence_gateway

logger = setup_logging()

patch_all()


def main():
    """Runs one reconciliation pass."""
    report = asyncio.run(get_persistence_gateway().reconcile())
    logger.info(
        "Fallback reconciliation complete",
        extra={"migrated": report.migrated, "failed": report.failed},
    )
    if report.failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
