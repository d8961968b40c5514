import argparse
import logging
import time

from stockledger.adapters.persistence import DocumentStore
from stockledger.config import get_settings
from stockledger.core.logging import setup_logging
from stockledger.core.scheduler import Scheduler
from stockledger.database import Base, SessionLocal, engine, ensure_sqlite_schema
from stockledger.models import import_all_models
from stockledger.services.ledger_service import InventoryLedger

logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Run the sold-product cleanup sweep.")
    parser.add_argument(
        "--run-once",
        action="store_true",
        help="Run the cleanup sweep once and exit.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    settings = get_settings()

    if not settings.CLEANUP_ENABLED:
        logger.info("Cleanup disabled by CLEANUP_ENABLED.")
        return

    import_all_models()
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()

    ledger = InventoryLedger(
        DocumentStore(SessionLocal),
        retention_days=settings.SOLD_RETENTION_DAYS,
    )

    if args.run_once:
        ledger.cleanup_old_sold_products()
        return

    scheduler = Scheduler(poll_seconds=settings.SCHEDULER_POLL_SECONDS)
    scheduler.add_interval_job(
        "cleanup-old-sold-products",
        settings.CLEANUP_INTERVAL_SECONDS,
        ledger.cleanup_old_sold_products,
        run_immediately=True,
        run_in_thread=False,
    )
    scheduler.start()
    try:
        while True:
            time.sleep(3600)
    except KeyboardInterrupt:
        scheduler.stop()


if __name__ == "__main__":
    main()
