import argparse
from datetime import date, timedelta

from sqlalchemy import delete, select

from stockledger.adapters.persistence import DocumentStore
from stockledger.config import get_settings
from stockledger.core.constants import ROLE_ADMIN, ROLE_WORKER
from stockledger.core.identity import IdentityProvider
from stockledger.core.logging import setup_logging
from stockledger.database import Base, SessionLocal, engine, ensure_sqlite_schema
from stockledger.models import import_all_models
from stockledger.models.history import ProductHistory
from stockledger.models.product import Product
from stockledger.models.user import User
from stockledger.schemas.user import CurrentUser
from stockledger.services.ledger_service import InventoryLedger


def parse_args():
    parser = argparse.ArgumentParser(description="Seed sample users and inventory.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear existing data before seeding.",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()
    settings = get_settings()

    import_all_models()
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()

    db = SessionLocal()
    try:
        if args.reset:
            db.execute(delete(ProductHistory))
            db.execute(delete(Product))
            db.execute(delete(User))
            db.commit()

        has_product = db.execute(select(Product.id).limit(1)).first()
    finally:
        db.close()

    identity = IdentityProvider(SessionLocal, rounds=settings.PBKDF2_ROUNDS)
    admin = identity.ensure_user(
        name="Admin User", email="admin@stocksavvy.com", password="admin123", role=ROLE_ADMIN
    )
    identity.ensure_user(
        name="Worker User", email="worker@stocksavvy.com", password="worker123", role=ROLE_WORKER
    )

    if has_product:
        print("Seed skipped: products already exist.")
        return

    actor = CurrentUser(id=admin.id, name=admin.name, email=admin.email, role=admin.role)
    ledger = InventoryLedger(DocumentStore(SessionLocal))
    ledger.refresh()

    today = date.today()
    phone = ledger.add_product(
        {
            "product_id": "iph13",
            "name": "iPhone 13",
            "category": "Mobile Phones",
            "purchase_date": today - timedelta(days=45),
            "stock": 5,
            "price": 500.0,
        },
        actor=actor,
    )
    ledger.add_product(
        {
            "product_id": "mbp14",
            "name": "MacBook Pro 14",
            "category": "Laptops",
            "purchase_date": today - timedelta(days=20),
            "stock": 2,
            "price": 1800.0,
        },
        actor=actor,
    )
    ledger.mark_as_sold(phone.id, today - timedelta(days=10), 2, 650.0, "admin", "walk-in", actor=actor)
    print("Seed data created.")


if __name__ == "__main__":
    main()
