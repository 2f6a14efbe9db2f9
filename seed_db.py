"""
seed_db.py
----------
Create a demo profile with a few months of history, including monthly bills
that line up with the upcoming-bill alert.
"""

from __future__ import annotations

import argparse
from datetime import date, timedelta

import ledger
from database import SessionLocal, TransactionRecord, init_db
from insights import add_months
from logging_setup import configure_logging, get_logger
from schemas import CurrencyCode, TransactionDraft, TransactionType

logger = get_logger("nova_finance.seed_db")

MONTHLY_BILLS = [
    ("Netflix", 15.99, "Entertainment"),
    ("Rent", 1200.0, "Housing"),
    ("Electricity", 64.5, "Utilities"),
]

EVERYDAY = [
    ("Groceries", 82.4, "Food", TransactionType.EXPENSE),
    ("Metro card", 30.0, "Transportation", TransactionType.EXPENSE),
    ("Salary", 3400.0, "Salary", TransactionType.INCOME),
]


def seed_profile(db, name: str, currency: CurrencyCode, months: int, today: date | None = None):
    """
    Add a profile whose bills last charged about a month ago, so the first
    one falls due a few days from ``today``.
    """
    today = today or date.today()
    profile = ledger.create_profile(db, name, currency)

    count = 0
    for offset, (desc, amount, category) in enumerate(MONTHLY_BILLS):
        last_charge = add_months(today, -1, overflow="clamp") + timedelta(days=2 + offset * 2)
        for m in range(months):
            draft = TransactionDraft(amount=amount, description=desc, category=category)
            ledger.add_transaction(db, profile.uid, draft, today=add_months(last_charge, -m, overflow="clamp"))
            count += 1

    for m in range(months):
        month_start = add_months(today.replace(day=1), -m)
        for desc, amount, category, tx_type in EVERYDAY:
            draft = TransactionDraft(amount=amount, description=desc, category=category, type=tx_type)
            ledger.add_transaction(db, profile.uid, draft, today=min(month_start + timedelta(days=len(desc) % 20), today))
            count += 1

    logger.info("Seeded %s with %d transactions", profile.uid, count)
    return profile, count


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed a demo profile with sample transactions")
    parser.add_argument("--name", default="Demo", help="Profile display name")
    parser.add_argument("--currency", default=CurrencyCode.USD.value, choices=[c.value for c in CurrencyCode])
    parser.add_argument("--months", type=int, default=6, help="Months of history to generate")
    parser.add_argument("--skip-existing", action="store_true", help="Do nothing if any transactions exist")
    args = parser.parse_args(argv)

    configure_logging()
    init_db()
    db = SessionLocal()
    try:
        if args.skip_existing and db.query(TransactionRecord).first():
            logger.info("Transactions already exist. Skipping seed.")
            return
        profile, count = seed_profile(db, args.name, CurrencyCode(args.currency), args.months)
        print(f"Created profile {profile.display_name} ({profile.uid}) with {count} transactions.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
