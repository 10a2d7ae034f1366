#!/usr/bin/env python3
"""
Demo seed script — populates the ledger with sample data for demos.

!! NOT FOR PRODUCTION !!
This script creates accounts and transactions for a fixed demo owner. It is
intended ONLY for local demos and frontend development.

Everything goes through LedgerService, so the seeded balances obey the same
rules as live traffic (balance == credits - debits). Seeding is skipped when
the demo owner already has transactions, so running it twice is harmless.

Usage:
    # Against the configured DATABASE_URL (volatile store if unset):
    python demo/seed.py

    # Drop the ledger tables first, then re-seed:
    python demo/seed.py --reset

Demo owner id (put it in the `sub` claim of a token to see the data):
    aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa
"""

import argparse
import asyncio
import os
import sys
import uuid
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from ledger.config import settings  # noqa: E402
from ledger.logging_config import setup_logging  # noqa: E402
from ledger.services.ledger_service import LedgerService, build_ledger_service  # noqa: E402

DEMO_OWNER_ID = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")

DEMO_ACCOUNTS = [
    {
        "account_type": "Checking",
        "initial_deposit": Decimal("2500.50"),
        "transactions": [
            ("credit", Decimal("100.00"), "Salary deposit"),
            ("debit", Decimal("50.00"), "Grocery shopping"),
        ],
    },
    {
        "account_type": "Savings",
        "initial_deposit": Decimal("10000.00"),
        "transactions": [
            ("credit", Decimal("500.00"), "Transfer from checking"),
        ],
    },
]


def log(msg: str) -> None:
    print(f"  {msg}")


async def seed_demo_data(ledger: LedgerService, owner_id: uuid.UUID = DEMO_OWNER_ID) -> bool:
    """
    Create the demo accounts and transactions for owner_id.

    Returns False (and does nothing) if the owner already has transactions.
    """
    if await ledger.list_transactions(owner_id):
        log(f"Owner {owner_id} already has ledger data, skipping")
        return False

    for plan in DEMO_ACCOUNTS:
        account = await ledger.create_account(
            owner_id=owner_id,
            account_type=plan["account_type"],
            currency=settings.DEFAULT_CURRENCY,
            initial_deposit=plan["initial_deposit"],
        )
        log(f"{account.account_type:<10s} {account.account_number}  opened with {account.balance}")

        for txn_type, amount, description in plan["transactions"]:
            await ledger.apply_transaction(
                owner_id=owner_id,
                account_id=account.id,
                amount=amount,
                txn_type=txn_type,
                description=description,
            )
            log(f"  {txn_type:<6s} {amount:>10}  {description}")

    return True


async def reset_schema(ledger: LedgerService) -> None:
    """Drop and recreate the ledger tables."""
    if ledger.durable is None:
        log("No DATABASE_URL configured, nothing to reset")
        return
    await ledger.durable.drop_schema()
    await ledger.durable.ensure_schema()
    log("Ledger tables dropped and recreated")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Demo seed script — NOT FOR PRODUCTION",
        epilog="Creates sample accounts and transactions for the demo owner.",
    )
    parser.add_argument(
        "--reset", action="store_true",
        help="Drop the ledger tables before seeding",
    )
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    ledger = build_ledger_service(settings)
    try:
        print(f"\nSeeding ledger ({ledger.storage_mode} store)")
        if args.reset:
            await reset_schema(ledger)
        seeded = await seed_demo_data(ledger)
        if seeded:
            print(f"\nSEED COMPLETE — demo owner {DEMO_OWNER_ID}\n")
    finally:
        await ledger.close()


if __name__ == "__main__":
    asyncio.run(main())
