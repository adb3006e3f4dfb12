#!/usr/bin/env python3
"""Seed the database with a demo producer, a product and its journey.

Usage:
    python scripts/seed_demo.py
"""

import asyncio
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from farmtrace.common.config import get_settings
from farmtrace.common.database import DatabaseManager
from farmtrace.common.security import issue_token
from farmtrace.ledger.service import LedgerService
from farmtrace.ledger.templates import STAGE_TEMPLATES
from farmtrace.products.service import ProductService
from farmtrace.users.service import UserService

DEMO_BATCH_CODE = "BATCH-001"
DEMO_JOURNEY = [
    ("Harvesting", "Farm A"),
    ("Processing", "Plant B"),
    ("Quality Check", "Plant B"),
]


async def seed_demo() -> None:
    settings = get_settings()
    db = DatabaseManager(settings)
    await db.init()
    await db.create_all()

    users = UserService()
    products = ProductService()
    ledger = LedgerService(products)
    descriptions = {t.name: t.description for t in STAGE_TEMPLATES}

    async with db.get_session() as session:
        producer = await users.get_by_username(session, "demo-producer")
        if producer is None:
            producer = await users.create_user(
                session, "Demo Producer", "demo-producer", role="producer",
            )
            print(f"  [created] producer {producer.id}")

        if await products.get_by_batch_code(session, DEMO_BATCH_CODE):
            print(f"  [skip] {DEMO_BATCH_CODE} already exists")
        else:
            product = await products.create_product(
                session, "Organic Tomatoes", DEMO_BATCH_CODE, producer.id,
                description="Vine-ripened, single-farm lot",
            )
            for stage_name, location in DEMO_JOURNEY:
                await ledger.append_stage(
                    session, product.id, stage_name, location, producer.id,
                    description=descriptions.get(stage_name),
                )
            print(f"  [created] {DEMO_BATCH_CODE} with {len(DEMO_JOURNEY)} stages")

        token = issue_token(producer.id, producer.role)

    await db.close()
    print(f"\nDone. Producer token:\n{token}")


if __name__ == "__main__":
    asyncio.run(seed_demo())
