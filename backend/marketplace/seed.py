"""
RR Nagar Backend — Demo Data Seeder
=====================================

Usage:
    python -m marketplace.seed
    python -m marketplace.seed --admin-email ops@rrnagar.com --admin-password s3cret

Creates missing tables, then finds or creates the "Default Supplier", the
"Groceries" category and five grocery products owned by that supplier.
Products already present (same title, same supplier) are left alone, so the
command can be re-run. With --admin-email/--admin-password an admin account
is created as well (or its password reset if it exists).
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.database import async_session_factory, dispose_engine, engine, init_models
from marketplace.models import Admin, Category, Product, Supplier
from marketplace.services.auth_service import hash_password

logger = logging.getLogger(__name__)

DEFAULT_SUPPLIER = {"name": "Default Supplier", "phone": "9999999999"}
DEFAULT_CATEGORY = {"name": "Groceries", "icon": "🛒"}

GROCERIES = [
    {"title": "Rice 1kg", "description": "Premium quality rice.", "price": 60},
    {"title": "Toor Dal 500g", "description": "Protein-rich toor dal.", "price": 80},
    {"title": "Sunflower Oil 1L", "description": "Healthy cooking oil.", "price": 120},
    {"title": "Sugar 1kg", "description": "Refined sugar.", "price": 50},
    {"title": "Salt 1kg", "description": "Iodized salt.", "price": 20},
]


@dataclass
class SeedResult:
    supplier_id: int
    category_id: int
    products_created: int
    admin_id: Optional[int] = None


async def _find_or_create(db: AsyncSession, model, name: str, defaults: dict):
    result = await db.execute(select(model).where(model.name == name).order_by(model.id))
    instance = result.scalars().first()
    if instance is None:
        instance = model(name=name, **defaults)
        db.add(instance)
        await db.flush()
        logger.info("Created %s %r", model.__name__, name)
    return instance


async def seed(
    session_factory: async_sessionmaker = async_session_factory,
    admin_email: Optional[str] = None,
    admin_password: Optional[str] = None,
) -> SeedResult:
    async with session_factory() as db:
        supplier = await _find_or_create(
            db, Supplier, DEFAULT_SUPPLIER["name"], {"phone": DEFAULT_SUPPLIER["phone"]}
        )
        category = await _find_or_create(
            db, Category, DEFAULT_CATEGORY["name"], {"icon": DEFAULT_CATEGORY["icon"]}
        )

        existing = set(
            (
                await db.execute(
                    select(Product.title).where(Product.supplier_id == supplier.id)
                )
            ).scalars()
        )
        created = 0
        for item in GROCERIES:
            if item["title"] in existing:
                continue
            db.add(Product(**item, supplier_id=supplier.id, category_id=category.id))
            created += 1

        admin_id = None
        if admin_email and admin_password:
            result = await db.execute(select(Admin).where(Admin.email == admin_email))
            admin = result.scalars().first()
            if admin is None:
                admin = Admin(name="Administrator", email=admin_email)
                db.add(admin)
            admin.password_hash = hash_password(admin_password)
            await db.flush()
            admin_id = admin.id

        await db.commit()

    logger.info("Seeded %d grocery products for supplier %s", created, supplier.id)
    return SeedResult(
        supplier_id=supplier.id,
        category_id=category.id,
        products_created=created,
        admin_id=admin_id,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the marketplace with demo groceries.")
    parser.add_argument("--admin-email", help="Also create (or reset) this admin account")
    parser.add_argument("--admin-password", help="Password for --admin-email")
    args = parser.parse_args(argv)
    if bool(args.admin_email) != bool(args.admin_password):
        parser.error("--admin-email and --admin-password must be given together")
    return args


async def _main(args: argparse.Namespace) -> None:
    try:
        await init_models(engine)
        result = await seed(admin_email=args.admin_email, admin_password=args.admin_password)
        print(f"Groceries products seeded! ({result.products_created} new)")
    finally:
        await dispose_engine()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, stream=sys.stdout)
    asyncio.run(_main(parse_args()))
