#!/usr/bin/env python
"""Setup a local database for the product catalog.

This script:
1. Creates the catalog tables if they do not exist
2. Optionally seeds a producer and unit-of-measure rows

Usage:
    # Create tables only
    python scripts/init_catalog_db.py

    # Create tables and a producer for user 42
    python scripts/init_catalog_db.py --producer-user 42 --business "Huerta Sol" --phone 555-0101

    # Seed unit extents
    python scripts/init_catalog_db.py --units kg,unit,box

    # Show what is in the database
    python scripts/init_catalog_db.py --show
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app.infra.database import close_db_engine, get_db_session, get_engine
from app.infra.logging import get_logger, setup_logging
from app.models import Base, Producer, Product, ProductImage, UnitExtent

setup_logging()
logger = get_logger(__name__)


async def create_schema() -> bool:
    """Create all catalog tables that are missing."""
    try:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Catalog schema ensured", tables=sorted(Base.metadata.tables))
        return True
    except SQLAlchemyError as e:
        logger.error("Failed to create catalog schema", error=str(e))
        return False


async def seed_producer(user_id: int, business_name: str | None, phone: str | None) -> bool:
    """Create a producer for ``user_id`` unless one exists."""
    try:
        async with get_db_session() as session:
            existing = (
                await session.execute(select(Producer).where(Producer.user_id == user_id))
            ).scalars().first()
            if existing is not None:
                logger.info("Producer already exists", user_id=user_id, producer_id=existing.id)
                return True

            producer = Producer(user_id=user_id, business_name=business_name, phone=phone)
            session.add(producer)
            await session.flush()
            logger.info("Producer created", user_id=user_id, producer_id=producer.id)
            return True
    except SQLAlchemyError as e:
        logger.error("Failed to seed producer", error=str(e))
        return False


async def seed_units(names: list[str]) -> bool:
    """Insert unit extents whose names are not present yet."""
    try:
        async with get_db_session() as session:
            present = set(
                (await session.execute(select(UnitExtent.name))).scalars().all()
            )
            missing = [name for name in names if name not in present]
            session.add_all(UnitExtent(name=name) for name in missing)
            logger.info("Unit extents seeded", added=missing)
            return True
    except SQLAlchemyError as e:
        logger.error("Failed to seed unit extents", error=str(e))
        return False


async def show_summary() -> None:
    """Print table row counts and unit extents."""
    async with get_db_session() as session:
        print("\nCatalog tables:")
        print("-" * 40)
        for model in (Producer, Product, ProductImage, UnitExtent):
            count = (await session.execute(select(func.count()).select_from(model))).scalar_one()
            print(f"  {model.__tablename__:<14} {count} rows")

        units = (await session.execute(select(UnitExtent).order_by(UnitExtent.id))).scalars().all()
        print("\nUnit extents:")
        print("-" * 40)
        if not units:
            print("  None configured")
        for unit in units:
            print(f"  {unit.id}: {unit.name}")


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Setup a local database for the product catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--producer-user",
        type=int,
        metavar="USER_ID",
        help="Create a producer linked to this user id",
    )
    parser.add_argument(
        "--business",
        type=str,
        help="Business name for the seeded producer",
    )
    parser.add_argument(
        "--phone",
        type=str,
        help="Phone number for the seeded producer",
    )
    parser.add_argument(
        "--units",
        type=str,
        help="Comma-separated unit extent names to seed",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Show row counts and unit extents",
    )

    return parser.parse_args()


async def main() -> int:
    """Main entry point."""
    args = parse_args()

    try:
        if not await create_schema():
            return 1

        if args.producer_user is not None:
            if not await seed_producer(args.producer_user, args.business, args.phone):
                return 1

        if args.units:
            names = [name.strip() for name in args.units.split(",") if name.strip()]
            if not await seed_units(names):
                return 1

        if args.show:
            await show_summary()

        return 0
    finally:
        await close_db_engine()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
