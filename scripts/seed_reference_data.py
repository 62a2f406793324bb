#!/usr/bin/env python3
"""Seed reference data script.

Creates the catalog tables if needed and upserts the size and
design type lookup entries. Safe to run repeatedly.

Usage:
    python scripts/seed_reference_data.py
    python scripts/seed_reference_data.py --no-create-tables
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from apparel_catalog.catalog.repository import CatalogRepository
from apparel_catalog.infrastructure.database import async_session_factory, create_tables, engine

SIZES = [
    ("M", "Medium", 0),
    ("L", "Large", 1),
    ("XL", "Extra Large", 2),
    ("XXL", "Double Extra Large", 3),
]

DESIGN_TYPES = [
    ("Casual", "Everyday wear"),
    ("Formal", "Office and evening wear"),
    ("Wedding", "Ceremony and festive wear"),
    ("Sports", "Athletic and active wear"),
    ("Vintage", "Retro and classic styles"),
]


async def seed_references() -> dict:
    """Upsert every size and design type.

    Returns:
        Counts of seeded sizes and types.
    """
    async with async_session_factory() as session:
        repository = CatalogRepository(session)
        for name, display_name, sort_order in SIZES:
            await repository.upsert_size(name, display_name, sort_order)
        for name, description in DESIGN_TYPES:
            await repository.upsert_design_type(name, description)
        await session.commit()

    return {"sizes": len(SIZES), "types": len(DESIGN_TYPES)}


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed size and design type reference data",
    )
    parser.add_argument(
        "--no-create-tables",
        action="store_true",
        help="Skip table creation (use when migrations manage the schema)",
    )

    args = parser.parse_args()

    print("=" * 60)
    print("Apparel Catalog Reference Seeder")
    print("=" * 60)

    if not args.no_create_tables:
        print("Creating database tables...")
        await create_tables(engine)
        print("Tables ready.")
        print()

    print("Seeding reference data...")
    try:
        result = await seed_references()
    except Exception as e:
        print(f"  ✗ Error: {e}")
        raise
    finally:
        await engine.dispose()

    print(f"  ✓ Sizes: {result['sizes']}")
    print(f"  ✓ Design types: {result['types']}")
    print()
    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
