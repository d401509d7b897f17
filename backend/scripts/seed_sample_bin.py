"""
Insert a "Sample Bin" so a fresh installation has somewhere to put wines.

Idempotent: nothing is written when a bin with that name already exists.

Run from backend/ after `alembic upgrade head`:
  PYTHONPATH=. python scripts/seed_sample_bin.py
"""

import asyncio
import logging

from sqlalchemy import select

from app.database import async_session_factory, dispose_engine
from app.models import Bin

logger = logging.getLogger("cellar.scripts.seed_sample_bin")

SAMPLE_BIN = {
    "name": "Sample Bin",
    "location": "Cellar",
    "capacity": 10,
    "description": "Sample bin for testing",
}


async def main() -> None:
    async with async_session_factory() as db:
        existing = await db.execute(select(Bin.id).where(Bin.name == SAMPLE_BIN["name"]))
        bin_id = existing.scalar_one_or_none()
        if bin_id is not None:
            logger.info("Sample bin already present (id=%s)", bin_id)
        else:
            bin_ = Bin(**SAMPLE_BIN)
            db.add(bin_)
            await db.commit()
            logger.info("Created sample bin (id=%s)", bin_.id)

    await dispose_engine()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    asyncio.run(main())
