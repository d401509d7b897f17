"""
Delete every review, wine and bin.

Rows are removed children first (reviews, wines, bins) inside a single
transaction, so a failure leaves the database untouched. Uploaded image
files are not removed.

Run from backend/:
  PYTHONPATH=. python scripts/clear_data.py
"""

import asyncio
import logging

from sqlalchemy import delete

from app.database import async_session_factory, dispose_engine
from app.models import Bin, Review, Wine

logger = logging.getLogger("cellar.scripts.clear_data")


async def main() -> None:
    async with async_session_factory() as db:
        async with db.begin():
            reviews = await db.execute(delete(Review))
            wines = await db.execute(delete(Wine))
            bins = await db.execute(delete(Bin))

    logger.info(
        "Cleared %d review(s), %d wine(s), %d bin(s)",
        reviews.rowcount,
        wines.rowcount,
        bins.rowcount,
    )
    await dispose_engine()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    asyncio.run(main())
