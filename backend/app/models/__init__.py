"""
Cellar Tracker Backend - ORM Models
====================================

Importing this package registers every table with `Base.metadata`, which
Alembic autogenerate and the test suite rely on.

    bins ──< wines ──< reviews
"""

from app.models.bin import Bin
from app.models.review import Review
from app.models.wine import Wine

__all__ = ["Bin", "Wine", "Review"]
