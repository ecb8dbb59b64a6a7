"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)
    - All models imported here so create_all sees every table
"""

from forum.models.user import User  # noqa: F401
