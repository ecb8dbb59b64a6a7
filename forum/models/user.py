"""User ORM — registered forum accounts.

Invariants:
    - username is unique and at most 32 characters
    - passwordhash holds a bcrypt hash, never a plaintext password
    - registered is set once, in UTC, at insert time
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from forum.db.base import Base

MAX_USERNAME_LENGTH = 32


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    username: Mapped[str] = mapped_column(
        String(MAX_USERNAME_LENGTH), nullable=False, unique=True,
    )
    passwordhash: Mapped[str] = mapped_column(String(255), nullable=False)
    registered: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
