from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from stockledger.core.constants import DEFAULT_ROLE
from stockledger.database.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)

    password_hash = Column(String, nullable=False)
    password_salt = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default=DEFAULT_ROLE)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )


__all__ = ["User"]
