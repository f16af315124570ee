from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship

from todo_app.db.base import Base
from todo_app.utils.dates import utcnow


class User(Base):
    """Local mirror of an identity-provider account."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)  # Identity provider user ID (e.g. "user_2abc...")
    email = Column(String, unique=True, index=True, nullable=False)
    is_subscribed = Column(Boolean, default=False, nullable=False)
    subscription_ends = Column(DateTime(timezone=True), nullable=True)  # Only set while subscribed
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    todos = relationship(
        "ToDo",
        back_populates="user",
        cascade="all, delete-orphan",
    )
