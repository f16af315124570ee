import uuid

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from todo_app.db.base import Base
from todo_app.utils.dates import utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class ToDo(Base):
    __tablename__ = "todos"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)  # Sort key, newest first
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="todos")
