"""
Mirror identity-provider users into the local `users` table.
Driven by the user.created / user.updated / user.deleted webhooks.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from todo_app.core.errors import PersistenceError, ValidationError
from todo_app.models.user import User

logger = logging.getLogger(__name__)


def primary_email(data: dict) -> str:
    """
    Pick the primary address out of an identity-provider user object:
    {"email_addresses": [{"id": "idn_1", "email_address": "..."}], "primary_email_address_id": "idn_1"}
    """
    addresses = data.get("email_addresses") or []
    primary_id = data.get("primary_email_address_id")
    if not addresses or not primary_id:
        raise ValidationError("No primary email found or invalid payload structure")

    for address in addresses:
        if isinstance(address, dict) and address.get("id") == primary_id:
            email = (address.get("email_address") or "").strip().lower()
            if email:
                return email
    raise ValidationError("Primary email not found in payload array")


def create_user(db: Session, user_id: Optional[str], email: str) -> bool:
    """Insert the mirror row. Returns False when the user already exists."""
    if not user_id:
        raise ValidationError("Event payload is missing the user id")

    if db.query(User).filter(User.id == user_id).first():
        logger.warning("User %s already exists in database", user_id)
        return False

    db.add(User(id=user_id, email=email, is_subscribed=False))
    try:
        db.commit()
    except IntegrityError:
        # Concurrent delivery of the same event, or the email belongs to another row
        db.rollback()
        if db.query(User).filter(User.id == user_id).first():
            logger.warning("User %s created by a concurrent request", user_id)
            return False
        logger.error("Failed to create user %s: email %s belongs to another user", user_id, email)
        raise PersistenceError("Failed to create user in database")
    logger.info("Created user %s (%s)", user_id, email)
    return True


def update_user_email(db: Session, user_id: Optional[str], email: str) -> bool:
    """Returns False when the user is not mirrored locally."""
    user = db.query(User).filter(User.id == user_id).first() if user_id else None
    if not user:
        logger.warning("user.updated for unknown user %s", user_id)
        return False
    if user.email != email:
        user.email = email
        db.commit()
        logger.info("Updated email of user %s", user_id)
    return True


def delete_user(db: Session, user_id: Optional[str]) -> bool:
    """Delete the user and, by cascade, all of their todos. Returns False when absent."""
    user = db.query(User).filter(User.id == user_id).first() if user_id else None
    if not user:
        logger.warning("User %s not found in database for deletion", user_id)
        return False
    db.delete(user)
    db.commit()
    logger.info("Deleted user %s", user_id)
    return True
