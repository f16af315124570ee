"""
Subscription entitlement for unlimited todos.

Expiry is lazy: there is no scheduler. A stale `is_subscribed=True` stays in
the database until the next read of that user, which flips it back.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from todo_app.core.errors import NotFound
from todo_app.models.user import User
from todo_app.utils.dates import as_utc, one_month_from, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionStatus:
    is_subscribed: bool
    subscription_ends: Optional[datetime]


def get_user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        # Identity provider knows this user but the webhook mirror does not.
        logger.warning("User %s has a valid session but no local record", user_id)
        raise NotFound("User not found")
    return user


def apply_lazy_expiry(user: User, now: Optional[datetime] = None) -> bool:
    """
    Clear an expired subscription on the in-memory row.
    Returns True when the row changed; the caller commits.
    """
    ends = as_utc(user.subscription_ends)
    if ends is None or ends >= (now or utcnow()):
        return False
    user.is_subscribed = False
    user.subscription_ends = None
    logger.info("Subscription for user %s expired at %s", user.id, ends.isoformat())
    return True


def refresh_subscription(db: Session, user: User) -> User:
    if apply_lazy_expiry(user):
        db.commit()
        db.refresh(user)
    return user


def get_status(db: Session, user_id: str) -> SubscriptionStatus:
    user = refresh_subscription(db, get_user_or_404(db, user_id))
    return SubscriptionStatus(
        is_subscribed=bool(user.is_subscribed),
        subscription_ends=as_utc(user.subscription_ends),
    )


def start_subscription(user: User, now: Optional[datetime] = None) -> None:
    user.is_subscribed = True
    user.subscription_ends = one_month_from(now or utcnow())


def end_subscription(user: User) -> None:
    user.is_subscribed = False
    user.subscription_ends = None


def activate(db: Session, user_id: str) -> SubscriptionStatus:
    # TODO: capture payment before granting; activation is currently free.
    user = get_user_or_404(db, user_id)
    start_subscription(user)
    db.commit()
    db.refresh(user)
    logger.info("Activated subscription for user %s until %s", user_id, as_utc(user.subscription_ends).isoformat())
    return SubscriptionStatus(is_subscribed=True, subscription_ends=as_utc(user.subscription_ends))
