from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from todo_app.db.session import get_db
from todo_app.dependencies.auth import get_current_user_id
from todo_app.schemas.subscription import SubscriptionStatusResponse
from todo_app.schemas.todo import MessageResponse
from todo_app.services import subscription as subscription_service

router = APIRouter()


@router.get("", response_model=SubscriptionStatusResponse)
def get_subscription(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Current entitlement. Expired subscriptions are cleared on this read."""
    current = subscription_service.get_status(db, user_id)
    return SubscriptionStatusResponse(
        is_subscribed=current.is_subscribed,
        subscription_ends=current.subscription_ends,
    )


@router.post("", response_model=MessageResponse)
def subscribe(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    subscription_service.activate(db, user_id)
    return MessageResponse(message="Subscription activated successfully")
