"""
Webhooks from the identity provider (Svix-signed user events).
Register https://your-backend.com/api/webhooks in the provider dashboard and
subscribe it to user.created, user.updated and user.deleted.
"""
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from todo_app.core import config
from todo_app.core.errors import ValidationError
from todo_app.db.session import get_db
from todo_app.services import user_sync
from todo_app.utils.webhook_signature import WebhookVerificationError, verify_webhook

logger = logging.getLogger(__name__)

router = APIRouter()


async def _verified_event(request: Request) -> dict:
    """Check the signature on the raw body, then parse it."""
    if not config.WEBHOOK_SECRET:
        logger.error("WEBHOOK_SECRET is not set; refusing identity webhooks")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfiguration: WEBHOOK_SECRET not set"
        )

    payload = await request.body()
    try:
        verify_webhook(
            config.WEBHOOK_SECRET,
            payload,
            request.headers,
            tolerance_seconds=config.WEBHOOK_TOLERANCE_SECONDS,
        )
    except WebhookVerificationError as e:
        logger.warning("Error verifying webhook signature: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook signature")

    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON")
    if not isinstance(event, dict) or not isinstance(event.get("data"), dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid event payload")
    return event


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _handle_user_created(db: Session, data: dict) -> JSONResponse:
    email = user_sync.primary_email(data)
    if user_sync.create_user(db, data.get("id"), email):
        return _message(status.HTTP_201_CREATED, "User created in database successfully")
    return _message(status.HTTP_200_OK, "User already exists in database")


def _handle_user_updated(db: Session, data: dict) -> JSONResponse:
    email = user_sync.primary_email(data)
    if user_sync.update_user_email(db, data.get("id"), email):
        return _message(status.HTTP_200_OK, "User updated in database")
    return _message(status.HTTP_200_OK, "User update webhook processed (user not found)")


def _handle_user_deleted(db: Session, data: dict) -> JSONResponse:
    if user_sync.delete_user(db, data.get("id")):
        return _message(status.HTTP_200_OK, "User deleted from database")
    return _message(status.HTTP_200_OK, "User deletion webhook processed (user not found)")


EVENT_HANDLERS = {
    "user.created": _handle_user_created,
    "user.updated": _handle_user_updated,
    "user.deleted": _handle_user_deleted,
}


@router.post("")
async def identity_webhook(request: Request, db: Session = Depends(get_db)):
    event = await _verified_event(request)
    event_type = event.get("type")
    data = event["data"]
    logger.info("Webhook event received: type=%s user=%s", event_type, data.get("id"))

    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        # Acknowledge so the provider does not keep retrying
        logger.info("Unhandled webhook event type: %s", event_type)
        return _message(status.HTTP_200_OK, "Webhook event received and ignored")

    try:
        return handler(db, data)
    except ValidationError as e:
        logger.warning("Rejected %s webhook for user %s: %s", event_type, data.get("id"), e.message)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


@router.post("/register")
async def register_webhook(request: Request, db: Session = Depends(get_db)):
    """Older registration endpoint: only mirrors user.created, acknowledges the rest."""
    event = await _verified_event(request)
    if event.get("type") != "user.created":
        return _message(status.HTTP_200_OK, "Webhook received successfully")
    return _handle_user_created(db, event["data"])
