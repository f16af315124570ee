"""
Cross-user lookups for the admin dashboard.

Callers must already hold the admin role; the access-control middleware
enforces that before any function here runs.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from todo_app.core.config import ITEMS_PER_PAGE
from todo_app.core.errors import NotFound, ValidationError
from todo_app.models.todo import ToDo
from todo_app.models.user import User
from todo_app.services import todos as todo_service
from todo_app.services.subscription import end_subscription, refresh_subscription, start_subscription

logger = logging.getLogger(__name__)


@dataclass
class AdminLookup:
    user: Optional[User]
    todos: List[ToDo] = field(default_factory=list)
    total_pages: int = 0
    current_page: int = 1


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Session, email: Optional[str]) -> Optional[User]:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(User).filter(func.lower(User.email) == normalized).first()


def find_by_email(
    db: Session,
    email: Optional[str],
    page: int = 1,
    page_size: int = ITEMS_PER_PAGE,
) -> AdminLookup:
    user = get_user_by_email(db, email)
    if not user:
        return AdminLookup(user=None, current_page=todo_service.clamp_page(page))

    refresh_subscription(db, user)
    result = todo_service.paginate(db.query(ToDo).filter(ToDo.user_id == user.id), page, page_size)
    return AdminLookup(
        user=user,
        todos=result.todos,
        total_pages=result.total_pages,
        current_page=result.current_page,
    )


def set_subscription(db: Session, email: Optional[str], is_subscribed: bool) -> User:
    user = get_user_by_email(db, email)
    if not user:
        raise NotFound("User not found")

    if is_subscribed:
        start_subscription(user)
    else:
        end_subscription(user)
    db.commit()
    db.refresh(user)
    logger.info("Admin set subscription for %s to %s", user.email, is_subscribed)
    return user


def update_todo(db: Session, todo_id: Optional[str], completed: Optional[bool]) -> ToDo:
    # Not scoped to the looked-up user: any todo id is accepted.
    if not todo_id:
        raise ValidationError("todoId is required")
    if completed is None:
        raise ValidationError("todoCompleted is required")
    todo = todo_service.get_todo_or_404(db, todo_id)
    return todo_service.set_completed(db, todo, completed)


def delete_todo(db: Session, todo_id: Optional[str]) -> None:
    if not todo_id:
        raise ValidationError("todoId is required")
    todo = todo_service.get_todo_or_404(db, todo_id)
    owner_id = todo.user_id
    todo_service.remove_todo(db, todo)
    logger.info("Admin deleted todo %s of user %s", todo_id, owner_id)
