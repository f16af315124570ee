from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from todo_app.core.errors import ValidationError
from todo_app.db.session import get_db
from todo_app.schemas.admin import (
    AdminDeleteRequest,
    AdminLookupResponse,
    AdminUpdateRequest,
    AdminUserResponse,
    AdminUserWithTodos,
)
from todo_app.schemas.todo import MessageResponse, TodoResponse
from todo_app.services import admin as admin_service

router = APIRouter()


@router.get("", response_model=AdminLookupResponse)
def lookup_user(
    email: str = Query(""),
    page: int = Query(1),
    db: Session = Depends(get_db),
):
    """Look up a user by email together with one page of their todos"""
    result = admin_service.find_by_email(db, email, page=page)
    if result.user is None:
        return AdminLookupResponse(user=None, total_pages=0, current_page=result.current_page)

    user = AdminUserWithTodos(
        **AdminUserResponse.model_validate(result.user).model_dump(),
        todos=[TodoResponse.model_validate(t) for t in result.todos],
    )
    return AdminLookupResponse(
        user=user,
        total_pages=result.total_pages,
        current_page=result.current_page,
    )


@router.put("")
def update(
    update_data: AdminUpdateRequest,
    db: Session = Depends(get_db),
):
    """
    Two shapes share this endpoint:
      {"email": "...", "isSubscribed": true}               -> toggles the subscription
      {"email": "...", "todoId": "...", "todoCompleted": true} -> updates one todo
    """
    if update_data.todo_id:
        todo = admin_service.update_todo(db, update_data.todo_id, update_data.todo_completed)
        return TodoResponse.model_validate(todo)

    if update_data.is_subscribed is not None:
        if not update_data.email:
            raise ValidationError("email is required")
        user = admin_service.set_subscription(db, update_data.email, update_data.is_subscribed)
        return AdminUserResponse.model_validate(user)

    raise ValidationError("Nothing to update: send isSubscribed or todoId")


@router.delete("", response_model=MessageResponse)
def delete_todo(
    delete_data: AdminDeleteRequest,
    db: Session = Depends(get_db),
):
    admin_service.delete_todo(db, delete_data.todo_id)
    return MessageResponse(message="Todo deleted successfully")
