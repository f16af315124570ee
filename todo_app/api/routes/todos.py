from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from todo_app.db.session import get_db
from todo_app.dependencies.auth import get_current_user_id
from todo_app.schemas.todo import MessageResponse, TodoCreate, TodoListResponse, TodoResponse, TodoUpdate
from todo_app.services import todos as todo_service

router = APIRouter()


@router.get("", response_model=TodoListResponse)
def list_todos(
    page: int = Query(1),
    search: str = Query(""),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Caller's todos, newest first, filtered by a case-insensitive title substring"""
    result = todo_service.list_todos(db, user_id, page=page, search=search)
    return TodoListResponse(
        todos=[TodoResponse.model_validate(t) for t in result.todos],
        total_pages=result.total_pages,
        current_page=result.current_page,
    )


@router.post("", response_model=TodoResponse, status_code=status.HTTP_201_CREATED)
def create_todo(
    todo_data: TodoCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    todo = todo_service.create_todo(db, user_id, todo_data.title)
    return TodoResponse.model_validate(todo)


@router.put("/{todo_id}", response_model=TodoResponse)
def update_todo(
    todo_id: str,
    todo_data: TodoUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    todo = todo_service.update_todo(db, todo_id, user_id, todo_data.completed)
    return TodoResponse.model_validate(todo)


@router.delete("/{todo_id}", response_model=MessageResponse)
def delete_todo(
    todo_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    todo_service.delete_todo(db, todo_id, user_id)
    return MessageResponse(message="Todo deleted successfully")
