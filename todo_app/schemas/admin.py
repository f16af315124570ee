from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from todo_app.schemas.todo import TodoResponse
from todo_app.utils.dates import as_utc


class AdminUserResponse(BaseModel):
    id: str
    email: str
    is_subscribed: bool = Field(serialization_alias="isSubscribed")
    subscription_ends: Optional[datetime] = Field(default=None, serialization_alias="subscriptionEnds")
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")

    @field_validator("subscription_ends", "created_at")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    class Config:
        from_attributes = True


class AdminUserWithTodos(AdminUserResponse):
    todos: List[TodoResponse] = []


class AdminLookupResponse(BaseModel):
    user: Optional[AdminUserWithTodos] = None
    total_pages: int = Field(serialization_alias="totalPages")
    current_page: int = Field(serialization_alias="currentPage")


class AdminUpdateRequest(BaseModel):
    """Either toggles the subscription of `email`, or updates one todo by id."""

    email: Optional[EmailStr] = None
    is_subscribed: Optional[bool] = Field(default=None, alias="isSubscribed")
    todo_id: Optional[str] = Field(default=None, alias="todoId")
    todo_completed: Optional[bool] = Field(default=None, alias="todoCompleted")

    class Config:
        populate_by_name = True


class AdminDeleteRequest(BaseModel):
    todo_id: str = Field(alias="todoId")

    class Config:
        populate_by_name = True
