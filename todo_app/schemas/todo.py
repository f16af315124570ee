from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator

from todo_app.utils.dates import as_utc


class TodoCreate(BaseModel):
    title: str


class TodoUpdate(BaseModel):
    completed: bool


class TodoResponse(BaseModel):
    id: str
    title: str
    completed: bool
    user_id: str = Field(serialization_alias="userId")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    class Config:
        from_attributes = True


class TodoListResponse(BaseModel):
    todos: List[TodoResponse]
    total_pages: int = Field(serialization_alias="totalPages")
    current_page: int = Field(serialization_alias="currentPage")


class MessageResponse(BaseModel):
    message: str
