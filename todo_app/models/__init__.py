from todo_app.models.user import User
from todo_app.models.todo import ToDo

__all__ = [
    "User",
    "ToDo",
]
