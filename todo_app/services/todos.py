import logging
import math
from dataclasses import dataclass
from typing import List

from sqlalchemy.orm import Query, Session

from todo_app.core.config import FREE_TODO_LIMIT, ITEMS_PER_PAGE
from todo_app.core.errors import Forbidden, NotFound, QuotaExceeded, ValidationError
from todo_app.models.todo import ToDo
from todo_app.services.subscription import apply_lazy_expiry, get_user_or_404

logger = logging.getLogger(__name__)


@dataclass
class TodoPage:
    todos: List[ToDo]
    total_pages: int
    current_page: int


def clamp_page(page: int) -> int:
    """Pages are 1-indexed; anything below 1 reads as the first page."""
    return page if page and page > 0 else 1


def paginate(query: Query, page: int, page_size: int = ITEMS_PER_PAGE) -> TodoPage:
    """Newest-first slice of a ToDo query, with the page count of the whole query."""
    page = clamp_page(page)
    total_items = query.count()
    total_pages = math.ceil(total_items / page_size)
    if page > max(total_pages, 1):
        # Past the end; huge offsets overflow the driver's integer type
        return TodoPage(todos=[], total_pages=total_pages, current_page=page)

    todos = (
        query.order_by(ToDo.created_at.desc(), ToDo.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return TodoPage(
        todos=todos,
        total_pages=total_pages,
        current_page=page,
    )


def list_todos(
    db: Session,
    user_id: str,
    page: int = 1,
    page_size: int = ITEMS_PER_PAGE,
    search: str = "",
) -> TodoPage:
    query = db.query(ToDo).filter(ToDo.user_id == user_id)
    if search:
        # ILIKE on Postgres; SQLite's lower() only folds ASCII letters
        query = query.filter(ToDo.title.icontains(search, autoescape=True))
    return paginate(query, page, page_size)


def create_todo(db: Session, user_id: str, title: str) -> ToDo:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title must not be empty")

    user = get_user_or_404(db, user_id)
    if apply_lazy_expiry(user):
        db.commit()

    # Read-then-write: two concurrent creates can both pass this check.
    if not user.is_subscribed:
        todo_count = db.query(ToDo).filter(ToDo.user_id == user_id).count()
        if todo_count >= FREE_TODO_LIMIT:
            logger.info("Quota reached for free user %s (%s todos)", user_id, todo_count)
            raise QuotaExceeded(
                f"Free users can only create up to {FREE_TODO_LIMIT} todos. Please subscribe for more."
            )

    todo = ToDo(title=title, user_id=user_id, completed=False)
    db.add(todo)
    db.commit()
    db.refresh(todo)
    return todo


def get_todo_or_404(db: Session, todo_id: str) -> ToDo:
    todo = db.query(ToDo).filter(ToDo.id == todo_id).first()
    if not todo:
        raise NotFound("Todo not found")
    return todo


def _ensure_owner(todo: ToDo, requester_id: str) -> None:
    if todo.user_id != requester_id:
        logger.warning("User %s attempted to modify todo %s owned by %s", requester_id, todo.id, todo.user_id)
        raise Forbidden("Forbidden")


def set_completed(db: Session, todo: ToDo, completed: bool) -> ToDo:
    todo.completed = completed
    db.commit()
    db.refresh(todo)
    return todo


def remove_todo(db: Session, todo: ToDo) -> None:
    db.delete(todo)
    db.commit()


def update_todo(db: Session, todo_id: str, requester_id: str, completed: bool) -> ToDo:
    todo = get_todo_or_404(db, todo_id)
    _ensure_owner(todo, requester_id)
    return set_completed(db, todo, completed)


def delete_todo(db: Session, todo_id: str, requester_id: str) -> None:
    todo = get_todo_or_404(db, todo_id)
    _ensure_owner(todo, requester_id)
    remove_todo(db, todo)
