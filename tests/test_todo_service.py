from datetime import timedelta

import pytest

from conftest import add_todos, add_user
from todo_app.core.errors import Forbidden, NotFound, QuotaExceeded, ValidationError
from todo_app.models import ToDo
from todo_app.services import subscription as subscription_service
from todo_app.services import todos as todo_service
from todo_app.utils.dates import utcnow


def test_create_todo_defaults_to_incomplete(db):
    add_user(db, "user_a")
    todo = todo_service.create_todo(db, "user_a", "  Buy Milk  ")

    assert todo.id
    assert todo.title == "Buy Milk"
    assert todo.completed is False
    assert todo.user_id == "user_a"


def test_create_todo_rejects_blank_title(db):
    add_user(db, "user_a")
    with pytest.raises(ValidationError):
        todo_service.create_todo(db, "user_a", "   ")
    assert db.query(ToDo).count() == 0


def test_create_todo_requires_local_user(db):
    with pytest.raises(NotFound):
        todo_service.create_todo(db, "ghost", "Buy Milk")


def test_quota_scenario_a_b_c_then_d(db):
    add_user(db, "user_a")
    for title in ("A", "B", "C"):
        todo_service.create_todo(db, "user_a", title)

    with pytest.raises(QuotaExceeded) as exc_info:
        todo_service.create_todo(db, "user_a", "D")
    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "Free users can only create up to 3 todos. Please subscribe for more."
    assert db.query(ToDo).filter(ToDo.user_id == "user_a").count() == 3

    subscription_service.activate(db, "user_a")
    todo = todo_service.create_todo(db, "user_a", "D")
    assert todo.title == "D"
    assert db.query(ToDo).filter(ToDo.user_id == "user_a").count() == 4


def test_quota_applies_after_subscription_lapses(db):
    add_user(
        db,
        "user_a",
        is_subscribed=True,
        subscription_ends=utcnow() - timedelta(days=1),
    )
    add_todos(db, "user_a", ["A", "B", "C"])

    with pytest.raises(QuotaExceeded):
        todo_service.create_todo(db, "user_a", "D")

    user = subscription_service.get_user_or_404(db, "user_a")
    assert user.is_subscribed is False
    assert user.subscription_ends is None


def test_list_todos_newest_first_with_pagination(db):
    add_user(db, "user_a")
    add_todos(db, "user_a", [f"Todo {i}" for i in range(1, 13)])

    first = todo_service.list_todos(db, "user_a", page=1)
    assert first.total_pages == 2
    assert first.current_page == 1
    assert [t.title for t in first.todos] == [f"Todo {i}" for i in range(12, 2, -1)]

    second = todo_service.list_todos(db, "user_a", page=2)
    assert [t.title for t in second.todos] == ["Todo 2", "Todo 1"]

    beyond = todo_service.list_todos(db, "user_a", page=5)
    assert beyond.todos == []
    assert beyond.total_pages == 2
    assert beyond.current_page == 5


def test_list_todos_clamps_page_below_one(db):
    add_user(db, "user_a")
    add_todos(db, "user_a", ["A", "B"])

    result = todo_service.list_todos(db, "user_a", page=0)
    assert result.current_page == 1
    assert [t.title for t in result.todos] == ["B", "A"]

    assert todo_service.list_todos(db, "user_a", page=-3).current_page == 1


def test_list_todos_is_idempotent(db):
    add_user(db, "user_a")
    add_todos(db, "user_a", ["A", "B", "C"])

    first = [t.id for t in todo_service.list_todos(db, "user_a").todos]
    second = [t.id for t in todo_service.list_todos(db, "user_a").todos]
    assert first == second


def test_list_todos_empty(db):
    add_user(db, "user_a")
    result = todo_service.list_todos(db, "user_a")
    assert result.todos == []
    assert result.total_pages == 0


@pytest.mark.parametrize("term", ["milk", "MILK", "y mi"])
def test_search_is_case_insensitive_substring(db, term):
    add_user(db, "user_a")
    add_todos(db, "user_a", ["Buy Milk", "Walk dog", "Pay rent"])

    result = todo_service.list_todos(db, "user_a", search=term)
    assert [t.title for t in result.todos] == ["Buy Milk"]
    assert result.total_pages == 1


def test_search_counts_only_matching_todos(db):
    add_user(db, "user_a")
    add_todos(db, "user_a", [f"milk {i}" for i in range(11)] + [f"bread {i}" for i in range(15)])

    result = todo_service.list_todos(db, "user_a", search="milk")
    assert result.total_pages == 2
    assert len(result.todos) == 10


def test_search_treats_wildcards_literally(db):
    add_user(db, "user_a")
    add_todos(db, "user_a", ["100% done", "half done"])

    result = todo_service.list_todos(db, "user_a", search="%")
    assert [t.title for t in result.todos] == ["100% done"]


def test_list_todos_only_returns_own_todos(db):
    add_user(db, "user_a")
    add_user(db, "user_b")
    add_todos(db, "user_a", ["mine"])
    add_todos(db, "user_b", ["theirs"])

    result = todo_service.list_todos(db, "user_a")
    assert [t.title for t in result.todos] == ["mine"]


def test_owner_can_update_and_delete(db):
    add_user(db, "user_a")
    (todo,) = add_todos(db, "user_a", ["A"])

    updated = todo_service.update_todo(db, todo.id, "user_a", True)
    assert updated.completed is True

    todo_service.delete_todo(db, todo.id, "user_a")
    assert db.query(ToDo).count() == 0


def test_non_owner_cannot_update_or_delete(db):
    add_user(db, "user_a")
    add_user(db, "user_b")
    (todo,) = add_todos(db, "user_a", ["A"])

    with pytest.raises(Forbidden):
        todo_service.update_todo(db, todo.id, "user_b", True)
    with pytest.raises(Forbidden):
        todo_service.delete_todo(db, todo.id, "user_b")

    db.refresh(todo)
    assert todo.completed is False
    assert db.query(ToDo).count() == 1


def test_unknown_todo_is_not_found(db):
    add_user(db, "user_a")
    with pytest.raises(NotFound):
        todo_service.update_todo(db, "missing", "user_a", True)
    with pytest.raises(NotFound):
        todo_service.delete_todo(db, "missing", "user_a")


def test_page_far_past_the_end_is_empty(db):
    add_user(db, "user_a")
    add_todos(db, "user_a", ["A", "B"])

    result = todo_service.list_todos(db, "user_a", page=10**20)
    assert result.todos == []
    assert result.total_pages == 1
    assert result.current_page == 10**20
