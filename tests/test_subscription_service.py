from datetime import datetime, timedelta, timezone

import pytest

from conftest import add_user
from todo_app.core.errors import NotFound
from todo_app.models import User
from todo_app.services import subscription as subscription_service
from todo_app.utils.dates import as_utc, one_month_from, utcnow


@pytest.mark.parametrize(
    "start, expected",
    [
        (datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc), datetime(2024, 4, 15, 9, 30, tzinfo=timezone.utc)),
        (datetime(2024, 12, 10, tzinfo=timezone.utc), datetime(2025, 1, 10, tzinfo=timezone.utc)),
        # Day overflow rolls into the following month
        (datetime(2023, 1, 31, tzinfo=timezone.utc), datetime(2023, 3, 3, tzinfo=timezone.utc)),
        (datetime(2024, 1, 31, tzinfo=timezone.utc), datetime(2024, 3, 2, tzinfo=timezone.utc)),
        (datetime(2024, 5, 31, tzinfo=timezone.utc), datetime(2024, 7, 1, tzinfo=timezone.utc)),
    ],
)
def test_one_month_from(start, expected):
    assert one_month_from(start) == expected


def test_as_utc_attaches_timezone_to_naive_values():
    naive = datetime(2024, 1, 1, 12, 0)
    assert as_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert as_utc(None) is None


def test_status_for_new_user(db):
    add_user(db, "user_a")
    current = subscription_service.get_status(db, "user_a")
    assert current.is_subscribed is False
    assert current.subscription_ends is None


def test_status_for_unknown_user(db):
    with pytest.raises(NotFound):
        subscription_service.get_status(db, "ghost")


def test_activate_sets_one_month_window(db):
    add_user(db, "user_a")
    before = utcnow()

    current = subscription_service.activate(db, "user_a")

    assert current.is_subscribed is True
    assert one_month_from(before) <= current.subscription_ends <= one_month_from(utcnow())
    assert subscription_service.get_status(db, "user_a").is_subscribed is True


def test_activate_twice_resets_window(db):
    current_end = utcnow() + timedelta(days=2)
    add_user(db, "user_a", is_subscribed=True, subscription_ends=current_end)

    current = subscription_service.activate(db, "user_a")
    assert current.subscription_ends > current_end + timedelta(days=20)


def test_lazy_expiry_is_persisted(db):
    add_user(db, "user_a", is_subscribed=True, subscription_ends=utcnow() - timedelta(minutes=1))

    current = subscription_service.get_status(db, "user_a")
    assert current.is_subscribed is False
    assert current.subscription_ends is None

    db.expire_all()
    stored = db.query(User).filter(User.id == "user_a").one()
    assert stored.is_subscribed is False
    assert stored.subscription_ends is None


def test_active_subscription_is_untouched(db):
    ends = utcnow() + timedelta(days=10)
    add_user(db, "user_a", is_subscribed=True, subscription_ends=ends)

    current = subscription_service.get_status(db, "user_a")
    assert current.is_subscribed is True
    assert abs(current.subscription_ends - ends) < timedelta(seconds=1)


def test_apply_lazy_expiry_uses_given_clock():
    user = User(id="user_a", email="a@example.com", is_subscribed=True,
                subscription_ends=datetime(2024, 2, 1, tzinfo=timezone.utc))

    assert subscription_service.apply_lazy_expiry(user, now=datetime(2024, 1, 31, tzinfo=timezone.utc)) is False
    assert user.is_subscribed is True

    assert subscription_service.apply_lazy_expiry(user, now=datetime(2024, 2, 2, tzinfo=timezone.utc)) is True
    assert user.is_subscribed is False
    assert user.subscription_ends is None
