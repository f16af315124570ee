#!/usr/bin/env python3
"""
Todo data seeder for dashboard pagination, search and quota testing.

Connects to the database (via DATABASE_URL), makes sure the target user exists
(creating it when --email is given for an unknown id), then bulk-inserts N todos
with spread-out creation times so pagination order is stable.

Run from project root:
  python scripts/seed_todos.py --user-id user_123 --email you@example.com
  python scripts/seed_todos.py --user-id user_123 --count 250 --subscribed

Requires: DATABASE_URL in environment (.env or export). Falls back to the
local sqlite file used by the app.
"""

from __future__ import annotations

import argparse
import os
import random
import sys
import uuid
from datetime import timedelta
from pathlib import Path

# Run from project root; ensure todo_app is importable
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv(project_root / ".env")
load_dotenv(project_root / ".env.local")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from todo_app.core import config
from todo_app.db.base import Base
from todo_app.models import ToDo, User
from todo_app.services.subscription import start_subscription
from todo_app.utils.dates import utcnow

BATCH_SIZE = 1000
WORDS = ("buy", "milk", "call", "mom", "fix", "bike", "read", "book", "pay", "rent", "walk", "dog")


def get_session():
    engine = create_engine(config.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    return Session()


def ensure_user(sess, user_id: str, email: str | None) -> User:
    user = sess.get(User, user_id)
    if user:
        print(f"Using user id={user.id} (email={user.email})")
        return user
    if not email:
        print(f"ERROR: No user with id={user_id!r}. Pass --email to create it.")
        sys.exit(1)
    user = User(id=user_id, email=email.strip().lower())
    sess.add(user)
    sess.flush()
    print(f"Created user id={user.id} (email={user.email})")
    return user


def random_title(i: int) -> str:
    return f"{' '.join(random.sample(WORDS, 3))} #{i}"


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed todos for a user (pagination/search/quota testing).")
    parser.add_argument("--user-id", type=str, required=True, dest="user_id", help="Identity provider user id")
    parser.add_argument("--email", type=str, help="Email to create the user with when it does not exist")
    parser.add_argument("--count", type=int, default=50, help="Number of todos to insert (default 50)")
    parser.add_argument("--subscribed", action="store_true", help="Start a one-month subscription for the user")
    args = parser.parse_args()

    if args.count < 0:
        print("ERROR: --count must be zero or positive.")
        sys.exit(1)

    sess = get_session()
    try:
        user = ensure_user(sess, args.user_id, args.email)
        if args.subscribed:
            start_subscription(user)
            print(f"  Subscription active until {user.subscription_ends.isoformat()}")

        base_ts = utcnow()
        rows = []
        for i in range(args.count):
            ts = base_ts - timedelta(minutes=args.count - i)
            rows.append({
                "id": str(uuid.uuid4()),
                "title": random_title(i + 1),
                "completed": random.random() < 0.3,
                "user_id": user.id,
                "created_at": ts,
                "updated_at": ts,
            })
        for start in range(0, len(rows), BATCH_SIZE):
            sess.bulk_insert_mappings(ToDo, rows[start : start + BATCH_SIZE])
            sess.flush()
        sess.commit()
        print(f"  Inserted {len(rows)} todos.")
    except Exception:
        sess.rollback()
        raise
    finally:
        sess.close()


if __name__ == "__main__":
    main()
