import pytest
import sqlite3
import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ["TESTING"] = "1"

_test_conn = None
_test_wrapper = None

class NonClosingConnection:
    def __init__(self, conn):
        self._conn = conn

    def close(self):
        pass

    def __getattr__(self, name):
        return getattr(self._conn, name)

def get_test_connection():
    global _test_conn, _test_wrapper
    if _test_conn is None:
        _test_conn = sqlite3.connect(":memory:", check_same_thread=False, timeout=30)
        _test_conn.row_factory = sqlite3.Row
        _test_conn.execute("PRAGMA foreign_keys=ON")
        _test_wrapper = NonClosingConnection(_test_conn)
    return _test_wrapper

import db.connection
db.connection.get_db_connection = get_test_connection

from db.connection import init_db
init_db()

import db.users
db.users.get_db_connection = get_test_connection

import db.categories
db.categories.get_db_connection = get_test_connection

import db.items
db.items.get_db_connection = get_test_connection

import db.history
db.history.get_db_connection = get_test_connection

from engine.models import Category, Item

# Fixed clock for engine tests: Wednesday 2026-10-14, 12:00 UTC
NOW = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)


class FakeGateway:
    """In-memory gateway that records every call made to it"""

    def __init__(self, categories=None, items=None, error=None):
        self.categories = list(categories or [])
        self.items = list(items or [])
        self.error = error
        self.calls = []

    async def list_owned_categories(self):
        self.calls.append(('list_owned_categories',))
        if self.error:
            raise self.error
        return list(self.categories)

    async def list_items(self, category_id):
        self.calls.append(('list_items', category_id))
        if self.error:
            raise self.error
        return [item for item in self.items if item.category_id == category_id]

    async def list_items_in(self, category_ids, date_from=None, date_to=None):
        self.calls.append(('list_items_in', list(category_ids), date_from, date_to))
        if self.error:
            raise self.error
        return [
            item for item in self.items
            if item.category_id in category_ids
            and (date_from is None or item.created_at >= date_from)
            and (date_to is None or item.created_at <= date_to)
        ]


def make_category(category_id, name, icon=None, color=None):
    return Category(id=category_id, user_id=1, name=name, icon=icon, color=color)


def make_item(item_id, category_id, data, created_at=NOW):
    return Item(id=item_id, category_id=category_id, user_id=1, data=data, created_at=created_at)


@pytest.fixture(scope="function")
def test_db():
    global _test_conn
    _test_conn.execute("DELETE FROM search_history")
    _test_conn.execute("DELETE FROM category_items")
    _test_conn.execute("DELETE FROM category_fields WHERE category_id IN (SELECT id FROM categories WHERE is_template = 0)")
    _test_conn.execute("DELETE FROM categories WHERE is_template = 0")
    _test_conn.execute("DELETE FROM sessions")
    _test_conn.execute("DELETE FROM users")
    _test_conn.commit()
    yield _test_conn

@pytest.fixture(scope="function")
def test_client(test_db):
    from fastapi.testclient import TestClient
    from server import app

    client = TestClient(app)
    yield client

@pytest.fixture(scope="function")
def test_user(test_db):
    from db.users import create_user

    user_id = create_user("testuser", "password123", "test@example.com")
    return {
        "id": user_id,
        "username": "testuser",
        "password": "password123",
        "email": "test@example.com",
        "role": "user"
    }

@pytest.fixture(scope="function")
def logged_in_client(test_client, test_user):
    response = test_client.post("/api/auth/login", json={
        "username": test_user["username"],
        "password": test_user["password"]
    })
    assert response.status_code == 200
    return test_client
