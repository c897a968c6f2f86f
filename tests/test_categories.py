from __future__ import annotations

import pytest
from db.client import session_scope

from statement_tracker.auth import AuthContext
from statement_tracker.categories import (
    create_category,
    delete_category,
    get_categories,
    update_category,
)
from statement_tracker.errors import NotAuthenticatedError, NotFoundError


def test_created_categories_are_visible_only_to_their_owner(db_url, alice, bob):
    with session_scope(database_url=db_url) as s:
        a1 = create_category(s, alice, name="Groceries", color="#22c55e")
        a2 = create_category(s, alice, name="Rent", color="#ef4444")
        b1 = create_category(s, bob, name="Groceries", color="#000000")

    with session_scope(database_url=db_url) as s:
        alices = get_categories(s, alice)
        bobs = get_categories(s, bob)

    assert alices == [a1, a2]
    assert bobs == [b1]
    assert all(c["user_id"] == alice.user_id for c in alices)


def test_duplicate_names_are_allowed(db_url, alice):
    with session_scope(database_url=db_url) as s:
        create_category(s, alice, name="Food", color="red")
        create_category(s, alice, name="Food", color="red")
        assert [c["name"] for c in get_categories(s, alice)] == ["Food", "Food"]


def test_update_category_in_place(db_url, alice):
    with session_scope(database_url=db_url) as s:
        cat = create_category(s, alice, name="Fun", color="pink")
    with session_scope(database_url=db_url) as s:
        updated = update_category(
            s, alice, category_id=cat["id"], name="Entertainment", color="purple"
        )
    assert updated == {**cat, "name": "Entertainment", "color": "purple"}
    with session_scope(database_url=db_url) as s:
        assert get_categories(s, alice) == [updated]


def test_foreign_category_looks_missing(db_url, alice, bob):
    with session_scope(database_url=db_url) as s:
        cat = create_category(s, alice, name="Private", color="black")

    with session_scope(database_url=db_url) as s:
        with pytest.raises(NotFoundError, match="Category not found"):
            update_category(s, bob, category_id=cat["id"], name="Hijacked", color="red")
        with pytest.raises(NotFoundError, match="Category not found"):
            delete_category(s, bob, category_id=cat["id"])
        with pytest.raises(NotFoundError, match="Category not found"):
            delete_category(s, alice, category_id=cat["id"] + 1000)

    with session_scope(database_url=db_url) as s:
        assert get_categories(s, alice) == [cat]


def test_delete_category(db_url, alice):
    with session_scope(database_url=db_url) as s:
        cat = create_category(s, alice, name="Temp", color="white")
    with session_scope(database_url=db_url) as s:
        delete_category(s, alice, category_id=cat["id"])
    with session_scope(database_url=db_url) as s:
        assert get_categories(s, alice) == []


def test_category_operations_require_authentication(db_url):
    nobody = AuthContext()
    with session_scope(database_url=db_url) as s:
        with pytest.raises(NotAuthenticatedError, match="Not authenticated"):
            get_categories(s, nobody)
        with pytest.raises(NotAuthenticatedError):
            create_category(s, nobody, name="x", color="y")
        with pytest.raises(NotAuthenticatedError):
            update_category(s, nobody, category_id=1, name="x", color="y")
        with pytest.raises(NotAuthenticatedError):
            delete_category(s, nobody, category_id=1)
