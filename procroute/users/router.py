"""User procedures: userList, userById, userCreate."""

from __future__ import annotations

from procroute.rpc import validators as v
from procroute.rpc.procedures import procedure
from procroute.rpc.router import Router, build_router
from procroute.users.store import InMemoryUserStore, User, UserCreate, UserStore


def build_user_router(store: UserStore | None = None) -> Router:
    """Build the user router over ``store`` (a fresh in-memory store by default)."""
    db = store if store is not None else InMemoryUserStore()

    async def user_list(_: None) -> list[User]:
        return await db.list()

    async def user_by_id(user_id: str) -> User | None:
        # An unknown id is a valid empty result, not an error.
        return await db.find_by_id(user_id)

    async def user_create(data: UserCreate) -> User:
        return await db.create(data)

    return build_router(
        {
            "userList": procedure.query(user_list),
            "userById": procedure.input(v.string()).query(user_by_id),
            "userCreate": procedure.input(v.model(UserCreate)).output(v.model(User)).mutation(user_create),
        }
    )
