"""In-memory user repository used by the example procedures."""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class User(BaseModel):
    id: str
    name: str


class UserCreate(BaseModel):
    name: str


@runtime_checkable
class UserStore(Protocol):
    """Store interface consumed by the user procedures."""

    async def list(self) -> list[User]:
        ...

    async def find_by_id(self, user_id: str) -> User | None:
        ...

    async def create(self, data: UserCreate) -> User:
        ...


class InMemoryUserStore:
    """Keeps users in insertion order; ids are "1", "2", ... in creation order."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def list(self) -> list[User]:
        return list(self._users.values())

    async def find_by_id(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def create(self, data: UserCreate) -> User:
        async with self._lock:
            user = User(id=str(self._next_id), name=data.name)
            self._next_id += 1
            self._users[user.id] = user
            return user
