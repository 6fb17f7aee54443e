"""Example user procedures backed by an in-memory store."""

from procroute.users.router import build_user_router
from procroute.users.store import InMemoryUserStore, User, UserCreate, UserStore

__all__ = ["InMemoryUserStore", "User", "UserCreate", "UserStore", "build_user_router"]
