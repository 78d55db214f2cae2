"""
library_access.py

Credential checks and the per-session identity.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable

from library_errors import InvalidCredentials
from library_records import User

MAX_LOGIN_ATTEMPTS = 3

logger = logging.getLogger("LibrarySystem.access")


def authenticate(users: Iterable[User], name: str, password: str) -> User:
    """
    Return the first user whose name matches (case-insensitive) and whose
    password matches exactly. Raises InvalidCredentials otherwise.
    """
    for user in users:
        if user.name.lower() == name.lower() and user.password == password:
            logger.info("User %s logged in", user.user_id)
            return user
    logger.warning("Failed login for %r", name)
    raise InvalidCredentials()


def is_administrator(user: User) -> bool:
    return user.is_administrator


@dataclass(frozen=True)
class Session:
    """The authenticated user for the current run."""
    user: User

    @property
    def user_id(self) -> str:
        return self.user.user_id

    @property
    def is_administrator(self) -> bool:
        return is_administrator(self.user)
