"""
Account lookup against the remote `users` collection, with locally
registered users as the fallback when the remote store is down.

Passwords are compared as plain strings; there is no security model here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from store import local
from store.models import Authenticated
from store.remote import RemoteStore
from utils.constants import REGISTERED_USERS_KEY
from utils.errors import AuthenticationFailed, InvalidInput, LocalStorageError, RemoteUnavailable
from utils.logger import get_logger
from utils.validators import validate_email

_logger = get_logger(__name__)

USERS = "users"


def _status_of(user: Dict[str, Any]) -> str:
    if user.get("blocked") is True:
        return "blocked"
    return user.get("status") or user.get("userStatus") or "active"


class AccountDirectory:
    def __init__(self, remote: RemoteStore) -> None:
        self._remote = remote

    async def _local_users(self) -> List[Dict[str, Any]]:
        try:
            users = await local.get_json(REGISTERED_USERS_KEY, [])
        except LocalStorageError as e:
            _logger.warning(f"Ignoring unreadable registered users: {e}")
            return []
        return users if isinstance(users, list) else []

    async def _find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            matches = await self._remote.list(USERS, email=email)
            return matches[0] if matches else None
        except RemoteUnavailable:
            _logger.info("Remote users unavailable, checking local registrations")
        wanted = email.lower()
        for user in await self._local_users():
            if str(user.get("email", "")).lower() == wanted:
                return user
        return None

    async def authenticate(self, email: str, password: str) -> Authenticated:
        """Return the identity for these credentials, or raise AuthenticationFailed."""
        email = (email or "").strip()
        if not email or not password:
            raise AuthenticationFailed("Email and password are required")

        user = await self._find_by_email(email)
        if user is None:
            raise AuthenticationFailed("No account found with this email")
        if user.get("password") != password:
            raise AuthenticationFailed("Invalid password")

        status = _status_of(user)
        if status == "blocked":
            raise AuthenticationFailed("Your account has been blocked. Please contact support.")
        if status == "pending":
            raise AuthenticationFailed(
                "Your account is pending approval. Please contact administrator."
            )
        return Authenticated.from_json(user)

    async def register(self, name: str, email: str, password: str) -> Authenticated:
        """Create an account remotely, or locally when the remote store is down."""
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not password:
            raise InvalidInput("Make sure all inputs are filled.")
        error = validate_email(email)
        if error:
            raise InvalidInput(error)
        if await self._find_by_email(email) is not None:
            raise InvalidInput("Email already taken.")

        new_user = {
            "name": name,
            "username": name,
            "email": email,
            "password": password,
            "role": "user",
            "status": "active",
            "createdAt": datetime.now().isoformat(),
        }
        try:
            created = await self._remote.create(USERS, new_user)
        except RemoteUnavailable:
            _logger.info("Registering user in local storage")
            created = {**new_user, "id": f"local-{int(datetime.now().timestamp() * 1000)}"}
            await local.append_json(REGISTERED_USERS_KEY, created)
        return Authenticated.from_json(created)
