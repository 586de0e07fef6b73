from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Mapping, Union

from store import local
from store.models import GUEST, Authenticated, Identity
from utils.constants import GUEST_CART_KEY, IDENTITY_KEY
from utils.errors import InvalidIdentity, LocalStorageError, PermissionDenied
from utils.logger import get_logger

_logger = get_logger(__name__)

IdentityListener = Callable[[Identity], Awaitable[None]]


def _coerce(data: Union[Authenticated, Mapping[str, Any], None]) -> Authenticated:
    if isinstance(data, Authenticated):
        if not data.id:
            raise InvalidIdentity("Invalid user data")
        return data
    if not isinstance(data, Mapping) or not data.get("id"):
        raise InvalidIdentity("Invalid user data")
    return Authenticated.from_json(data)


class IdentityStore:
    """
    Holds who is using the storefront: an Authenticated user or GUEST.

    Every mutation is written to local storage before it returns, then the
    subscribed listeners (the cart) are awaited with the new identity.
    """

    def __init__(self) -> None:
        self._current: Identity = GUEST
        self._listeners: List[IdentityListener] = []

    @property
    def current(self) -> Identity:
        return self._current

    def subscribe(self, listener: IdentityListener) -> None:
        self._listeners.append(listener)

    async def _notify(self) -> None:
        for listener in self._listeners:
            await listener(self._current)

    async def load(self) -> Identity:
        """Restore the persisted identity; anything malformed is discarded."""
        try:
            saved = await local.get_json(IDENTITY_KEY)
        except LocalStorageError as e:
            _logger.warning(f"Discarding unreadable identity: {e}")
            saved = None
            await local.remove(IDENTITY_KEY)

        if saved is None:
            self._current = GUEST
        else:
            try:
                self._current = _coerce(saved)
            except InvalidIdentity:
                _logger.warning("Persisted identity has no id, discarding it")
                await local.remove(IDENTITY_KEY)
                self._current = GUEST

        await self._notify()
        return self._current

    async def login(self, identity: Union[Authenticated, Mapping[str, Any]]) -> Authenticated:
        """Replace the current identity. Raises InvalidIdentity without an id."""
        user = _coerce(identity)
        await local.set_json(IDENTITY_KEY, user.to_json())
        self._current = user
        _logger.info(f"Logged in as {user.display_name} ({user.id})")
        await self._notify()
        return user

    async def logout(self) -> None:
        await local.remove(IDENTITY_KEY)
        await local.remove(GUEST_CART_KEY)
        self._current = GUEST
        _logger.info("Logged out")
        await self._notify()

    def is_authenticated(self) -> bool:
        return not self._current.is_guest and bool(self._current.id)

    def has_role(self, role: str) -> bool:
        return self.is_authenticated() and self._current.role == role

    def require_role(self, role: str) -> Authenticated:
        """Return the current user, or raise PermissionDenied unless they hold role."""
        if not self.has_role(role):
            raise PermissionDenied(f"This action requires the {role} role")
        return self._current
