"""
Session and identity provider
"""

import json
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from todoflow.api.auth_client import SupabaseAuthClient
from todoflow.config.constants import SESSION_GUEST_KEY, SESSION_TOKEN_KEY, SESSION_USER_KEY
from todoflow.models.identity import Identity, SessionMode
from todoflow.services.notifier import Notifier
from todoflow.utils.error_handler import RemoteError, StorageError, ValidationError
from todoflow.utils.local_storage import LocalStorage
from todoflow.utils.logger import logger

ModeListener = Callable[[Optional[SessionMode]], Awaitable[None]]


class SessionContext:
    """
    Current session mode and identity

    Passed explicitly to the task service. Every transition (login, register,
    logout, guest skip, restore) is persisted in local storage and announced
    to subscribers, which are awaited in subscription order.
    """

    def __init__(
        self,
        storage: LocalStorage,
        auth_client: SupabaseAuthClient,
        notifier: Optional[Notifier] = None,
    ):
        self.storage = storage
        self.auth_client = auth_client
        self.notifier = notifier or Notifier()
        self.logger = logger
        self._mode: Optional[SessionMode] = None
        self._identity: Optional[Identity] = None
        self._token: Optional[str] = None
        self._listeners: List[ModeListener] = []

    def current_mode(self) -> Optional[SessionMode]:
        """Guest, authenticated, or None when signed out"""
        return self._mode

    def current_identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def access_token(self) -> Optional[str]:
        return self._token

    @property
    def is_guest(self) -> bool:
        return self._mode == SessionMode.GUEST

    def subscribe(self, listener: ModeListener):
        """Register an async callback for mode transitions"""
        self._listeners.append(listener)

    async def _transition(
        self,
        mode: Optional[SessionMode],
        identity: Optional[Identity] = None,
        token: Optional[str] = None,
    ):
        self._mode = mode
        self._identity = identity
        self._token = token
        self.logger.info(f"Session mode: {mode.value if mode else 'signed out'}")
        for listener in self._listeners:
            await listener(mode)

    def _forget_credentials(self):
        self.storage.remove_item(SESSION_TOKEN_KEY)
        self.storage.remove_item(SESSION_USER_KEY)

    def _store_credentials(self, token: str, identity: Identity):
        self.storage.set_item(SESSION_TOKEN_KEY, token)
        self.storage.set_item(SESSION_USER_KEY, identity.model_dump_json())
        self.storage.remove_item(SESSION_GUEST_KEY)

    async def restore(self) -> Optional[SessionMode]:
        """
        Resume the persisted session

        A stored token that no longer verifies is discarded and the session
        starts signed out.

        Returns:
            Restored mode
        """
        try:
            guest_flag = self.storage.get_item(SESSION_GUEST_KEY)
            token = self.storage.get_item(SESSION_TOKEN_KEY)
            stored_user = self.storage.get_item(SESSION_USER_KEY)
        except StorageError as e:
            self.logger.warning(f"Failed to read stored session: {e}")
            guest_flag = token = stored_user = None

        if guest_flag == "true":
            await self._transition(SessionMode.GUEST)
            return self._mode

        if token and stored_user:
            try:
                Identity.model_validate(json.loads(stored_user))
                identity = await self.auth_client.get_user(token)
            except (RemoteError, ValueError, PydanticValidationError) as e:
                self.logger.warning(f"Stored session is no longer valid: {e}")
                self._forget_credentials()
            else:
                await self._transition(SessionMode.AUTHENTICATED, identity, token)
                return self._mode

        await self._transition(None)
        return None

    async def login(self, email: str, password: str) -> Identity:
        """Sign in and switch to authenticated mode"""
        try:
            token, identity = await self.auth_client.sign_in_with_password(email, password)
            self._store_credentials(token, identity)
        except Exception as e:
            self.notifier.error("Login failed", e)
            raise
        await self._transition(SessionMode.AUTHENTICATED, identity, token)
        self.notifier.success("Welcome back!")
        return identity

    async def register(self, email: str, password: str, name: str) -> Identity:
        """Create an account and switch to authenticated mode"""
        try:
            token, identity = await self.auth_client.sign_up(email, password, name)
            self._store_credentials(token, identity)
        except Exception as e:
            self.notifier.error("Registration failed", e)
            raise
        await self._transition(SessionMode.AUTHENTICATED, identity, token)
        self.notifier.success("Account created successfully!")
        return identity

    def update_identity(self, **changes: Any) -> Optional[Identity]:
        """
        Merge profile changes into the signed-in identity and persist them

        Does nothing outside authenticated mode. The id cannot change.

        Raises:
            ValidationError: Unknown field or malformed value
        """
        if self._identity is None:
            self.logger.debug("No signed-in user, identity update ignored")
            return None

        unknown = sorted(set(changes) - set(Identity.model_fields))
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(unknown)}")

        try:
            identity = Identity.model_validate({**self._identity.model_dump(), **changes, "id": self._identity.id})
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid profile update: {e}") from e

        self.storage.set_item(SESSION_USER_KEY, identity.model_dump_json())
        self._identity = identity
        self.logger.info(f"Profile updated: {', '.join(changes) or 'no fields'}")
        return identity

    async def logout(self):
        """Forget credentials and the guest flag"""
        self._forget_credentials()
        self.storage.remove_item(SESSION_GUEST_KEY)
        await self._transition(None)
        self.notifier.success("Logged out successfully")

    async def skip_auth(self):
        """Continue as a guest with local storage"""
        self._forget_credentials()
        self.storage.set_item(SESSION_GUEST_KEY, "true")
        await self._transition(SessionMode.GUEST)
        self.notifier.success("Welcome! You're using TodoFlow as a guest")
