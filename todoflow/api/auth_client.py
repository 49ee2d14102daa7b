"""
Token exchange against the hosted auth service
"""

from typing import Any, Dict, Optional, Tuple

import httpx

from todoflow.api.base_client import BaseAPIClient
from todoflow.config.constants import REMOTE_AUTH_PATH
from todoflow.config.settings import settings
from todoflow.models.identity import Identity
from todoflow.utils.error_handler import RemoteError


def _identity_from_user(user: Dict[str, Any]) -> Identity:
    metadata = user.get("user_metadata") or {}
    return Identity(
        id=str(user["id"]),
        email=user.get("email"),
        name=metadata.get("name"),
    )


class SupabaseAuthClient(BaseAPIClient):
    """Client for the GoTrue auth endpoints"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize auth client

        Args:
            base_url: Service URL (defaults to SUPABASE_URL)
            api_key: Public API key (defaults to SUPABASE_ANON_KEY)
            transport: Custom httpx transport (optional)
        """
        super().__init__(
            (base_url or settings.SUPABASE_URL) + REMOTE_AUTH_PATH,
            timeout=settings.REQUEST_TIMEOUT,
            transport=transport,
        )
        self.api_key = api_key if api_key is not None else settings.SUPABASE_ANON_KEY

    def _get_headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Content-Type": "application/json",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _session_from_response(self, response: Any) -> Tuple[str, Identity]:
        if not isinstance(response, dict) or not response.get("access_token"):
            raise RemoteError("Auth service returned no session")
        user = response.get("user")
        if not isinstance(user, dict) or "id" not in user:
            raise RemoteError("Auth service returned no user")
        return response["access_token"], _identity_from_user(user)

    async def sign_in_with_password(self, email: str, password: str) -> Tuple[str, Identity]:
        """
        Exchange credentials for an access token

        Returns:
            (access token, identity)
        """
        response = await self.post(
            "/token",
            headers=self._get_headers(),
            params={"grant_type": "password"},
            json_data={"email": email, "password": password},
        )
        token, identity = self._session_from_response(response)
        self.logger.info(f"Signed in as {identity.email}")
        return token, identity

    async def sign_up(self, email: str, password: str, name: str) -> Tuple[str, Identity]:
        """
        Register a user

        Projects with email confirmation enabled return no session; that is
        reported as a RemoteError.

        Returns:
            (access token, identity)
        """
        response = await self.post(
            "/signup",
            headers=self._get_headers(),
            json_data={"email": email, "password": password, "data": {"name": name}},
        )
        token, identity = self._session_from_response(response)
        self.logger.info(f"Registered {identity.email}")
        return token, identity

    async def get_user(self, access_token: str) -> Identity:
        """
        Verify a token and return its user

        Raises:
            RemoteError: Token rejected or service unavailable
        """
        user = await self.get("/user", headers=self._get_headers(access_token))
        if not isinstance(user, dict) or "id" not in user:
            raise RemoteError("Auth service returned no user")
        return _identity_from_user(user)
