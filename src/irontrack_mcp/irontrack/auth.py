"""IronTrack authentication via Supabase GoTrue."""

import os
from datetime import datetime, timedelta, timezone

import httpx

from irontrack_mcp.irontrack.exceptions import (
    AuthenticationError, ConfigurationError, TokenExpiredError,
)


class SupabaseAuth:
    """Supabase password-grant authentication handler."""

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = (url or os.environ.get("SUPABASE_URL", "")).rstrip("/")
        self.anon_key = anon_key or os.environ.get("SUPABASE_ANON_KEY", "")
        self._transport = transport
        self.access_token: str | None = None
        self.refresh_token: str | None = None
        self.user_id: str | None = None
        self.email: str | None = None
        self.token_expiry: datetime | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None and self.user_id is not None

    @property
    def is_token_expired(self) -> bool:
        if not self.token_expiry:
            return True
        return datetime.now(timezone.utc) >= (self.token_expiry - timedelta(minutes=5))

    def _require_config(self) -> None:
        if not self.is_configured:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_ANON_KEY environment variables must be set."
            )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=30, transport=self._transport)

    async def login(self, email: str, password: str) -> None:
        self._require_config()
        async with self._client() as client:
            response = await client.post(
                f"{self.url}/auth/v1/token",
                params={"grant_type": "password"},
                headers={"apikey": self.anon_key},
                json={"email": email, "password": password},
            )

            if response.status_code != 200:
                error_data = response.json()
                error_message = (
                    error_data.get("error_description")
                    or error_data.get("msg")
                    or "Authentication failed"
                )
                raise AuthenticationError(f"Login failed: {error_message}")

            self._update_tokens(response.json())

    async def sign_up(self, email: str, password: str) -> bool:
        """Create an account. Returns True when the backend also signed the user in.

        Projects that require email confirmation return no session until the
        address is confirmed.
        """
        self._require_config()
        async with self._client() as client:
            response = await client.post(
                f"{self.url}/auth/v1/signup",
                headers={"apikey": self.anon_key},
                json={"email": email, "password": password},
            )

            if response.status_code != 200:
                error_data = response.json()
                error_message = (
                    error_data.get("error_description")
                    or error_data.get("msg")
                    or "Sign-up failed"
                )
                raise AuthenticationError(f"Sign-up failed: {error_message}")

            data = response.json()
            if not data.get("access_token"):
                return False
            self._update_tokens(data)
            return True

    async def refresh(self) -> None:
        if not self.refresh_token:
            raise AuthenticationError("No refresh token available")
        self._require_config()

        async with self._client() as client:
            response = await client.post(
                f"{self.url}/auth/v1/token",
                params={"grant_type": "refresh_token"},
                headers={"apikey": self.anon_key},
                json={"refresh_token": self.refresh_token},
            )

            if response.status_code != 200:
                raise TokenExpiredError("Failed to refresh token")

            self._update_tokens(response.json())

    async def logout(self) -> None:
        try:
            if self.access_token and self.is_configured:
                async with self._client() as client:
                    await client.post(
                        f"{self.url}/auth/v1/logout",
                        headers=self.get_auth_header(),
                    )
        finally:
            self.access_token = None
            self.refresh_token = None
            self.user_id = None
            self.email = None
            self.token_expiry = None

    def _update_tokens(self, data: dict) -> None:
        self.access_token = data["access_token"]
        self.refresh_token = data["refresh_token"]
        user = data.get("user") or {}
        if user.get("id"):
            self.user_id = user["id"]
            self.email = user.get("email")
        expires_in = int(data.get("expires_in", 3600))
        self.token_expiry = datetime.now(timezone.utc) + timedelta(seconds=expires_in)

    def get_auth_header(self) -> dict[str, str]:
        if not self.access_token:
            raise AuthenticationError("Not authenticated")
        return {"apikey": self.anon_key, "Authorization": f"Bearer {self.access_token}"}

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "user_id": self.user_id,
            "email": self.email,
            "token_expiry": self.token_expiry.isoformat() if self.token_expiry else None,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict,
        url: str | None = None,
        anon_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "SupabaseAuth":
        auth = cls(url=url, anon_key=anon_key, transport=transport)
        auth.access_token = data.get("access_token")
        auth.refresh_token = data.get("refresh_token")
        auth.user_id = data.get("user_id")
        auth.email = data.get("email")
        if data.get("token_expiry"):
            auth.token_expiry = datetime.fromisoformat(data["token_expiry"])
        return auth
