"""GitHub App credentials: the app JWT, installation tokens and the bot login."""

import logging
import time
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any

import httpx
import jwt

from approvebot.config.settings import settings

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

# GitHub rejects app JWTs valid for longer than ten minutes
JWT_LIFETIME_SECONDS = 10 * 60
CLOCK_DRIFT_SECONDS = 60
TOKEN_REFRESH_MARGIN = timedelta(minutes=5)


def load_private_key() -> str:
    """Read the App private key from APP_PRIVATE_KEY_PATH or APP_PRIVATE_KEY.

    Raises:
        ValueError: If no key is configured, the file is missing, or the
            inline key lost its BEGIN/END lines
    """
    if settings.github_app_private_key_path:
        key_path = Path(settings.github_app_private_key_path)
        if not key_path.exists():
            raise ValueError(f"Private key file not found: {key_path}")
        return key_path.read_text()

    key = (settings.github_app_private_key or "").strip()
    if not key:
        raise ValueError(
            "GitHub App private key not configured. "
            "Set APP_PRIVATE_KEY or APP_PRIVATE_KEY_PATH"
        )

    lines = key.splitlines()
    if len(lines) < 3 or not (
        lines[0].startswith("-----BEGIN") and lines[-1].endswith("-----")
    ):
        raise ValueError(
            "APP_PRIVATE_KEY appears incomplete. "
            "It must contain the BEGIN and END lines around the key body."
        )
    return key


class GitHubAppAuth:
    """Authenticate as the GitHub App and as its installation.

    Installation tokens are cached until shortly before they expire. The
    bot login is derived from the App's slug once, since installation
    tokens cannot read ``GET /user``.
    """

    def __init__(self) -> None:
        self.app_id = settings.github_app_id
        self.installation_id = settings.github_app_installation_id
        self.private_key = load_private_key()

        self._installation_token: str | None = None
        self._token_expires_at: datetime | None = None
        self._bot_login: str | None = None

    def generate_jwt(self) -> str:
        """Sign a short-lived RS256 JWT identifying the App itself.

        Raises:
            ValueError: If APP_ID is not configured
        """
        if not self.app_id:
            raise ValueError("GitHub App ID not configured")

        issued_at = int(time.time()) - CLOCK_DRIFT_SECONDS
        claims = {
            "iat": issued_at,
            "exp": issued_at + JWT_LIFETIME_SECONDS,
            "iss": self.app_id,
        }
        return jwt.encode(claims, self.private_key, algorithm="RS256")

    async def _app_request(self, method: str, path: str) -> dict[str, Any]:
        """Call an App-level endpoint authenticated with the JWT."""
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.generate_jwt()}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        async with httpx.AsyncClient(base_url=GITHUB_API_URL) as client:
            response = await client.request(method, path, headers=headers)
            response.raise_for_status()
            return response.json()

    def _is_token_valid(self) -> bool:
        if not self._installation_token or not self._token_expires_at:
            return False
        return datetime.now(timezone.utc) < self._token_expires_at - TOKEN_REFRESH_MARGIN

    async def get_installation_access_token(self, force_refresh: bool = False) -> str:
        """Return an installation token, requesting a new one when needed.

        Raises:
            ValueError: If APP_INSTALLATION_ID is not configured
            httpx.HTTPError: If GitHub refuses the token request
        """
        if not self.installation_id:
            raise ValueError("GitHub App installation ID not configured")

        if force_refresh or not self._is_token_valid():
            data = await self._app_request(
                "POST", f"/app/installations/{self.installation_id}/access_tokens"
            )
            self._installation_token = data["token"]
            self._token_expires_at = datetime.fromisoformat(
                data["expires_at"].replace("Z", "+00:00")
            )
            logger.debug(f"Obtained installation token expiring at {self._token_expires_at}")

        return self._installation_token  # type: ignore[return-value]

    async def get_bot_login(self) -> str:
        """Return the login the App comments as, ``<slug>[bot]``."""
        if self._bot_login is None:
            data = await self._app_request("GET", "/app")
            self._bot_login = f"{data['slug']}[bot]"
            logger.info(f"Resolved GitHub App bot login: {self._bot_login}")
        return self._bot_login


@lru_cache(maxsize=1)
def get_github_app_auth() -> GitHubAppAuth:
    """Return the process-wide GitHub App auth (created on first use)."""
    return GitHubAppAuth()
