"""OAuth credentials for publishing.

The token document is created once by ``reelcut login`` and refreshed in
place afterwards. Missing or unrefreshable credentials only disable uploads.
"""

from __future__ import annotations

import json
from pathlib import Path

from reelcut.errors import CredentialError
from reelcut.logging import get_logger
from reelcut.storage import StorageError, atomic_write

logger = get_logger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/youtube.upload",
    "https://www.googleapis.com/auth/youtube.readonly",
]


class CredentialStore:
    """Loads, refreshes and saves the OAuth token document."""

    def __init__(self, token_path: Path | str = Path("youtube-token.json"), scopes: list[str] | None = None):
        self.token_path = Path(token_path)
        self.scopes = scopes or list(SCOPES)

    def exists(self) -> bool:
        return self.token_path.exists()

    def load(self):
        """Load stored credentials.

        Returns:
            google.oauth2.credentials.Credentials, or None when no token is stored

        Raises:
            CredentialError: If the token document is unreadable
        """
        from google.oauth2.credentials import Credentials

        if not self.token_path.exists():
            return None
        try:
            return Credentials.from_authorized_user_file(str(self.token_path), self.scopes)
        except (ValueError, json.JSONDecodeError, OSError) as e:
            raise CredentialError(
                f"Invalid token document: {e}", context={"path": str(self.token_path)}
            ) from e

    def save(self, credentials) -> Path:
        """Persist credentials atomically.

        Raises:
            CredentialError: If the token cannot be written
        """
        try:
            atomic_write(self.token_path, credentials.to_json())
        except StorageError as e:
            raise CredentialError(str(e), context={"path": str(self.token_path)}) from e
        return self.token_path

    @staticmethod
    def is_expired(credentials) -> bool:
        """True when the access token can no longer be used as is."""
        return bool(credentials.expired) or not credentials.valid

    def get_valid(self):
        """Return usable credentials, refreshing and saving them if needed.

        Raises:
            CredentialError: If there is no token or it cannot be refreshed
        """
        from google.auth.exceptions import GoogleAuthError
        from google.auth.transport.requests import Request

        credentials = self.load()
        if credentials is None:
            raise CredentialError(
                "Not logged in. Run 'reelcut login' first.",
                context={"path": str(self.token_path)},
            )

        if not self.is_expired(credentials):
            return credentials

        if not credentials.refresh_token:
            raise CredentialError("Token expired and has no refresh token. Run 'reelcut login' again.")

        try:
            credentials.refresh(Request())
        except GoogleAuthError as e:
            raise CredentialError(f"Token refresh failed: {e}") from e

        self.save(credentials)
        logger.info("Refreshed publishing token")
        return credentials


def login(
    client_secrets_path: Path | str,
    store: CredentialStore,
    open_browser: bool = True,
):
    """Run the interactive OAuth consent flow and store the token.

    Args:
        client_secrets_path: OAuth client secrets (``credentials.json``)
        store: Where to save the resulting token
        open_browser: Open the consent page automatically

    Returns:
        The new credentials

    Raises:
        CredentialError: If the client secrets are missing or invalid
    """
    from google_auth_oauthlib.flow import InstalledAppFlow

    client_secrets_path = Path(client_secrets_path)
    if not client_secrets_path.exists():
        raise CredentialError(
            "Client secrets file not found. Download it from the Google Cloud console.",
            context={"path": str(client_secrets_path)},
        )

    try:
        flow = InstalledAppFlow.from_client_secrets_file(str(client_secrets_path), store.scopes)
    except ValueError as e:
        raise CredentialError(f"Invalid client secrets: {e}") from e

    credentials = flow.run_local_server(port=0, open_browser=open_browser)
    store.save(credentials)
    return credentials
