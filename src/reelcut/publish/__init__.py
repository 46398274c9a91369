"""Publishing of rendered clips."""

from reelcut.publish.auth import SCOPES, CredentialStore, login
from reelcut.publish.youtube import YouTubePublisher, build_upload_body

__all__ = [
    "SCOPES",
    "CredentialStore",
    "login",
    "YouTubePublisher",
    "build_upload_body",
]
