"""YouTube publishing."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from reelcut.errors import PublishError
from reelcut.logging import get_logger
from reelcut.models.metadata import VideoMetadata

logger = get_logger(__name__)

DEFAULT_PRIVACY = "unlisted"
# "People & Blogs"
DEFAULT_CATEGORY_ID = "22"


def build_upload_body(
    metadata: VideoMetadata,
    title_suffix: str = "",
    privacy: str = DEFAULT_PRIVACY,
    category_id: str = DEFAULT_CATEGORY_ID,
) -> dict[str, Any]:
    """Request body for ``videos.insert``."""
    return {
        "snippet": {
            "title": f"{metadata.title}{title_suffix}"[:100],
            "description": metadata.publish_description(),
            "tags": metadata.tags,
            "categoryId": category_id,
        },
        "status": {"privacyStatus": privacy},
    }


class YouTubePublisher:
    """Uploads rendered clips with the YouTube Data API."""

    def __init__(self, credentials=None, service=None, privacy: str = DEFAULT_PRIVACY):
        """Initialize the publisher.

        Args:
            credentials: OAuth credentials with the upload scope
            service: Optional pre-built API resource (used by tests)
            privacy: Privacy status for uploaded videos
        """
        if service is None:
            from googleapiclient.discovery import build

            service = build("youtube", "v3", credentials=credentials, cache_discovery=False)
        self.service = service
        self.privacy = privacy

    def upload(self, video_path: Path, metadata: VideoMetadata, title_suffix: str = "") -> str:
        """Upload one video.

        Returns:
            The new video id

        Raises:
            PublishError: If the file is missing or the API rejects the upload
        """
        import httplib2
        from google.auth.exceptions import GoogleAuthError
        from googleapiclient.errors import HttpError
        from googleapiclient.http import MediaFileUpload

        video_path = Path(video_path)
        context = {"path": str(video_path)}
        if not video_path.exists():
            raise PublishError("Video file not found", context=context)

        body = build_upload_body(metadata, title_suffix, self.privacy)
        media = MediaFileUpload(str(video_path), mimetype="video/mp4", chunksize=-1, resumable=True)

        try:
            request = self.service.videos().insert(part="snippet,status", body=body, media_body=media)
            response = None
            while response is None:
                _, response = request.next_chunk()
        except HttpError as e:
            raise PublishError(f"Upload rejected: {e}", context=context) from e
        except GoogleAuthError as e:
            raise PublishError(f"Upload not authorized: {e}", context=context) from e
        except (httplib2.HttpLib2Error, OSError) as e:
            raise PublishError(f"Upload failed: {e}", context=context) from e

        video_id = response.get("id", "")
        logger.info(f"Uploaded video {video_id}", extra=context)
        return video_id
