"""Client for the Lanry web service (Supabase auth + chapter upload API)."""
import json
import logging
from dataclasses import dataclass
from typing import Literal, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field

from lanry_editor.core.models import DEFAULT_AGE_RATING
from lanry_editor.utils.config import Settings

logger = logging.getLogger(__name__)

REGISTER_URL = "https://lanry.space/auth"

AgeRating = Literal["EVERYONE", "TEEN", "MATURE", "ADULT"]


class LanryAPIError(Exception):
    """Base error for anything that goes wrong talking to the web service."""


class LoginError(LanryAPIError):
    pass


class NotAuthenticatedError(LanryAPIError):
    pass


class UploadError(LanryAPIError):
    pass


class ChapterUploadRequest(BaseModel):
    """Body of POST /api/novels/{novel_id}/chapters."""
    model_config = ConfigDict(populate_by_name=True)

    chapter_number: int = Field(alias="chapterNumber")
    title: Optional[str] = None
    content: str = ""
    publish_at: Optional[str] = Field(default=None, alias="publishAt")  # ISO timestamp
    age_rating: AgeRating = Field(default=DEFAULT_AGE_RATING, alias="ageRating")
    author_thoughts: Optional[str] = Field(default=None, alias="authorThoughts")
    volume_id: Optional[str] = Field(default=None, alias="volumeId")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


@dataclass
class AuthSession:
    """
    Result of a successful login. Lives as long as the user stays logged in;
    clear() is the logout.
    """
    access_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: int = 0
    refresh_token: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def authorization_header(self) -> dict:
        if not self.access_token:
            raise NotAuthenticatedError("Not authenticated. Please log in first.")
        return {"Authorization": f"Bearer {self.access_token}"}

    def clear(self) -> None:
        self.access_token = None
        self.token_type = None
        self.expires_in = 0
        self.refresh_token = None
        self.email = None


class LanryClient:
    """Thin wrapper around requests for the two calls the editor makes."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.base_url = settings.supabase_url.rstrip("/")
        self.api_key = settings.supabase_key
        self.timeout = settings.request_timeout
        self._session = session or requests.Session()

    def _require_base_url(self, error_cls) -> None:
        if not self.base_url:
            raise error_cls("SUPABASE_URL is not configured.")

    def login(self, email: str, password: str) -> AuthSession:
        """Exchanges email/password for an access token."""
        email = (email or "").strip()
        if not email or not password:
            raise LoginError("Please enter both email and password.")
        self._require_base_url(LoginError)

        url = f"{self.base_url}/auth/v1/token"
        try:
            resp = self._session.post(
                url,
                params={"grant_type": "password"},
                json={"email": email, "password": password},
                headers={"apikey": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise LoginError(f"Failed to contact {self.base_url}: {exc}") from exc

        if not resp.ok:
            raise LoginError(f"Login failed: {resp.status_code} - {resp.text}")

        try:
            payload = resp.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise LoginError("Login response was not valid JSON") from exc

        access_token = payload.get("access_token")
        if not access_token:
            raise LoginError("Login response did not contain an access token")

        logger.info(f"Logged in as {email}")
        return AuthSession(
            access_token=access_token,
            token_type=payload.get("token_type"),
            expires_in=int(payload.get("expires_in") or 0),
            refresh_token=payload.get("refresh_token"),
            email=email,
        )

    def upload_chapter(self, novel_id: str, chapter: ChapterUploadRequest, auth: AuthSession) -> dict:
        """Publishes a chapter. Any non-2xx answer or transport failure raises UploadError."""
        headers = auth.authorization_header()
        self._require_base_url(UploadError)
        novel_id = (novel_id or "").strip()
        if not novel_id:
            raise UploadError("A novel ID is required.")

        url = f"{self.base_url}/api/novels/{novel_id}/chapters"
        try:
            resp = self._session.post(
                url,
                json=chapter.to_payload(),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise UploadError(f"Failed to contact {self.base_url}: {exc}") from exc

        if not resp.ok:
            raise UploadError(f"Upload failed: {resp.status_code} - {resp.text}")

        logger.info(f"Uploaded chapter {chapter.chapter_number} to novel {novel_id}")
        try:
            return resp.json()
        except (json.JSONDecodeError, ValueError):
            return {}
