"""The editing surface: which chapter is open, its text, and autosave."""
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from lanry_editor.core.chapter_store import ChapterStore
from lanry_editor.core.models import DEFAULT_AGE_RATING, ChapterInfo, SaveResult
from lanry_editor.core.navigation import ChapterNavigator
from lanry_editor.integrations.lanry_api import (
    AuthSession,
    ChapterUploadRequest,
    LanryAPIError,
    LanryClient,
)

logger = logging.getLogger(__name__)

UNTITLED = "Untitled Document"


@dataclass
class UploadOutcome:
    ok: bool
    message: str


class EditorSession:
    """
    Binds the chapter store to one open document.

    Every text change is written back through the store, and the open chapter
    is always flushed before another one is loaded.
    """

    def __init__(self, store: ChapterStore, navigator: Optional[ChapterNavigator] = None):
        self.store = store
        self.navigator = navigator
        self.current: Optional[ChapterInfo] = None
        self.text = ""
        if navigator is not None:
            navigator.on_selected(self.select_chapter)

    @property
    def document_title(self) -> str:
        return self.current.display_name if self.current else UNTITLED

    def flush(self) -> Optional[SaveResult]:
        """Writes the open chapter's text through the store, if a chapter is open."""
        if self.current is None:
            return None
        return self.store.save_content(self.current.id, self.current.title, self.text)

    def select_chapter(self, info: ChapterInfo, current_text: Optional[str] = None) -> str:
        """Saves the open chapter (with current_text if given), then opens `info`."""
        if current_text is not None:
            self.text = current_text
        self.flush()

        self.current = info
        self.text = self.store.load_content(info.id, info.title)
        return self.text

    def update_text(self, text: str) -> Optional[SaveResult]:
        """Content-changed notification from the editing surface."""
        self.text = text
        return self.flush()

    def new_chapter(self, chapter_id: int, title: str) -> ChapterInfo:
        """
        Add-chapter flow: flush the open chapter, register the new one and
        start it empty. Raises DuplicateChapterError if the number is taken.
        """
        title = (title or "").strip()
        self.flush()
        if self.navigator is not None:
            info = self.navigator.add_chapter(chapter_id, title)
        else:
            info = ChapterInfo(id=chapter_id, title=title)
        self.current = info
        self.text = ""
        return info

    def close(self) -> Optional[SaveResult]:
        """Application shutdown."""
        result = self.flush()
        if result is not None:
            logger.info(f"Saved chapter {result.chapter_id} on close")
        return result

    def build_upload_request(
        self,
        chapter_number: Optional[int] = None,
        title: Optional[str] = None,
        publish_at: Optional[str] = None,
        age_rating: str = DEFAULT_AGE_RATING,
        author_thoughts: Optional[str] = None,
        volume_id: Optional[str] = None,
    ) -> ChapterUploadRequest:
        if chapter_number is None:
            if self.current is None:
                raise ValueError("No chapter is open.")
            chapter_number = self.current.id
        if title is None and self.current is not None:
            title = self.current.title
        return ChapterUploadRequest(
            chapter_number=chapter_number,
            title=title.strip() if title is not None else None,
            content=self.text.strip(),
            publish_at=publish_at or None,
            age_rating=age_rating or DEFAULT_AGE_RATING,
            author_thoughts=author_thoughts or None,
            volume_id=volume_id or None,
        )

    def upload_current(
        self,
        client: LanryClient,
        auth: AuthSession,
        novel_id: str,
        **fields,
    ) -> UploadOutcome:
        """
        Uploads the open chapter. Every failure ends up as a single message for
        the user; nothing is retried.
        """
        if not auth.is_authenticated:
            return UploadOutcome(ok=False, message="Not authenticated. Please log in first.")
        try:
            request = self.build_upload_request(**fields)
        except ValidationError as e:
            return UploadOutcome(ok=False, message=f"Error uploading chapter: {e.errors()[0]['msg']}")
        except ValueError as e:
            return UploadOutcome(ok=False, message=f"Error uploading chapter: {e}")

        try:
            client.upload_chapter(novel_id, request, auth)
        except LanryAPIError as e:
            logger.error(f"Upload of chapter {request.chapter_number} failed: {e}")
            return UploadOutcome(ok=False, message=f"Error uploading chapter: {e}")

        return UploadOutcome(ok=True, message="Chapter uploaded successfully!")
