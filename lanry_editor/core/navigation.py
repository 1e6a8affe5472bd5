"""Chapter list shown in the navigation pane."""
import bisect
import logging
from typing import Callable, Dict, Iterable, List, Optional

from lanry_editor.core.models import ChapterInfo

logger = logging.getLogger(__name__)

SelectedCallback = Callable[[ChapterInfo], None]
AddRequestedCallback = Callable[[], None]


class DuplicateChapterError(ValueError):
    """Raised when a chapter number is already in the list."""

    def __init__(self, chapter_id: int):
        self.chapter_id = chapter_id
        super().__init__(f"Chapter {chapter_id} already exists.")


class ChapterNavigator:
    """
    Keeps the chapters sorted by number and tells subscribers when one is
    selected or when the user asks for a new one.
    """

    def __init__(self, chapters: Optional[Iterable[ChapterInfo]] = None):
        self._ids: List[int] = []
        self._chapters: Dict[int, ChapterInfo] = {}
        self._selected_callbacks: List[SelectedCallback] = []
        self._add_requested_callbacks: List[AddRequestedCallback] = []
        if chapters:
            self.populate(chapters)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, chapter_id: object) -> bool:
        return chapter_id in self._chapters

    @property
    def chapters(self) -> List[ChapterInfo]:
        return [self._chapters[i] for i in self._ids]

    def get(self, chapter_id: int) -> Optional[ChapterInfo]:
        return self._chapters.get(chapter_id)

    def populate(self, chapters: Iterable[ChapterInfo]) -> None:
        """Fills the list, e.g. from ChapterStore.list_existing_chapters()."""
        for info in chapters:
            try:
                self.add_chapter(info.id, info.title)
            except DuplicateChapterError:
                logger.warning(f"Skipping duplicate chapter {info.id} ({info.title!r})")

    def add_chapter(self, chapter_id: int, title: str) -> ChapterInfo:
        if chapter_id <= 0:
            raise ValueError("Chapter number must be a positive integer.")
        if chapter_id in self._chapters:
            raise DuplicateChapterError(chapter_id)

        info = ChapterInfo(id=chapter_id, title=title)
        bisect.insort(self._ids, chapter_id)
        self._chapters[chapter_id] = info
        return info

    # Events

    def on_selected(self, callback: SelectedCallback) -> None:
        self._selected_callbacks.append(callback)

    def on_add_requested(self, callback: AddRequestedCallback) -> None:
        self._add_requested_callbacks.append(callback)

    def select(self, chapter_id: int) -> ChapterInfo:
        info = self._chapters.get(chapter_id)
        if info is None:
            raise KeyError(chapter_id)
        for callback in self._selected_callbacks:
            callback(info)
        return info

    def request_add(self) -> None:
        for callback in self._add_requested_callbacks:
            callback()
