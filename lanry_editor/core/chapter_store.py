"""
Chapter persistence: one text file per chapter, fronted by an in-memory cache.

The chapters directory doubles as the index. Chapter ids and titles are encoded
into the filenames, and a directory scan recovers them on the next start.
"""
import logging
import re
import threading
from pathlib import Path
from typing import Dict, List, Optional

from lanry_editor.core.models import ChapterInfo, SaveResult
from lanry_editor.utils.paths import ensure_dir_exists

logger = logging.getLogger(__name__)

CHAPTER_FILE_RE = re.compile(r"^Chapter_([0-9]{3,})_(.*)\.txt$")
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_filename(name: str) -> str:
    """Replaces every character that is invalid in a filename with '_'."""
    return _INVALID_FILENAME_CHARS.sub("_", name)


def get_chapter_filename(chapter_id: int, title: str) -> str:
    """Generates the on-disk filename for a chapter, e.g. Chapter_007_The End.txt"""
    return f"Chapter_{chapter_id:03d}_{sanitize_filename(title)}.txt"


def parse_chapter_filename(filename: str) -> Optional[ChapterInfo]:
    """
    Recovers the chapter id and title from a chapter filename.
    Returns None for files that are not chapter files.

    Underscores come back as spaces, so a title that contained '_' or an
    invalid character is not reproduced exactly.
    """
    match = CHAPTER_FILE_RE.match(filename)
    if not match:
        return None
    chapter_id = int(match.group(1))
    if chapter_id <= 0:
        return None
    return ChapterInfo(id=chapter_id, title=match.group(2).replace("_", " "))


class ChapterStore:
    """Read-through, best-effort write-through storage of chapter text keyed by id."""

    def __init__(self, chapters_dir: Path):
        self.chapters_dir = Path(chapters_dir)
        self._contents: Dict[int, str] = {}
        self._lock = threading.RLock()
        self.last_save: Optional[SaveResult] = None
        try:
            ensure_dir_exists(self.chapters_dir)
        except OSError as e:
            logger.error(f"Could not create chapters directory {self.chapters_dir}: {e}")

    @property
    def last_save_failed(self) -> bool:
        return self.last_save is not None and not self.last_save.saved

    def chapter_path(self, chapter_id: int, title: str) -> Path:
        return self.chapters_dir / get_chapter_filename(chapter_id, title)

    def is_cached(self, chapter_id: int) -> bool:
        with self._lock:
            return chapter_id in self._contents

    def clear_cache(self) -> None:
        with self._lock:
            self._contents.clear()

    def save_content(self, chapter_id: int, title: str, content: str) -> SaveResult:
        """
        Stores the chapter text in memory, then tries to write it to disk.
        A failed write is logged and reported in the result, never raised.
        """
        with self._lock:
            self._contents[chapter_id] = content

            path = self.chapter_path(chapter_id, title)
            try:
                ensure_dir_exists(self.chapters_dir)
                path.write_text(content, encoding="utf-8")
                result = SaveResult(chapter_id=chapter_id, path=path, saved=True)
            except (OSError, ValueError) as e:
                # ValueError covers paths the OS rejects outright (embedded NUL etc.)
                logger.error(f"Error saving chapter file {path}: {e}")
                result = SaveResult(chapter_id=chapter_id, path=path, saved=False, error=str(e))

            self.last_save = result
            return result

    def load_content(self, chapter_id: int, title: str) -> str:
        """
        Returns the chapter text: from memory if present, else from disk (which
        then gets cached), else an empty string for a brand-new chapter.
        """
        with self._lock:
            if chapter_id in self._contents:
                return self._contents[chapter_id]

            path = self.chapter_path(chapter_id, title)
            try:
                if not path.exists():
                    # Discovered titles decode '_' to ' ', so their exact name can miss
                    path = self._find_chapter_file(chapter_id)
                if path is None:
                    return ""
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Error loading chapter file {path}: {e}")
                return ""

            self._contents[chapter_id] = content
            return content

    def list_existing_chapters(self) -> List[ChapterInfo]:
        """Scans the chapters directory and returns the chapters found there, by id."""
        found = []
        for path in self._chapter_files():
            info = parse_chapter_filename(path.name)
            if info is not None:
                found.append((info.id, path.name, info))
        found.sort(key=lambda item: (item[0], item[1]))
        return [info for _, _, info in found]

    def _chapter_files(self) -> List[Path]:
        try:
            return [p for p in self.chapters_dir.iterdir() if p.is_file()]
        except OSError as e:
            logger.error(f"Error scanning chapters directory {self.chapters_dir}: {e}")
            return []

    def _find_chapter_file(self, chapter_id: int) -> Optional[Path]:
        """Newest file on disk for this id, whatever title it was saved under."""
        candidates = []
        for path in self._chapter_files():
            info = parse_chapter_filename(path.name)
            if info is not None and info.id == chapter_id:
                candidates.append(path)
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.stat().st_mtime)
