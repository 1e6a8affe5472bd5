from dataclasses import dataclass
from pathlib import Path
from typing import Optional

AGE_RATINGS = ("EVERYONE", "TEEN", "MATURE", "ADULT")
DEFAULT_AGE_RATING = "EVERYONE"

@dataclass(frozen=True)
class ChapterInfo:
    """Identifies a chapter: a unique number plus a free-form title."""
    id: int
    title: str = ""

    @property
    def display_name(self) -> str:
        return f"Chapter {self.id}: {self.title}"

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title}

@dataclass
class SaveResult:
    """
    Outcome of writing one chapter.
    The in-memory copy is always updated; `saved` only reports the disk write.
    """
    chapter_id: int
    path: Optional[Path]
    saved: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "chapter_id": self.chapter_id,
            "path": str(self.path) if self.path else None,
            "saved": self.saved,
            "error": self.error,
        }
