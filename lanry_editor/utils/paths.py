import os
from pathlib import Path

def get_project_root() -> Path:
    """Returns the root directory of the project (where .env lives)."""
    # This file is in lanry_editor/utils/paths.py
    # Root is 3 levels up
    return Path(__file__).resolve().parent.parent.parent

def get_default_chapters_dir() -> Path:
    """Returns the directory chapter files are written to when nothing else is configured."""
    return get_project_root() / "Chapters"

def resolve_dir(value: str) -> Path:
    """Expands ~ and makes relative paths relative to the project root."""
    path = Path(os.path.expanduser(value))
    if not path.is_absolute():
        path = get_project_root() / path
    return path

def ensure_dir_exists(path: Path) -> None:
    """Ensures that a directory exists."""
    if not path.exists():
        path.mkdir(parents=True, exist_ok=True)
