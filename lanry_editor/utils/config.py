"""Runtime configuration, read from the process environment and a local .env file."""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from lanry_editor.utils.paths import get_default_chapters_dir, get_project_root, resolve_dir

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8123


@dataclass
class Settings:
    """Everything the editor needs to know about its environment."""
    supabase_url: str = ""
    supabase_key: str = ""
    chapters_dir: Path = field(default_factory=get_default_chapters_dir)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @property
    def has_remote(self) -> bool:
        return bool(self.supabase_url)


def _read_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid value for {key}: {raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"{key} must be positive, using {default}")
        return default
    return value


def _read_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid value for {key}: {raw!r}, using {default}")
        return default


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """
    Load settings from the environment.

    The .env file at the project root (or env_path) is loaded first; values
    already present in the process environment are not overridden.
    """
    if env_path is None:
        env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    else:
        logger.debug(f"No .env file at {env_path}")

    chapters_dir_value = os.getenv("LANRY_CHAPTERS_DIR", "").strip()
    chapters_dir = resolve_dir(chapters_dir_value) if chapters_dir_value else get_default_chapters_dir()

    settings = Settings(
        supabase_url=os.getenv("SUPABASE_URL", "").strip().rstrip("/"),
        supabase_key=os.getenv("SUPABASE_KEY", "").strip(),
        chapters_dir=chapters_dir,
        request_timeout=_read_float("LANRY_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
        host=os.getenv("LANRY_HOST", DEFAULT_HOST).strip() or DEFAULT_HOST,
        port=_read_int("LANRY_PORT", DEFAULT_PORT),
    )
    if not settings.has_remote:
        logger.info("SUPABASE_URL is not set; chapter upload will be unavailable")
    return settings
