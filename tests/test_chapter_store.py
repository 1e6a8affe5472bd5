from __future__ import annotations

import os
from pathlib import Path

import pytest

from lanry_editor.core.chapter_store import (
    ChapterStore,
    get_chapter_filename,
    parse_chapter_filename,
    sanitize_filename,
)
from lanry_editor.core.models import ChapterInfo


def test_chapter_filename_pads_id_to_three_digits() -> None:
    assert get_chapter_filename(7, "Intro") == "Chapter_007_Intro.txt"
    assert get_chapter_filename(1234, "Late") == "Chapter_1234_Late.txt"


def test_sanitize_replaces_each_invalid_character() -> None:
    assert sanitize_filename("Chapter: The/End") == "Chapter_ The_End"
    assert sanitize_filename('a<b>c"d\\e|f?g*h') == "a_b_c_d_e_f_g_h"
    assert sanitize_filename("tab\there") == "tab_here"


def test_parse_chapter_filename() -> None:
    assert parse_chapter_filename("Chapter_002_Middle_Part.txt") == ChapterInfo(2, "Middle Part")
    assert parse_chapter_filename("Chapter_1000_Wide.txt") == ChapterInfo(1000, "Wide")
    assert parse_chapter_filename("Chapter_003_.txt") == ChapterInfo(3, "")
    assert parse_chapter_filename("Chapter_12_Short.txt") is None
    assert parse_chapter_filename("Chapter_000_Zero.txt") is None
    assert parse_chapter_filename("notes.txt") is None
    assert parse_chapter_filename("Chapter_001_Intro.md") is None


def test_encode_decode_encode_is_idempotent() -> None:
    name = get_chapter_filename(5, "Chapter: The/End")
    info = parse_chapter_filename(name)
    assert info is not None
    assert info.title == "Chapter  The End"
    assert parse_chapter_filename(get_chapter_filename(info.id, info.title)) == info


def test_save_then_load_reads_back_from_disk(tmp_path: Path) -> None:
    store = ChapterStore(tmp_path / "Chapters")
    for chapter_id in (1, 42, 999):
        result = store.save_content(chapter_id, "Safe Title", f"body {chapter_id}\nline two")
        assert result.saved
        assert result.path == tmp_path / "Chapters" / get_chapter_filename(chapter_id, "Safe Title")

    store.clear_cache()
    assert not store.is_cached(42)
    assert store.load_content(42, "Safe Title") == "body 42\nline two"
    assert store.is_cached(42)

    fresh = ChapterStore(tmp_path / "Chapters")
    assert fresh.load_content(999, "Safe Title") == "body 999\nline two"


def test_memory_wins_over_disk(tmp_path: Path) -> None:
    store = ChapterStore(tmp_path)
    result = store.save_content(1, "T", "A")
    result.path.unlink()
    assert store.load_content(1, "T") == "A"

    store.save_content(2, "T", "B")
    (tmp_path / get_chapter_filename(2, "T")).write_text("corrupted", encoding="utf-8")
    assert store.load_content(2, "T") == "B"


def test_new_chapter_loads_empty(tmp_path: Path) -> None:
    store = ChapterStore(tmp_path)
    assert store.load_content(17, "Nothing Yet") == ""
    assert not store.is_cached(17)


def test_list_existing_chapters_orders_by_id(tmp_path: Path) -> None:
    (tmp_path / "Chapter_002_Middle_Part.txt").write_text("middle", encoding="utf-8")
    (tmp_path / "Chapter_001_Intro.txt").write_text("intro", encoding="utf-8")
    (tmp_path / "readme.md").write_text("not a chapter", encoding="utf-8")
    (tmp_path / "Chapter_x_Bad.txt").write_text("", encoding="utf-8")
    (tmp_path / "Chapter_004_Folder.txt").mkdir()

    store = ChapterStore(tmp_path)
    assert store.list_existing_chapters() == [
        ChapterInfo(id=1, title="Intro"),
        ChapterInfo(id=2, title="Middle Part"),
    ]


def test_list_existing_chapters_missing_directory(tmp_path: Path) -> None:
    store = ChapterStore(tmp_path / "Chapters")
    store.chapters_dir.rmdir()
    assert store.list_existing_chapters() == []


def test_discovered_title_still_finds_its_file(tmp_path: Path) -> None:
    (tmp_path / "Chapter_002_Middle_Part.txt").write_text("middle", encoding="utf-8")
    store = ChapterStore(tmp_path)
    [info] = store.list_existing_chapters()
    assert info.title == "Middle Part"
    assert store.load_content(info.id, info.title) == "middle"


def test_illegal_title_characters_save_and_load(tmp_path: Path) -> None:
    store = ChapterStore(tmp_path)
    result = store.save_content(3, "Chapter: The/End", "finale")
    assert result.saved
    assert result.path.name == "Chapter_003_Chapter_ The_End.txt"
    assert result.path.exists()

    store.clear_cache()
    assert store.load_content(3, "Chapter: The/End") == "finale"


def test_failed_write_keeps_content_in_memory(tmp_path: Path, monkeypatch) -> None:
    store = ChapterStore(tmp_path)

    def _boom(self, *args, **kwargs):
        raise PermissionError("read-only")

    monkeypatch.setattr(Path, "write_text", _boom)
    result = store.save_content(1, "Draft", "unsaved work")
    assert not result.saved
    assert "read-only" in result.error
    assert store.last_save_failed
    assert store.load_content(1, "Draft") == "unsaved work"

    monkeypatch.undo()
    assert store.save_content(1, "Draft", "saved now").saved
    assert not store.last_save_failed


def test_unreadable_file_loads_empty(tmp_path: Path) -> None:
    (tmp_path / "Chapter_001_Bin.txt").write_bytes(b"\xff\xfe\xfa")
    store = ChapterStore(tmp_path)
    assert store.load_content(1, "Bin") == ""
    assert not store.is_cached(1)


def test_save_overwrites_same_file(tmp_path: Path) -> None:
    store = ChapterStore(tmp_path)
    store.save_content(1, "Intro", "first")
    store.save_content(1, "Intro", "second")
    files = sorted(p.name for p in tmp_path.iterdir())
    assert files == ["Chapter_001_Intro.txt"]
    assert (tmp_path / files[0]).read_text(encoding="utf-8") == "second"


@pytest.mark.parametrize("title", ["", "   ", "naïve ✨ title"])
def test_unusual_titles_round_trip(tmp_path: Path, title: str) -> None:
    store = ChapterStore(tmp_path)
    assert store.save_content(9, title, "text").saved
    store.clear_cache()
    assert store.load_content(9, title) == "text"


def test_only_ascii_digits_are_chapter_numbers() -> None:
    assert parse_chapter_filename("Chapter_١٢٣_X.txt") is None


def test_other_title_for_same_id_loads_newest_file(tmp_path: Path) -> None:
    older = tmp_path / "Chapter_004_First Draft.txt"
    newer = tmp_path / "Chapter_004_Second Draft.txt"
    older.write_text("old", encoding="utf-8")
    newer.write_text("new", encoding="utf-8")
    os.utime(older, (1_000_000, 1_000_000))
    os.utime(newer, (2_000_000, 2_000_000))

    store = ChapterStore(tmp_path)
    assert store.load_content(4, "Renamed Later") == "new"
    assert store.load_content(5, "Renamed Later") == ""
