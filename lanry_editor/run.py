import argparse
import getpass
import logging
import os
import sys
from pathlib import Path

from lanry_editor.core.chapter_store import ChapterStore
from lanry_editor.core.editor import EditorSession
from lanry_editor.core.models import AGE_RATINGS, DEFAULT_AGE_RATING, ChapterInfo
from lanry_editor.integrations.lanry_api import LanryClient, LoginError
from lanry_editor.server import start_server
from lanry_editor.utils.config import load_settings


def _find_title(store: ChapterStore, chapter_id: int) -> str:
    for info in store.list_existing_chapters():
        if info.id == chapter_id:
            return info.title
    return ""


def cmd_list(store: ChapterStore) -> int:
    chapters = store.list_existing_chapters()
    if not chapters:
        print(f"No chapters in {store.chapters_dir}")
        return 0
    for info in chapters:
        print(f"{info.id:>4}  {info.title}")
    return 0


def cmd_show(store: ChapterStore, chapter_id: int, title=None) -> int:
    if title is None:
        title = _find_title(store, chapter_id)
    print(store.load_content(chapter_id, title))
    return 0


def cmd_save(store: ChapterStore, chapter_id: int, title: str, source: str) -> int:
    try:
        content = Path(source).read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error: could not read {source}: {e}")
        return 1
    result = store.save_content(chapter_id, title, content)
    if not result.saved:
        print(f"Error: {result.error}")
        return 1
    print(f"Saved: {result.path}")
    return 0


def cmd_upload(store: ChapterStore, settings, args) -> int:
    title = args.title if args.title is not None else _find_title(store, args.chapter)
    editor = EditorSession(store)
    content = editor.select_chapter(ChapterInfo(id=args.chapter, title=title))
    if not content.strip():
        print(f"Error: no saved text for chapter {args.chapter} in {store.chapters_dir}")
        return 1

    email = args.email or os.getenv("LANRY_EMAIL") or input("Email: ")
    password = os.getenv("LANRY_PASSWORD") or getpass.getpass("Password: ")

    client = LanryClient(settings)
    try:
        auth = client.login(email, password)
    except LoginError as e:
        print(f"Login failed: {e}")
        return 1

    outcome = editor.upload_current(
        client,
        auth,
        args.novel_id,
        title=title,
        publish_at=args.publish_at,
        age_rating=args.age_rating,
        author_thoughts=args.author_thoughts,
        volume_id=args.volume_id,
    )
    print(outcome.message)
    return 0 if outcome.ok else 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Lanry Editor")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("serve", help="Start the editor in the browser")
    subparsers.add_parser("list", help="List saved chapters")

    show_parser = subparsers.add_parser("show", help="Print a chapter")
    show_parser.add_argument("chapter", type=int)
    show_parser.add_argument("--title", default=None)

    save_parser = subparsers.add_parser("save", help="Save a text file as a chapter")
    save_parser.add_argument("chapter", type=int)
    save_parser.add_argument("title")
    save_parser.add_argument("file")

    upload_parser = subparsers.add_parser("upload", help="Upload a saved chapter")
    upload_parser.add_argument("novel_id")
    upload_parser.add_argument("chapter", type=int)
    upload_parser.add_argument("--title", default=None)
    upload_parser.add_argument("--age-rating", choices=AGE_RATINGS, default=DEFAULT_AGE_RATING)
    upload_parser.add_argument("--publish-at", default=None, help="ISO timestamp")
    upload_parser.add_argument("--author-thoughts", default=None)
    upload_parser.add_argument("--volume-id", default=None)
    upload_parser.add_argument("--email", default=None)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    if args.command is None:
        parser.print_help()
        return 0

    if getattr(args, "chapter", 1) <= 0:
        parser.error("chapter must be a positive integer")

    settings = load_settings()

    if args.command == "serve":
        start_server(settings)
        return 0

    store = ChapterStore(settings.chapters_dir)
    if args.command == "list":
        return cmd_list(store)
    if args.command == "show":
        return cmd_show(store, args.chapter, args.title)
    if args.command == "save":
        return cmd_save(store, args.chapter, args.title, args.file)
    if args.command == "upload":
        return cmd_upload(store, settings, args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
