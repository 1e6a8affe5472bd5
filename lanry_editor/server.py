import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from lanry_editor.core.chapter_store import ChapterStore
from lanry_editor.core.editor import EditorSession
from lanry_editor.core.models import AGE_RATINGS, DEFAULT_AGE_RATING
from lanry_editor.core.navigation import ChapterNavigator, DuplicateChapterError
from lanry_editor.integrations.lanry_api import REGISTER_URL, AuthSession, LanryClient, LoginError
from lanry_editor.utils.config import Settings, load_settings

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "web" / "templates"


class NewChapter(BaseModel):
    id: int
    title: str = ""

class SelectChapter(BaseModel):
    current_text: Optional[str] = None

class ContentUpdate(BaseModel):
    content: str

class LoginPayload(BaseModel):
    email: str
    password: str

class UploadPayload(BaseModel):
    novel_id: str
    chapter_number: Optional[int] = None
    title: Optional[str] = None
    publish_at: Optional[str] = None
    age_rating: str = DEFAULT_AGE_RATING
    author_thoughts: Optional[str] = None
    volume_id: Optional[str] = None


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ChapterStore] = None,
    client: Optional[LanryClient] = None,
) -> FastAPI:
    settings = settings or load_settings()
    store = store or ChapterStore(settings.chapters_dir)
    client = client or LanryClient(settings)

    navigator = ChapterNavigator(store.list_existing_chapters())
    editor = EditorSession(store, navigator)
    auth = AuthSession()
    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        editor.close()

    app = FastAPI(title="Lanry Editor", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.navigator = navigator
    app.state.editor = editor
    app.state.auth = auth

    logger.info(f"Loaded {len(navigator)} chapters from {store.chapters_dir}")

    def _chapter_or_404(chapter_id: int):
        info = navigator.get(chapter_id)
        if info is None:
            raise HTTPException(status_code=404, detail="Chapter not found")
        return info

    @app.get("/", response_class=HTMLResponse)
    async def editor_view(request: Request):
        """The main editor interface."""
        return templates.TemplateResponse(request, "editor.html", {
            "chapters": navigator.chapters,
            "current": editor.current,
            "text": editor.text,
            "document_title": editor.document_title,
            "age_ratings": AGE_RATINGS,
            "logged_in": auth.is_authenticated,
            "register_url": REGISTER_URL,
        })

    @app.get("/api/chapters")
    async def list_chapters():
        return JSONResponse({
            "chapters": [c.to_dict() for c in navigator.chapters],
            "current": editor.current.to_dict() if editor.current else None,
        })

    @app.post("/api/chapters")
    async def add_chapter(payload: NewChapter):
        try:
            info = editor.new_chapter(payload.id, payload.title)
        except DuplicateChapterError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return JSONResponse({"chapter": info.to_dict(), "document_title": editor.document_title})

    @app.post("/api/chapters/{chapter_id}/select")
    async def select_chapter(chapter_id: int, payload: SelectChapter):
        """Saves the open chapter, then opens this one."""
        info = _chapter_or_404(chapter_id)
        content = editor.select_chapter(info, payload.current_text)
        return JSONResponse({
            "chapter": info.to_dict(),
            "content": content,
            "document_title": editor.document_title,
        })

    @app.get("/api/chapters/{chapter_id}/content")
    async def get_content(chapter_id: int):
        info = _chapter_or_404(chapter_id)
        return JSONResponse({"content": store.load_content(info.id, info.title)})

    @app.put("/api/chapters/{chapter_id}/content")
    async def save_content(chapter_id: int, payload: ContentUpdate):
        """
        Autosave for the open chapter. Always succeeds in memory; `saved`
        reports the disk write.
        """
        info = _chapter_or_404(chapter_id)
        # A chapter that is no longer open was already flushed by select/add
        if editor.current is None or editor.current.id != info.id:
            raise HTTPException(status_code=409, detail="Chapter is not open")
        result = editor.update_text(payload.content)
        return JSONResponse(result.to_dict())

    @app.get("/api/health")
    async def health():
        last = store.last_save
        return JSONResponse({
            "chapters_dir": str(store.chapters_dir),
            "last_save": last.to_dict() if last else None,
            "last_save_failed": store.last_save_failed,
        })

    @app.post("/api/auth/login")
    def login(payload: LoginPayload):
        try:
            session = client.login(payload.email, payload.password)
        except LoginError as e:
            raise HTTPException(status_code=401, detail=str(e))
        auth.access_token = session.access_token
        auth.token_type = session.token_type
        auth.expires_in = session.expires_in
        auth.refresh_token = session.refresh_token
        auth.email = session.email
        return JSONResponse({"status": "logged_in", "email": auth.email})

    @app.post("/api/auth/logout")
    async def logout():
        auth.clear()
        return JSONResponse({"status": "logged_out"})

    @app.post("/api/upload")
    def upload_chapter(payload: UploadPayload):
        if not auth.is_authenticated:
            raise HTTPException(status_code=401, detail="Not authenticated. Please log in first.")
        outcome = editor.upload_current(
            client,
            auth,
            payload.novel_id,
            chapter_number=payload.chapter_number,
            title=payload.title,
            publish_at=payload.publish_at,
            age_rating=payload.age_rating,
            author_thoughts=payload.author_thoughts,
            volume_id=payload.volume_id,
        )
        if not outcome.ok:
            raise HTTPException(status_code=502, detail=outcome.message)
        return JSONResponse({"status": "uploaded", "message": outcome.message})

    return app


def start_server(settings: Optional[Settings] = None):
    import uvicorn
    settings = settings or load_settings()
    app = create_app(settings)
    print(f"Starting server at http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)
