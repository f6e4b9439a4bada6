import logging
import os

from fastapi import FastAPI, HTTPException
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from academy.config import Settings
from academy.llm import ChessCoach
from academy.session import SessionManager, TutorSession

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> logging.Logger:
    """Give the academy loggers their own handler at the configured level."""
    log = logging.getLogger("academy")
    log.setLevel(level.upper())
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))
        log.addHandler(handler)
    return log


settings = Settings()
configure_logging(settings.log_level)

# --- Service instances ---

coach = ChessCoach(
    base_url=settings.llm_base_url,
    model=settings.llm_model,
    api_key=settings.api_key_value,
    timeout=settings.llm_timeout,
)
if settings.api_key_value is None:
    logger.warning("No LLM API key configured; coach will only give fallback advice")

sessions = SessionManager(coach=coach)

app = FastAPI(title="Chess Academy")


# --- Request models ---

class ClickRequest(BaseModel):
    square: str


class DropRequest(BaseModel):
    source: str
    target: str
    promotion: str | None = None


def _session(session_id: str) -> TutorSession:
    try:
        return sessions.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")


def _view(session_id: str, session: TutorSession) -> dict:
    return {"session_id": session_id, **session.view()}


# --- Endpoints ---

@app.get("/")
async def root():
    return RedirectResponse(url="/static/index.html")


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.post("/api/session/new")
async def new_session():
    session_id, session = sessions.new_session()
    return _view(session_id, session)


@app.get("/api/session/{session_id}")
async def get_session(session_id: str):
    return _view(session_id, _session(session_id))


@app.post("/api/session/{session_id}/click")
async def click(session_id: str, req: ClickRequest):
    session = _session(session_id)
    moved = session.click(req.square)
    return {**_view(session_id, session), "moved": moved}


@app.post("/api/session/{session_id}/drop")
async def drop(session_id: str, req: DropRequest):
    session = _session(session_id)
    accepted = session.drop(req.source, req.target, req.promotion)
    return {**_view(session_id, session), "accepted": accepted}


@app.post("/api/session/{session_id}/undo")
async def undo(session_id: str):
    session = _session(session_id)
    session.undo()
    return _view(session_id, session)


@app.post("/api/session/{session_id}/reset")
async def reset(session_id: str):
    session = _session(session_id)
    session.reset()
    return _view(session_id, session)


# Mount static files last; catches all non-API routes
static_dir = os.path.join(os.path.dirname(__file__), "..", "..", "static")
if os.path.isdir(static_dir):
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
