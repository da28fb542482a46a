from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from fastapi import Depends, FastAPI, File, Header, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from . import storage
from .ai import build_client
from .config import get_log_level, get_max_upload_bytes, get_upload_dir
from .services.auth import require_auth
from .services.exceptions import InvalidInput, ServiceError
from .services.suggestions import AIClient, generate_idea, resolve

logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

UPLOAD_ROOT = get_upload_dir()
MEDIA_URL_PREFIX = "/static/uploads"
UPLOAD_ROOT.mkdir(parents=True, exist_ok=True)

# content type -> file extension of accepted club images
IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.ai_client = build_client()
    try:
        yield
    finally:
        client = app.state.ai_client
        if client is not None:
            client.close()
        app.state.ai_client = None


app = FastAPI(title="clubhub", lifespan=lifespan)
app.mount(MEDIA_URL_PREFIX, StaticFiles(directory=UPLOAD_ROOT), name="uploads")
app.state.ai_client = None


@app.middleware("http")
async def unexpected_error_middleware(request: Request, call_next):
    """Turn anything the handlers did not anticipate into a bare 500."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request, exc):
    return JSONResponse(status_code=400, content={"detail": exc.errors()})


@app.exception_handler(ServiceError)
def service_error_handler(request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def get_ai_client(request: Request) -> AIClient | None:
    """The generative client configured at startup, or ``None``."""
    return request.app.state.ai_client


from .routes.users import router as users_router
from .routes.clubs import router as clubs_router
from .routes.events import router as events_router


class SuggestRequest(BaseModel):
    interest: Any = None


class IdeaRequest(BaseModel):
    topic: Any = None


class ComplaintCreate(BaseModel):
    complaint: str | None = None


@app.post("/clubs/suggest", tags=["suggestions"])
def suggest_club(data: SuggestRequest, client: AIClient | None = Depends(get_ai_client)):
    clubs = storage.list_club_summaries()
    return resolve(data.interest, clubs, client).to_dict()


@app.post("/suggestions/ideas", tags=["suggestions"])
def suggest_idea(data: IdeaRequest, client: AIClient | None = Depends(get_ai_client)):
    return {"suggestion": generate_idea(data.topic, client)}


@app.post("/complaints", tags=["complaints"])
def submit_complaint(data: ComplaintCreate):
    if not data.complaint or not data.complaint.strip():
        raise InvalidInput("Complaint text is required")
    storage.create_complaint(uuid4().hex, data.complaint.strip())
    return {"success": True, "message": "Complaint submitted successfully"}


@app.post("/upload/club-image", tags=["upload"])
async def upload_club_image(
    file: UploadFile = File(...),
    authorization: str | None = Header(None),
):
    uid = require_auth(authorization)
    ext = IMAGE_TYPES.get((file.content_type or "").lower())
    if ext is None:
        raise InvalidInput("Invalid file type. Only JPEG, PNG, and WebP are allowed.")

    limit = get_max_upload_bytes()
    content = await file.read(limit + 1)
    if len(content) > limit:
        raise ServiceError(f"File too large. Maximum size is {limit // (1024 * 1024)}MB.", 413)

    filename = f"club-{uuid4().hex}{ext}"
    (UPLOAD_ROOT / filename).write_bytes(content)
    logger.info("User %s uploaded %s (%d bytes)", uid, filename, len(content))
    return {"url": f"{MEDIA_URL_PREFIX}/{filename}", "filename": filename}


app.include_router(users_router)
app.include_router(clubs_router)
app.include_router(events_router)
