"""
Page analytics for the demo site: visits and "was this page helpful" feedback.
Records live in one JSON file; every read-modify-write runs under a lock and the file
is replaced atomically, so concurrent requests never lose an update.
"""
import hashlib
import logging
import os
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from demo_web.config import DATA_COLLECTION_PATH, SESSION_COOKIE

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UserVisit(_CamelModel):
    id: str = Field(default_factory=_new_id)
    page_url: str = Field("", alias="pageUrl")
    page_title: str = Field("", alias="pageTitle")
    user_agent: str = Field("", alias="userAgent")
    ip_address: str = Field("", alias="ipAddress")
    referrer: str | None = None
    timestamp: datetime = Field(default_factory=_utc_now)
    session_id: str = Field("", alias="sessionId")
    visit_duration_seconds: int | None = Field(None, alias="visitDuration")


class PageFeedback(_CamelModel):
    id: str = Field(default_factory=_new_id)
    page_url: str = Field("", alias="pageUrl")
    page_title: str = Field("", alias="pageTitle")
    was_helpful: bool = Field(False, alias="wasHelpful")
    comment: str | None = None
    user_agent: str = Field("", alias="userAgent")
    ip_address: str = Field("", alias="ipAddress")
    timestamp: datetime = Field(default_factory=_utc_now)
    session_id: str = Field("", alias="sessionId")


class DataCollectionRoot(_CamelModel):
    user_visits: list[UserVisit] = Field(default_factory=list, alias="userVisits")
    page_feedback: list[PageFeedback] = Field(default_factory=list, alias="pageFeedback")
    last_updated: datetime = Field(default_factory=_utc_now, alias="lastUpdated")


class DataCollectionStore:
    """JSON-file store. A single lock serializes writers within this process."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> DataCollectionRoot:
        with self._lock:
            return self._read()

    def add_visit(self, visit: UserVisit) -> None:
        with self._lock:
            data = self._read()
            data.user_visits.append(visit)
            self._write(data)

    def add_feedback(self, feedback: PageFeedback) -> None:
        with self._lock:
            data = self._read()
            data.page_feedback.append(feedback)
            self._write(data)

    def _read(self) -> DataCollectionRoot:
        if not self.path.exists():
            return DataCollectionRoot()
        try:
            text = self.path.read_text(encoding="utf-8")
            if not text.strip():
                return DataCollectionRoot()
            return DataCollectionRoot.model_validate_json(text)
        except (UnicodeDecodeError, ValidationError):
            logger.warning("Invalid or unreadable JSON in data file %s, starting a new structure", self.path)
            return DataCollectionRoot()

    def _write(self, data: DataCollectionRoot) -> None:
        data.last_updated = _utc_now()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(data.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)


_store: DataCollectionStore | None = None


def get_store() -> DataCollectionStore:
    """Dependency: process-wide store for DATA_COLLECTION_PATH."""
    global _store
    if _store is None:
        _store = DataCollectionStore(DATA_COLLECTION_PATH)
    return _store


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the peer address."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    if request.client is None:
        return "Unknown"
    return request.client.host or "Unknown"


def session_ref(request: Request) -> str:
    """
    Stable, non-secret stand-in for the session cookie. The cookie itself is the bearer
    key for /profile and must never reach the analytics file.
    """
    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        return ""
    return hashlib.sha256(session_id.encode("utf-8")).hexdigest()[:32]


def _server_fields(request: Request) -> dict:
    return {
        "id": _new_id(),
        "timestamp": _utc_now(),
        "ip_address": get_client_ip(request),
        "user_agent": request.headers.get("user-agent", ""),
        "session_id": session_ref(request),
    }


def _failure(message: str) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=500)


router = APIRouter(prefix="/api/DataCollection", tags=["analytics"])


@router.post("/visit")
def record_visit(visit: UserVisit, request: Request, store: DataCollectionStore = Depends(get_store)):
    """Record a page visit; id, timestamp, client and session details come from the request, not the body."""
    visit = visit.model_copy(update={**_server_fields(request), "referrer": request.headers.get("referer", "")})
    try:
        store.add_visit(visit)
    except OSError:
        logger.exception("Error recording user visit")
        return _failure("Failed to record visit")
    logger.info("User visit recorded for page: %s", visit.page_url)
    return {"success": True, "message": "Visit recorded successfully"}


@router.post("/feedback")
def record_feedback(feedback: PageFeedback, request: Request, store: DataCollectionStore = Depends(get_store)):
    feedback = feedback.model_copy(update=_server_fields(request))
    try:
        store.add_feedback(feedback)
    except OSError:
        logger.exception("Error recording page feedback")
        return _failure("Failed to record feedback")
    logger.info("Page feedback recorded for page: %s, Helpful: %s", feedback.page_url, feedback.was_helpful)
    return {"success": True, "message": "Feedback recorded successfully"}


@router.get("/stats")
def get_stats(store: DataCollectionStore = Depends(get_store)):
    try:
        data = store.load()
    except OSError:
        logger.exception("Error retrieving stats")
        return _failure("Failed to retrieve stats")
    helpful = sum(1 for f in data.page_feedback if f.was_helpful)
    return {
        "totalVisits": len(data.user_visits),
        "totalFeedback": len(data.page_feedback),
        "helpfulFeedback": helpful,
        "notHelpfulFeedback": len(data.page_feedback) - helpful,
        "lastUpdated": data.last_updated,
    }


@router.get("/raw-data")
def get_raw_data(store: DataCollectionStore = Depends(get_store)):
    try:
        data = store.load()
    except OSError:
        logger.exception("Error retrieving raw data")
        return _failure("Failed to retrieve raw data")
    return JSONResponse(data.model_dump(mode="json", by_alias=True))
