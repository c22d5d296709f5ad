import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, StrictInt, model_validator

from mnemo.application.review_service import ReviewService
from mnemo.application.scheduling.due import DueItem
from mnemo.consts import VERSION
from mnemo.domain.errors import SchedulingError, SubjectNotFound
from mnemo.domain.models import MindMapNode, Subject, SubjectContext

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("mnemo.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"mnemo server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("mnemo server shutting down...")


app = FastAPI(
    title="mnemo server",
    description="Subjects, review grading and the daily review queue.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


@lru_cache(maxsize=1)
def get_service() -> ReviewService:
    """One service per process so per-subject locks are shared across requests."""
    from mnemo.application.config import resolve_config
    from mnemo.application.factory import get_subject_repository

    config = resolve_config()
    return ReviewService(get_subject_repository(config), tz=config.tzinfo)


@app.exception_handler(SubjectNotFound)
async def subject_not_found_handler(request: Request, exc: SubjectNotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    logger.warning(f"Rejected review on {request.url.path}: {exc}")
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ReviewStateModel(BaseModel):
    ease_factor: float
    repetitions: int
    last_interval: int
    next_review_at: datetime


class SubjectResponse(BaseModel):
    id: str
    title: str
    context: SubjectContext
    raw_notes: str
    created_at: datetime
    mind_map: dict[str, Any]
    review: ReviewStateModel

    @classmethod
    def from_subject(cls, s: Subject) -> "SubjectResponse":
        return cls(
            id=s.id,
            title=s.title,
            context=s.context,
            raw_notes=s.raw_notes,
            created_at=s.created_at,
            mind_map=s.mind_map.to_dict(),
            review=ReviewStateModel(
                ease_factor=s.review.ease_factor,
                repetitions=s.review.repetitions,
                last_interval=s.review.last_interval,
                next_review_at=s.review.next_review_at,
            ),
        )


class CreateSubjectRequest(BaseModel):
    title: str = Field(min_length=1)
    context: SubjectContext = SubjectContext.OTHER
    raw_notes: str = ""
    mind_map: dict[str, Any] | None = None


class DueItemResponse(BaseModel):
    id: str | None
    title: str
    next_review_at: datetime
    overdue_days: int

    @classmethod
    def from_item(cls, item: DueItem) -> "DueItemResponse":
        return cls(
            id=item.subject_id,
            title=item.subject.title,
            next_review_at=item.next_review_at,
            overdue_days=item.overdue_days,
        )


class ReviewRequest(BaseModel):
    # Exactly one of grade (UI path) or quality (programmatic path).
    grade: str | None = None
    quality: StrictInt | None = None

    @model_validator(mode="after")
    def one_of(self) -> "ReviewRequest":
        if (self.grade is None) == (self.quality is None):
            raise ValueError("Provide exactly one of 'grade' or 'quality'")
        return self


class ReviewResponse(BaseModel):
    subject_id: str
    quality: int
    interval: int
    repetitions: int
    ease_factor: float
    next_review_at: datetime


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.get("/subjects", response_model=list[SubjectResponse])
async def list_subjects(service: ReviewService = Depends(get_service)):
    """Library view, soonest review first."""
    return [SubjectResponse.from_subject(s) for s in await service.list_subjects()]


@app.post("/subjects", response_model=SubjectResponse, status_code=201)
async def create_subject(req: CreateSubjectRequest, service: ReviewService = Depends(get_service)):
    mind_map = None
    if req.mind_map is not None:
        try:
            mind_map = MindMapNode.from_dict(req.mind_map)
        except (KeyError, TypeError, ValueError) as e:
            raise HTTPException(status_code=422, detail=f"Invalid mind map: {e}") from e

    try:
        subject = await service.create_subject(
            req.title, context=req.context, raw_notes=req.raw_notes, mind_map=mind_map
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return SubjectResponse.from_subject(subject)


@app.get("/subjects/due", response_model=list[DueItemResponse])
async def due_today(service: ReviewService = Depends(get_service)):
    """The "today" queue: due and overdue subjects."""
    return [DueItemResponse.from_item(item) for item in await service.due_today()]


@app.get("/subjects/{subject_id}", response_model=SubjectResponse)
async def get_subject(subject_id: str, service: ReviewService = Depends(get_service)):
    return SubjectResponse.from_subject(await service.get_subject(subject_id))


@app.post("/subjects/{subject_id}/review", response_model=ReviewResponse)
async def review_subject(
    subject_id: str, req: ReviewRequest, service: ReviewService = Depends(get_service)
):
    """Grade a review session. Invalid grades or qualities answer 422."""
    if req.grade is not None:
        outcome = await service.grade(subject_id, req.grade)
    else:
        outcome = await service.review_with_quality(subject_id, req.quality)

    return ReviewResponse(
        subject_id=outcome.subject_id,
        quality=outcome.quality,
        interval=outcome.result.interval,
        repetitions=outcome.result.repetitions,
        ease_factor=outcome.result.ease_factor,
        next_review_at=outcome.next_review_at,
    )


@app.post("/subjects/{subject_id}/reset", response_model=SubjectResponse)
async def reset_subject(subject_id: str, service: ReviewService = Depends(get_service)):
    """Debug: make the subject due now without touching its SM-2 values."""
    return SubjectResponse.from_subject(await service.reset_for_review(subject_id))


@app.delete("/subjects/{subject_id}", status_code=204, response_class=Response)
async def delete_subject(subject_id: str, service: ReviewService = Depends(get_service)):
    await service.delete_subject(subject_id)
    return Response(status_code=204)
