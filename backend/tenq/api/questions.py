import logging
from fastapi import APIRouter, Depends, HTTPException, Header, Query
from pydantic import BaseModel, Field

from tenq.core.config import get_settings
from tenq.core.deps import get_permission_service, get_question_store, get_supabase_client
from tenq.core.errors import InvalidDateFormat
from tenq.models.question import QuestionCandidate
from tenq.services.ai import get_ai_service
from tenq.services.approval import ApprovalSet
from tenq.services.date_slots import check_date_status, find_next_available_date
from tenq.services.generation import generate_daily_set, regenerate_question
from tenq.services.question_stats import compute_question_stats
from tenq.services.telemetry import instrument
from tenq.services.upload import upload_questions
from tenq.utils.dates import is_canonical_date

logger = logging.getLogger("tenq.api.questions")
router = APIRouter(prefix="/api/questions", tags=["questions"])


# ──────────────────────────────────────────────
# Request models
# ──────────────────────────────────────────────

class GenerateRequest(BaseModel):
    theme: str = Field(min_length=1)
    target_date: str | None = None
    count: int = Field(default=10, ge=1, le=10)


class RegenerateRequest(BaseModel):
    theme: str = Field(min_length=1)
    feedback: str = Field(min_length=1)
    questions: list[QuestionCandidate]
    position: int = Field(ge=0)  # 0-based
    target_date: str


class UploadRequest(BaseModel):
    target_date: str
    questions: list[QuestionCandidate]
    approved_positions: list[int] = []


# ──────────────────────────────────────────────
# Auth
# ──────────────────────────────────────────────

def get_current_user(authorization: str = Header(None)):
    """Resolve the Supabase user behind a Bearer token."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")

    token = authorization.replace("Bearer ", "")
    try:
        user_response = get_supabase_client().auth.get_user(token)
    except Exception as e:
        raise HTTPException(status_code=401, detail=f"Authentication failed: {str(e)}")
    if not user_response or not user_response.user:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user_response.user


def _require_date(value: str) -> str:
    if not is_canonical_date(value):
        raise InvalidDateFormat(value)
    return value


# ──────────────────────────────────────────────
# Endpoints
# ──────────────────────────────────────────────

@router.post("/generate")
@instrument(route="/api/questions/generate")
async def generate(
    request: GenerateRequest,
    user=Depends(get_current_user),
    store=Depends(get_question_store),
    ai=Depends(get_ai_service),
):
    """Generate a reviewed-ready daily set. Picks the next free date when none is given."""
    settings = get_settings()
    if request.target_date:
        target_date = _require_date(request.target_date)
    else:
        target_date = find_next_available_date(
            store.count_records_for_date,
            max_probes=settings.slot_search_days,
            tz_name=settings.timezone,
        )

    result = await generate_daily_set(ai, request.theme, target_date, count=request.count)
    return {
        "target_date": target_date,
        "theme": request.theme,
        "questions": [r.model_dump() for r in result.question_set.records],
        "repairs": [r.model_dump(mode="json") for r in result.repairs],
    }


@router.post("/regenerate")
@instrument(route="/api/questions/regenerate")
async def regenerate(
    request: RegenerateRequest,
    user=Depends(get_current_user),
    ai=Depends(get_ai_service),
):
    """Replace one question using reviewer feedback. Its approval must be cleared by the client."""
    _require_date(request.target_date)
    if request.position >= len(request.questions):
        raise HTTPException(
            status_code=400,
            detail=f"position {request.position} outside 0..{len(request.questions) - 1}",
        )

    question = await regenerate_question(
        ai,
        theme=request.theme,
        feedback=request.feedback,
        accepted=request.questions,
        index=request.position,
        target_date=request.target_date,
    )
    return {"position": request.position, "question": question.model_dump()}


@router.get("/next-available-date")
async def next_available_date(
    start: str | None = Query(None),
    store=Depends(get_question_store),
):
    settings = get_settings()
    if start:
        _require_date(start)
    date = find_next_available_date(
        store.count_records_for_date,
        start=start,
        max_probes=settings.slot_search_days,
        tz_name=settings.timezone,
    )
    return {"date": date}


@router.get("/date-status/{date}")
async def date_status(date: str, store=Depends(get_question_store)):
    _require_date(date)
    return check_date_status(date, store.count_records_for_date).model_dump()


@router.post("/upload")
@instrument(route="/api/questions/upload")
async def upload(
    request: UploadRequest,
    user=Depends(get_current_user),
    store=Depends(get_question_store),
    permissions=Depends(get_permission_service),
):
    """Commit a fully approved daily set."""
    settings = get_settings()
    try:
        approvals = ApprovalSet(settings.questions_per_day, request.approved_positions)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not approvals.is_complete:
        missing = ", ".join(str(i + 1) for i in approvals.missing())
        raise HTTPException(
            status_code=400,
            detail=f"All {approvals.size} questions must be approved before upload (missing: {missing})",
        )

    has_access = permissions.has_elevated_access(user)
    message = upload_questions(
        request.questions,
        request.target_date,
        has_access,
        store,
        expected_count=settings.questions_per_day,
    )
    return {"success": True, "message": message, "target_date": request.target_date}


@router.get("/by-date/{date}")
async def questions_by_date(date: str, store=Depends(get_question_store)):
    _require_date(date)
    return {"date": date, "questions": [r.model_dump() for r in store.get_records_by_date(date)]}


@router.get("/by-tag/{tag}")
async def questions_by_tag(tag: str, store=Depends(get_question_store)):
    return {"tag": tag, "questions": [r.model_dump() for r in store.get_records_by_tag(tag)]}


@router.get("/tags")
async def list_tags(store=Depends(get_question_store)):
    return {"tags": store.list_tags()}


@router.get("/stats")
async def stats(store=Depends(get_question_store)):
    return compute_question_stats(store.list_all_records()).model_dump()
