from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from placementcracker.api.deps import get_db, get_generation_client, get_request_context
from placementcracker.api.schemas import (
    CoverLetterRecord,
    CreditsResponse,
    GenerateAnswerRequest,
    GenerateAnswerResponse,
    GenerateCoverLettersRequest,
    GenerateCoverLettersResponse,
    HistoryItemResponse,
    JobBrowseResponse,
    ProfileRequest,
    ProfileResponse,
    RegenerateAnswerRequest,
    SessionCreateRequest,
    SessionResponse,
    SkillsProfileRequest,
    SkillsProfileResponse,
    TrackingCreateRequest,
    TrackingResponse,
)
from placementcracker.config import get_settings
from placementcracker.core.job_browser import facet_options, filter_jobs, paginate
from placementcracker.core.workflow import GenerationWorkflow, serialize_cover_letter
from placementcracker.db.models import GenerationSession
from placementcracker.db.repositories import Repository
from placementcracker.llm.client import GenerationClient
from placementcracker.types import JobFilter, JobListing, RequestContext, SkillsFacts, TrackingUpdate

router = APIRouter(prefix="/api", tags=["api"])


@router.post("/generate-answer", response_model=GenerateAnswerResponse)
def generate_answer(
    payload: GenerateAnswerRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
    client: GenerationClient = Depends(get_generation_client),
) -> GenerateAnswerResponse:
    workflow = GenerationWorkflow(db, client=client)
    data = workflow.generate_answer(
        ctx,
        session_id=payload.session_id,
        question=payload.question,
        comment=payload.comment,
        word_limit=payload.word_limit,
    )
    return GenerateAnswerResponse.model_validate(data)


@router.post("/generate-answer/{input_id}/regenerate", response_model=GenerateAnswerResponse)
def regenerate_answer(
    input_id: int,
    payload: RegenerateAnswerRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
    client: GenerationClient = Depends(get_generation_client),
) -> GenerateAnswerResponse:
    workflow = GenerationWorkflow(db, client=client)
    data = workflow.regenerate_answer(
        ctx,
        input_id=input_id,
        comment=payload.comment,
        word_limit=payload.word_limit,
    )
    return GenerateAnswerResponse.model_validate(data)


@router.post("/generate-cover-letters", response_model=GenerateCoverLettersResponse)
def generate_cover_letters(
    payload: GenerateCoverLettersRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
    client: GenerationClient = Depends(get_generation_client),
) -> GenerateCoverLettersResponse:
    workflow = GenerationWorkflow(db, client=client)
    data = workflow.generate_cover_letters(ctx, [job.id for job in payload.jobs])
    return GenerateCoverLettersResponse.model_validate(data)


@router.get("/cover-letters", response_model=list[CoverLetterRecord])
def list_cover_letters(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> list[CoverLetterRecord]:
    rows = Repository(db).list_cover_letters(ctx.user_id)
    return [CoverLetterRecord.model_validate(serialize_cover_letter(row)) for row in rows]


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    profile = Repository(db).get_profile(ctx.user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return ProfileResponse.model_validate(profile, from_attributes=True)


@router.put("/profile", response_model=ProfileResponse)
def put_profile(
    payload: ProfileRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    profile = Repository(db).upsert_profile(ctx.user_id, payload.model_dump())
    return ProfileResponse.model_validate(profile, from_attributes=True)


@router.get("/profile/skills", response_model=SkillsProfileResponse)
def get_skills_profile(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> SkillsProfileResponse:
    repo = Repository(db)
    row = repo.get_skills_profile(ctx.user_id)
    facts = repo.skills_facts(ctx.user_id)
    if row is None or facts is None:
        raise HTTPException(status_code=404, detail="Skills profile not found")
    return SkillsProfileResponse(id=row.id, **facts.model_dump())


@router.put("/profile/skills", response_model=SkillsProfileResponse)
def put_skills_profile(
    payload: SkillsProfileRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> SkillsProfileResponse:
    facts = SkillsFacts.model_validate(payload.model_dump())
    row = Repository(db).upsert_skills_profile(ctx.user_id, facts)
    return SkillsProfileResponse(id=row.id, **facts.model_dump())


def _session_response(repo: Repository, item: GenerationSession) -> SessionResponse:
    job = repo.job_facts(item.job_id)
    return SessionResponse(
        id=item.id,
        job_id=item.job_id,
        job_title=job.title if job else "",
        company_name=job.company_name if job else "",
        created_at=item.created_at.isoformat() if item.created_at else None,
        updated_at=item.updated_at.isoformat() if item.updated_at else None,
    )


@router.post("/sessions", response_model=SessionResponse)
def create_session(
    payload: SessionCreateRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> SessionResponse:
    repo = Repository(db)
    if repo.get_job(payload.job_id) is None:
        raise HTTPException(status_code=404, detail="Job not found")
    item = repo.get_or_create_session(ctx.user_id, payload.job_id)
    return _session_response(repo, item)


@router.get("/sessions", response_model=list[SessionResponse])
def list_sessions(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> list[SessionResponse]:
    repo = Repository(db)
    return [_session_response(repo, item) for item in repo.list_sessions(ctx.user_id)]


@router.get("/sessions/{session_id}/history", response_model=list[HistoryItemResponse])
def session_history(
    session_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> list[HistoryItemResponse]:
    repo = Repository(db)
    item = repo.get_session(session_id)
    if item is None or item.user_id != ctx.user_id:
        raise HTTPException(status_code=404, detail="Chat session not found")
    return [
        HistoryItemResponse(
            id=request.id,
            question=request.question or "",
            comment=request.comment,
            word_limit=request.word_limit,
            parent_request_id=request.parent_request_id,
            answer=result.content if result else "",
            created_at=request.created_at.isoformat() if request.created_at else None,
        )
        for request, result in repo.list_session_history(session_id)
    ]


@router.get("/jobs", response_model=JobBrowseResponse)
def browse_jobs(
    search: str = "",
    company: str | None = None,
    category: list[str] | None = Query(default=None),
    location: list[str] | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> JobBrowseResponse:
    repo = Repository(db)
    jobs = repo.list_job_listings()
    job_filter = JobFilter(search=search, company=company, categories=category or [], locations=location or [])
    filtered = filter_jobs(jobs, job_filter)
    return JobBrowseResponse(
        page=paginate(filtered, page=page, page_size=get_settings().job_page_size),
        facets=facet_options(jobs),
        saved_job_ids=repo.saved_job_ids(ctx.user_id),
    )


@router.get("/jobs/{job_id}", response_model=JobListing)
def get_job(
    job_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> JobListing:
    for listing in Repository(db).list_job_listings():
        if listing.id == job_id:
            return listing
    raise HTTPException(status_code=404, detail="Job not found")


@router.get("/credits", response_model=CreditsResponse)
def get_credits(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> CreditsResponse:
    counter = Repository(db).get_usage_counter(ctx.user_id)
    if counter is None:
        raise HTTPException(status_code=404, detail="Usage credits not found")
    return CreditsResponse(
        cover_letter_credits=counter.cover_letter_credits,
        answer_credits=counter.answer_credits,
    )


@router.get("/tracking", response_model=list[TrackingResponse])
def list_tracking(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> list[TrackingResponse]:
    return [
        TrackingResponse(
            id=entry.id,
            job_id=job.id,
            job_title=job.title,
            company_name=company_name,
            deadline=job.deadline,
            url=job.url,
            status=entry.status,
            auto_favourite=entry.auto_favourite,
        )
        for entry, job, company_name in Repository(db).list_tracking(ctx.user_id)
    ]


@router.post("/tracking")
def save_job(
    payload: TrackingCreateRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> dict:
    repo = Repository(db)
    if repo.get_job(payload.job_id) is None:
        raise HTTPException(status_code=404, detail="Job not found")
    entry = repo.save_job(ctx.user_id, payload.job_id)
    return {"id": entry.id, "job_id": entry.job_id, "status": entry.status}


@router.patch("/tracking/{tracking_id}")
def update_tracking(
    tracking_id: int,
    payload: TrackingUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> dict:
    try:
        entry = Repository(db).update_tracking(
            ctx.user_id,
            tracking_id,
            status=payload.status,
            auto_favourite=payload.auto_favourite,
        )
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"id": entry.id, "status": entry.status, "auto_favourite": entry.auto_favourite}


@router.delete("/tracking/{job_id}")
def unsave_job(
    job_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> dict:
    if not Repository(db).unsave_job(ctx.user_id, job_id):
        raise HTTPException(status_code=404, detail="Saved job not found")
    return {"job_id": job_id, "removed": True}
