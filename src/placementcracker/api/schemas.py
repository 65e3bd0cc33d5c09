from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from placementcracker.types import JobFacets, JobPage, ListItem


class GenerateAnswerRequest(BaseModel):
    session_id: int
    question: str = Field(min_length=1)
    comment: str | None = None
    word_limit: int | None = Field(default=None, gt=0)


class RegenerateAnswerRequest(BaseModel):
    comment: str | None = None
    word_limit: int | None = Field(default=None, gt=0)


class GenerateAnswerResponse(BaseModel):
    success: bool
    answer: str
    input_id: int
    session_id: int


class CoverLetterJob(BaseModel):
    id: int
    job_title: str = ""
    description: str = ""


class GenerateCoverLettersRequest(BaseModel):
    jobs: list[CoverLetterJob] = Field(default_factory=list)


class CoverLetterRecord(BaseModel):
    id: int
    user_id: int
    job_id: int
    request_id: int | None
    cover_letter: str
    created_at: str | None
    updated_at: str | None


class GenerateCoverLettersResponse(BaseModel):
    success: bool
    data: list[CoverLetterRecord]


class ProfileRequest(BaseModel):
    full_name: str = ""
    university: str = ""
    year_of_study: str = ""
    degree: str = ""


class ProfileResponse(ProfileRequest):
    id: int


class SkillsProfileRequest(BaseModel):
    technical_skills: str = ""
    soft_skills: str = ""
    extra_curriculars: list[ListItem] = Field(default_factory=list)
    personal_projects: list[ListItem] = Field(default_factory=list)


class SkillsProfileResponse(SkillsProfileRequest):
    id: int


class SessionCreateRequest(BaseModel):
    job_id: int


class SessionResponse(BaseModel):
    id: int
    job_id: int
    job_title: str
    company_name: str
    created_at: str | None
    updated_at: str | None


class HistoryItemResponse(BaseModel):
    id: int
    question: str
    comment: str | None
    word_limit: int | None
    parent_request_id: int | None
    answer: str
    created_at: str | None


class JobBrowseResponse(BaseModel):
    page: JobPage
    facets: JobFacets
    saved_job_ids: list[int]


class CreditsResponse(BaseModel):
    cover_letter_credits: int
    answer_credits: int


class TrackingCreateRequest(BaseModel):
    job_id: int


class TrackingResponse(BaseModel):
    id: int
    job_id: int
    job_title: str
    company_name: str
    deadline: date | None
    url: str
    status: str
    auto_favourite: bool
