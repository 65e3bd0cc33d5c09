from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

Feature = Literal["cover_letter", "answer"]
LimitPolicyName = Literal["counting", "balance"]
TokenMethod = Literal["provider", "tiktoken", "chars", "words"]

TRACKING_STATUSES: tuple[str, ...] = (
    "Application Submitted",
    "Online Assessment",
    "Case Study",
    "HireVue",
    "Telephone Interview",
    "Video Interview",
    "Face-to-face Interview",
    "Assessment Centre",
    "Offer Received",
    "Rejected",
    "Not Interested",
    "Not Applied",
)
DEFAULT_TRACKING_STATUS = "Not Applied"


@dataclass(slots=True, frozen=True)
class RequestContext:
    user_id: int
    trace_id: str


class ListItem(BaseModel):
    title: str = ""
    description: str = ""


class ProfileFacts(BaseModel):
    full_name: str = ""
    university: str = ""
    year_of_study: str = ""
    degree: str = ""


class SkillsFacts(BaseModel):
    technical_skills: str = ""
    soft_skills: str = ""
    extra_curriculars: list[ListItem] = Field(default_factory=list)
    personal_projects: list[ListItem] = Field(default_factory=list)


class JobFacts(BaseModel):
    id: int
    title: str
    description: str = ""
    category: str = ""
    company_name: str = ""


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)
    input_tokens: int | None = None
    output_tokens: int | None = None


class GateDecision(BaseModel):
    feature: Feature
    policy: LimitPolicyName
    remaining: int | None = None


class TokenCount(BaseModel):
    tokens: int
    method: TokenMethod


class JobListing(BaseModel):
    id: int
    title: str
    company_name: str
    location: str = ""
    category: str = ""
    job_type: str = ""
    description: str = ""
    salary: str = ""
    url: str = ""
    deadline: date | None = None
    created_at: datetime | None = None


class JobFilter(BaseModel):
    search: str = ""
    company: str | None = None
    categories: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)


class JobPage(BaseModel):
    items: list[JobListing] = Field(default_factory=list)
    page: int = 1
    page_size: int = 20
    total: int = 0
    total_pages: int = 0


class JobFacets(BaseModel):
    companies: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)


class TrackingUpdate(BaseModel):
    status: str | None = None
    auto_favourite: bool | None = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        if value is not None and value not in TRACKING_STATUSES:
            raise ValueError(f"status must be one of {list(TRACKING_STATUSES)}")
        return value
