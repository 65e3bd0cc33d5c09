from __future__ import annotations

from datetime import date

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from placementcracker.db.base import Base, TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)


class Profile(TimestampMixin, Base):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True)
    full_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    university: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    year_of_study: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    degree: Mapped[str] = mapped_column(String(255), default="", nullable=False)


class SkillsProfile(TimestampMixin, Base):
    __tablename__ = "skills_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True)
    technical_skills: Mapped[str] = mapped_column(Text, default="", nullable=False)
    soft_skills: Mapped[str] = mapped_column(Text, default="", nullable=False)
    # JSON text blobs; Repository decodes them into ListItem lists
    extra_curriculars: Mapped[str] = mapped_column(Text, default="[]", nullable=False)
    personal_projects: Mapped[str] = mapped_column(Text, default="[]", nullable=False)


class Company(TimestampMixin, Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class Job(TimestampMixin, Base):
    __tablename__ = "jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    location: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    category: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    job_type: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    salary: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    deadline: Mapped[date | None] = mapped_column(Date, nullable=True)
    url: Mapped[str] = mapped_column(String(800), default="", nullable=False)


class GenerationSession(TimestampMixin, Base):
    __tablename__ = "generation_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True)


class GenerationRequest(TimestampMixin, Base):
    __tablename__ = "generation_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    feature: Mapped[str] = mapped_column(String(40), index=True, nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
    session_id: Mapped[int | None] = mapped_column(
        ForeignKey("generation_sessions.id", ondelete="CASCADE"), index=True, nullable=True
    )
    parent_request_id: Mapped[int | None] = mapped_column(
        ForeignKey("generation_requests.id", ondelete="SET NULL"), nullable=True
    )
    question: Mapped[str | None] = mapped_column(Text, nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    word_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    input_size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    token_size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    model: Mapped[str] = mapped_column(String(120), default="", nullable=False)


class GenerationResult(TimestampMixin, Base):
    __tablename__ = "generation_results"

    # shares its id with the request it answers
    id: Mapped[int] = mapped_column(
        ForeignKey("generation_requests.id", ondelete="CASCADE"), primary_key=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    output_tokens: Mapped[int | None] = mapped_column(Integer, nullable=True)


class CoverLetter(TimestampMixin, Base):
    __tablename__ = "cover_letters"
    __table_args__ = (UniqueConstraint("user_id", "job_id", name="uq_cover_letter_user_job"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
    request_id: Mapped[int | None] = mapped_column(
        ForeignKey("generation_requests.id", ondelete="SET NULL"), nullable=True
    )
    cover_letter: Mapped[str] = mapped_column(Text, nullable=False)


class UsageCounter(TimestampMixin, Base):
    __tablename__ = "usage_counters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True)
    cover_letter_credits: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    answer_credits: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class UsageLog(TimestampMixin, Base):
    __tablename__ = "usage_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    request_id: Mapped[int | None] = mapped_column(
        ForeignKey("generation_requests.id", ondelete="SET NULL"), nullable=True
    )
    feature: Mapped[str] = mapped_column(String(40), nullable=False)
    model: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    input_tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    output_tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    token_method: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    elapsed_ms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class TrackingEntry(TimestampMixin, Base):
    __tablename__ = "tracking_entries"
    __table_args__ = (UniqueConstraint("user_id", "job_id", name="uq_tracking_user_job"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    job_id: Mapped[int] = mapped_column(ForeignKey("jobs.id", ondelete="CASCADE"), index=True)
    status: Mapped[str] = mapped_column(String(80), default="Not Applied", nullable=False)
    auto_favourite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
