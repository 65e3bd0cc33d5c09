from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.orm import Session

from placementcracker.db.base import utcnow
from placementcracker.db.models import (
    Company,
    CoverLetter,
    GenerationRequest,
    GenerationResult,
    GenerationSession,
    Job,
    Profile,
    SkillsProfile,
    TrackingEntry,
    UsageCounter,
    UsageLog,
    User,
)
from placementcracker.types import (
    DEFAULT_TRACKING_STATUS,
    Feature,
    JobFacts,
    JobListing,
    ListItem,
    ProfileFacts,
    SkillsFacts,
)

logger = logging.getLogger(__name__)

CREDIT_COLUMNS = {
    "cover_letter": UsageCounter.cover_letter_credits,
    "answer": UsageCounter.answer_credits,
}


def encode_list_items(items: Sequence[ListItem]) -> str:
    return json.dumps([item.model_dump() for item in items], ensure_ascii=False)


def decode_list_items(raw: str | None) -> list[ListItem]:
    if not raw or not raw.strip():
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Undecodable list blob; treating as empty")
        return []
    if not isinstance(value, list):
        logger.warning("List blob is not a JSON array; treating as empty")
        return []

    items: list[ListItem] = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        items.append(
            ListItem(
                title=str(entry.get("title") or ""),
                description=str(entry.get("description") or ""),
            )
        )
    return items


class Repository:
    def __init__(self, session: Session):
        self.session = session

    # users

    def create_user(self, email: str) -> User:
        user = User(email=email.strip().lower())
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_user(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_user_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email.strip().lower()))

    # profiles

    def get_profile(self, user_id: int) -> Profile | None:
        return self.session.scalar(select(Profile).where(Profile.user_id == user_id))

    def upsert_profile(self, user_id: int, values: dict[str, Any]) -> Profile:
        existing = self.get_profile(user_id)
        if existing:
            for key, value in values.items():
                setattr(existing, key, value)
            obj = existing
        else:
            obj = Profile(user_id=user_id, **values)
            self.session.add(obj)

        self.session.commit()
        self.session.refresh(obj)
        return obj

    def get_skills_profile(self, user_id: int) -> SkillsProfile | None:
        return self.session.scalar(select(SkillsProfile).where(SkillsProfile.user_id == user_id))

    def upsert_skills_profile(self, user_id: int, facts: SkillsFacts) -> SkillsProfile:
        values = {
            "technical_skills": facts.technical_skills,
            "soft_skills": facts.soft_skills,
            "extra_curriculars": encode_list_items(facts.extra_curriculars),
            "personal_projects": encode_list_items(facts.personal_projects),
        }
        existing = self.get_skills_profile(user_id)
        if existing:
            for key, value in values.items():
                setattr(existing, key, value)
            obj = existing
        else:
            obj = SkillsProfile(user_id=user_id, **values)
            self.session.add(obj)

        self.session.commit()
        self.session.refresh(obj)
        return obj

    def profile_facts(self, user_id: int) -> ProfileFacts | None:
        row = self.get_profile(user_id)
        if row is None:
            return None
        return ProfileFacts(
            full_name=row.full_name,
            university=row.university,
            year_of_study=row.year_of_study,
            degree=row.degree,
        )

    def skills_facts(self, user_id: int) -> SkillsFacts | None:
        row = self.get_skills_profile(user_id)
        if row is None:
            return None
        return SkillsFacts(
            technical_skills=row.technical_skills,
            soft_skills=row.soft_skills,
            extra_curriculars=decode_list_items(row.extra_curriculars),
            personal_projects=decode_list_items(row.personal_projects),
        )

    # companies and jobs

    def get_or_create_company(self, name: str) -> Company:
        existing = self.session.scalar(select(Company).where(Company.name == name))
        if existing:
            return existing
        company = Company(name=name)
        self.session.add(company)
        self.session.commit()
        self.session.refresh(company)
        return company

    def get_company(self, company_id: int) -> Company | None:
        return self.session.get(Company, company_id)

    def create_job(self, *, company_id: int, title: str, **values: Any) -> Job:
        job = Job(company_id=company_id, title=title, **values)
        self.session.add(job)
        self.session.commit()
        self.session.refresh(job)
        return job

    def get_job(self, job_id: int) -> Job | None:
        return self.session.get(Job, job_id)

    def job_facts(self, job_id: int) -> JobFacts | None:
        row = self.session.execute(
            select(Job, Company.name).join(Company, Job.company_id == Company.id).where(Job.id == job_id)
        ).first()
        if row is None:
            return None
        job, company_name = row
        return JobFacts(
            id=job.id,
            title=job.title,
            description=job.description,
            category=job.category,
            company_name=company_name,
        )

    def list_job_listings(self) -> list[JobListing]:
        statement = (
            select(Job, Company.name)
            .join(Company, Job.company_id == Company.id)
            .order_by(Job.created_at.desc(), Job.id.desc())
        )
        return [
            JobListing(
                id=job.id,
                title=job.title,
                company_name=company_name,
                location=job.location,
                category=job.category,
                job_type=job.job_type,
                description=job.description,
                salary=job.salary,
                url=job.url,
                deadline=job.deadline,
                created_at=job.created_at,
            )
            for job, company_name in self.session.execute(statement).all()
        ]

    # generation sessions

    def get_or_create_session(self, user_id: int, job_id: int) -> GenerationSession:
        existing = self.session.scalar(
            select(GenerationSession)
            .where(and_(GenerationSession.user_id == user_id, GenerationSession.job_id == job_id))
            .order_by(GenerationSession.id.asc())
        )
        if existing:
            return existing
        item = GenerationSession(user_id=user_id, job_id=job_id)
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def get_session(self, session_id: int) -> GenerationSession | None:
        return self.session.get(GenerationSession, session_id)

    def list_sessions(self, user_id: int) -> list[GenerationSession]:
        statement = (
            select(GenerationSession)
            .where(GenerationSession.user_id == user_id)
            .order_by(GenerationSession.updated_at.desc(), GenerationSession.id.desc())
        )
        return list(self.session.scalars(statement).all())

    def touch_session(self, session_id: int) -> None:
        item = self.session.get(GenerationSession, session_id)
        if item is None:
            return
        item.updated_at = utcnow()
        self.session.commit()

    # generation requests and results

    def create_generation_request(
        self,
        *,
        feature: Feature,
        user_id: int,
        job_id: int,
        prompt: str,
        token_size: int,
        model: str,
        session_id: int | None = None,
        parent_request_id: int | None = None,
        question: str | None = None,
        comment: str | None = None,
        word_limit: int | None = None,
    ) -> GenerationRequest:
        item = GenerationRequest(
            feature=feature,
            user_id=user_id,
            job_id=job_id,
            session_id=session_id,
            parent_request_id=parent_request_id,
            question=question,
            comment=comment,
            word_limit=word_limit,
            prompt=prompt,
            input_size=len(prompt),
            token_size=token_size,
            model=model,
        )
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def get_generation_request(self, request_id: int) -> GenerationRequest | None:
        return self.session.get(GenerationRequest, request_id)

    def count_requests_between(
        self,
        user_id: int,
        feature: Feature,
        start: datetime,
        end: datetime,
    ) -> int:
        statement = select(func.count(GenerationRequest.id)).where(
            and_(
                GenerationRequest.user_id == user_id,
                GenerationRequest.feature == feature,
                GenerationRequest.created_at >= start,
                GenerationRequest.created_at < end,
            )
        )
        return int(self.session.scalar(statement) or 0)

    def create_generation_result(
        self,
        *,
        request_id: int,
        content: str,
        output_tokens: int | None,
    ) -> GenerationResult:
        item = GenerationResult(id=request_id, content=content, output_tokens=output_tokens)
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def get_generation_result(self, request_id: int) -> GenerationResult | None:
        return self.session.get(GenerationResult, request_id)

    def list_session_history(
        self, session_id: int
    ) -> list[tuple[GenerationRequest, GenerationResult | None]]:
        statement = (
            select(GenerationRequest, GenerationResult)
            .outerjoin(GenerationResult, GenerationResult.id == GenerationRequest.id)
            .where(GenerationRequest.session_id == session_id)
            .order_by(GenerationRequest.created_at.asc(), GenerationRequest.id.asc())
        )
        return [(request, result) for request, result in self.session.execute(statement).all()]

    # cover letters

    def upsert_cover_letter(
        self,
        *,
        user_id: int,
        job_id: int,
        request_id: int | None,
        cover_letter: str,
    ) -> CoverLetter:
        existing = self.session.scalar(
            select(CoverLetter).where(and_(CoverLetter.user_id == user_id, CoverLetter.job_id == job_id))
        )
        if existing:
            existing.cover_letter = cover_letter
            existing.request_id = request_id
            obj = existing
        else:
            obj = CoverLetter(
                user_id=user_id,
                job_id=job_id,
                request_id=request_id,
                cover_letter=cover_letter,
            )
            self.session.add(obj)

        self.session.commit()
        self.session.refresh(obj)
        return obj

    def list_cover_letters(self, user_id: int) -> list[CoverLetter]:
        statement = (
            select(CoverLetter)
            .where(CoverLetter.user_id == user_id)
            .order_by(CoverLetter.updated_at.desc(), CoverLetter.id.desc())
        )
        return list(self.session.scalars(statement).all())

    # credits

    def create_usage_counter(
        self,
        user_id: int,
        *,
        cover_letter_credits: int = 0,
        answer_credits: int = 0,
    ) -> UsageCounter:
        counter = UsageCounter(
            user_id=user_id,
            cover_letter_credits=cover_letter_credits,
            answer_credits=answer_credits,
        )
        self.session.add(counter)
        self.session.commit()
        self.session.refresh(counter)
        return counter

    def get_usage_counter(self, user_id: int) -> UsageCounter | None:
        return self.session.scalar(select(UsageCounter).where(UsageCounter.user_id == user_id))

    def consume_credit(self, user_id: int, feature: Feature) -> bool:
        """Atomically take one credit; False when the balance is already zero."""
        column = CREDIT_COLUMNS[feature]
        result = self.session.execute(
            update(UsageCounter)
            .where(and_(UsageCounter.user_id == user_id, column > 0))
            .values({column: column - 1, UsageCounter.updated_at: utcnow()})
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount == 1

    def grant_credits(self, user_id: int, feature: Feature, amount: int) -> UsageCounter:
        counter = self.get_usage_counter(user_id)
        if counter is None:
            raise ValueError(f"usage counter for user {user_id} not found")
        column = CREDIT_COLUMNS[feature]
        setattr(counter, column.key, max(0, getattr(counter, column.key) + amount))
        self.session.commit()
        self.session.refresh(counter)
        return counter

    # usage logs

    def create_usage_log(
        self,
        *,
        user_id: int,
        request_id: int | None,
        feature: Feature,
        model: str,
        input_tokens: int,
        output_tokens: int,
        token_method: str,
        elapsed_ms: int,
    ) -> UsageLog:
        item = UsageLog(
            user_id=user_id,
            request_id=request_id,
            feature=feature,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            token_method=token_method,
            elapsed_ms=elapsed_ms,
        )
        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def list_usage_logs(self, user_id: int) -> list[UsageLog]:
        statement = select(UsageLog).where(UsageLog.user_id == user_id).order_by(UsageLog.id.asc())
        return list(self.session.scalars(statement).all())

    # tracking

    def list_tracking(self, user_id: int) -> list[tuple[TrackingEntry, Job, str]]:
        statement = (
            select(TrackingEntry, Job, Company.name)
            .join(Job, TrackingEntry.job_id == Job.id)
            .join(Company, Job.company_id == Company.id)
            .where(TrackingEntry.user_id == user_id)
            .order_by(TrackingEntry.created_at.desc(), TrackingEntry.id.desc())
        )
        return [(entry, job, name) for entry, job, name in self.session.execute(statement).all()]

    def saved_job_ids(self, user_id: int) -> list[int]:
        statement = select(TrackingEntry.job_id).where(TrackingEntry.user_id == user_id)
        return list(self.session.scalars(statement).all())

    def save_job(self, user_id: int, job_id: int) -> TrackingEntry:
        existing = self.session.scalar(
            select(TrackingEntry).where(
                and_(TrackingEntry.user_id == user_id, TrackingEntry.job_id == job_id)
            )
        )
        if existing:
            return existing
        entry = TrackingEntry(
            user_id=user_id,
            job_id=job_id,
            status=DEFAULT_TRACKING_STATUS,
            auto_favourite=False,
        )
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        return entry

    def unsave_job(self, user_id: int, job_id: int) -> bool:
        result = self.session.execute(
            delete(TrackingEntry).where(
                and_(TrackingEntry.user_id == user_id, TrackingEntry.job_id == job_id)
            )
        )
        self.session.commit()
        return result.rowcount > 0

    def update_tracking(
        self,
        user_id: int,
        tracking_id: int,
        *,
        status: str | None = None,
        auto_favourite: bool | None = None,
    ) -> TrackingEntry:
        entry = self.session.get(TrackingEntry, tracking_id)
        if not entry or entry.user_id != user_id:
            raise ValueError(f"tracking entry {tracking_id} not found")
        if status is not None:
            entry.status = status
        if auto_favourite is not None:
            entry.auto_favourite = auto_favourite
        self.session.commit()
        self.session.refresh(entry)
        return entry
