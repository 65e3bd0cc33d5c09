from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from placementcracker.config import Settings, get_settings
from placementcracker.core.context import build_answer_prompt, build_cover_letter_prompt
from placementcracker.core.entitlements import Clock, EntitlementGate, build_gate
from placementcracker.core.usage import TokenCounter, UsageRecorder
from placementcracker.db.base import utcnow
from placementcracker.db.models import CoverLetter, GenerationRequest, GenerationResult
from placementcracker.db.repositories import Repository
from placementcracker.errors import (
    GateMisconfigured,
    NotFound,
    PersistenceFailure,
    QuotaExceeded,
    UpstreamFailure,
    ValidationFailed,
)
from placementcracker.llm.client import GenerationClient
from placementcracker.types import Feature, ModelResponse, RequestContext

logger = logging.getLogger(__name__)

Persister = Callable[[GenerationRequest, GenerationResult, ModelResponse], Any]


@dataclass(slots=True)
class FeaturePlan:
    feature: Feature
    job_id: int
    gate: EntitlementGate
    build_prompt: Callable[[], str]
    persist: Persister
    request_fields: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class GenerationOutcome:
    request: GenerationRequest
    result: GenerationResult
    response: ModelResponse
    artifact: Any


def serialize_cover_letter(row: CoverLetter) -> dict[str, Any]:
    return {
        "id": row.id,
        "user_id": row.user_id,
        "job_id": row.job_id,
        "request_id": row.request_id,
        "cover_letter": row.cover_letter,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


class GenerationWorkflow:
    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        client: GenerationClient | None = None,
        counter: TokenCounter | None = None,
        clock: Clock = utcnow,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.client = client or GenerationClient(self.settings)
        self.counter = counter or TokenCounter(self.settings.token_counter, self.settings.tokenizer_encoding)
        self.usage = UsageRecorder(session, self.counter)
        self.clock = clock

    def gate_for(self, feature: Feature) -> EntitlementGate:
        return build_gate(feature, self.session, self.settings, clock=self.clock)

    def generate_answer(
        self,
        ctx: RequestContext,
        *,
        session_id: int,
        question: str,
        comment: str | None = None,
        word_limit: int | None = None,
        parent_request_id: int | None = None,
    ) -> dict[str, Any]:
        if not question or not question.strip():
            raise ValidationFailed("session_id and question are required")
        if word_limit is not None and word_limit <= 0:
            raise ValidationFailed("word_limit must be a positive integer")

        chat_session = self.repo.get_session(session_id)
        if chat_session is None or chat_session.user_id != ctx.user_id:
            raise NotFound("Chat session not found.")

        job = self.repo.job_facts(chat_session.job_id)
        if job is None:
            raise NotFound("Failed to fetch job and company data.")

        skills = self.repo.skills_facts(ctx.user_id)
        if skills is None:
            raise NotFound("User information not found.")

        comment = comment.strip() if comment and comment.strip() else None
        plan = FeaturePlan(
            feature="answer",
            job_id=job.id,
            gate=self.gate_for("answer"),
            build_prompt=lambda: build_answer_prompt(
                skills, job, question, comment=comment, word_limit=word_limit
            ),
            persist=lambda request, result, response: result,
            request_fields={
                "session_id": chat_session.id,
                "parent_request_id": parent_request_id,
                "question": question.strip(),
                "comment": comment,
                "word_limit": word_limit,
            },
        )
        outcome = self._run(ctx, plan)
        self.repo.touch_session(chat_session.id)

        return {
            "success": True,
            "answer": outcome.result.content,
            "input_id": outcome.request.id,
            "session_id": chat_session.id,
        }

    def regenerate_answer(
        self,
        ctx: RequestContext,
        *,
        input_id: int,
        comment: str | None = None,
        word_limit: int | None = None,
    ) -> dict[str, Any]:
        """Ask the same question again as a new request carrying the adjustment."""
        prior = self.repo.get_generation_request(input_id)
        if (
            prior is None
            or prior.feature != "answer"
            or prior.user_id != ctx.user_id
            or prior.session_id is None
        ):
            raise NotFound("Previous question not found.")

        return self.generate_answer(
            ctx,
            session_id=prior.session_id,
            question=prior.question or "",
            comment=comment,
            word_limit=word_limit if word_limit is not None else prior.word_limit,
            parent_request_id=prior.id,
        )

    def generate_cover_letters(self, ctx: RequestContext, job_ids: Sequence[int]) -> dict[str, Any]:
        if not job_ids:
            raise ValidationFailed("No jobs provided")

        profile = self.repo.profile_facts(ctx.user_id)
        if profile is None:
            raise NotFound("Individual information not found for this user.")
        skills = self.repo.skills_facts(ctx.user_id)
        if skills is None:
            raise NotFound("User technical information not found.")

        gate = self.gate_for("cover_letter")
        results: list[dict[str, Any]] = []

        for job_id in job_ids:
            try:
                job = self.repo.job_facts(job_id)
            except SQLAlchemyError:
                self.session.rollback()
                logger.exception("Job lookup failed trace=%s job=%s", ctx.trace_id, job_id)
                continue
            if job is None:
                logger.warning("Skipping unknown job trace=%s job=%s", ctx.trace_id, job_id)
                continue

            plan = FeaturePlan(
                feature="cover_letter",
                job_id=job.id,
                gate=gate,
                build_prompt=lambda job=job: build_cover_letter_prompt(profile, skills, job),
                persist=lambda request, result, response: self.repo.upsert_cover_letter(
                    user_id=ctx.user_id,
                    job_id=request.job_id,
                    request_id=request.id,
                    cover_letter=result.content,
                ),
            )
            try:
                outcome = self._run(ctx, plan)
            except (QuotaExceeded, GateMisconfigured):
                if not results:
                    raise
                logger.info(
                    "Stopping cover letter batch at job=%s trace=%s after %s letters",
                    job_id,
                    ctx.trace_id,
                    len(results),
                )
                break
            except (UpstreamFailure, PersistenceFailure) as exc:
                logger.warning(
                    "Skipping job=%s trace=%s: %s", job_id, ctx.trace_id, exc.message
                )
                continue

            results.append(serialize_cover_letter(outcome.artifact))

        return {"success": True, "data": results}

    def _run(self, ctx: RequestContext, plan: FeaturePlan) -> GenerationOutcome:
        plan.gate.check(ctx, plan.feature)

        prompt = plan.build_prompt()
        model = self.client.model_for(plan.feature)
        prompt_tokens = self.counter.count(prompt)

        try:
            request = self.repo.create_generation_request(
                feature=plan.feature,
                user_id=ctx.user_id,
                job_id=plan.job_id,
                prompt=prompt,
                token_size=prompt_tokens.tokens,
                model=model,
                **plan.request_fields,
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Failed to store generation request trace=%s", ctx.trace_id)
            raise PersistenceFailure("Failed to store generation request.") from exc

        logger.info(
            "Generating trace=%s user=%s feature=%s request=%s model=%s",
            ctx.trace_id,
            ctx.user_id,
            plan.feature,
            request.id,
            model,
        )
        started = time.perf_counter()
        response = self.client.generate(plan.feature, prompt)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        output_tokens = response.output_tokens
        if output_tokens is None:
            output_tokens = self.counter.count(response.content).tokens

        try:
            result = self.repo.create_generation_result(
                request_id=request.id,
                content=response.content,
                output_tokens=output_tokens,
            )
            artifact = plan.persist(request, result, response)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Failed to store generated output trace=%s request=%s", ctx.trace_id, request.id)
            raise PersistenceFailure("Failed to store generated output.") from exc

        self.usage.record(
            ctx,
            feature=plan.feature,
            request_id=request.id,
            model=model,
            prompt=prompt,
            response=response,
            elapsed_ms=elapsed_ms,
        )
        return GenerationOutcome(request=request, result=result, response=response, artifact=artifact)
