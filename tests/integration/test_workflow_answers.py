from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from placementcracker.config import Settings
from placementcracker.core.workflow import GenerationWorkflow
from placementcracker.db.models import GenerationRequest, GenerationResult, UsageLog
from placementcracker.db.repositories import Repository
from placementcracker.errors import NotFound, PersistenceFailure, QuotaExceeded, UpstreamFailure, ValidationFailed
from placementcracker.types import RequestContext


def _workflow(db, client_for, provider, **overrides) -> GenerationWorkflow:
    settings = Settings(**overrides)
    return GenerationWorkflow(db, settings=settings, client=client_for(provider, settings))


def _count(db, model) -> int:
    return db.scalar(select(func.count()).select_from(model))


@pytest.fixture
def ctx(world) -> RequestContext:
    return RequestContext(user_id=world.user.id, trace_id="trace-answers")


@pytest.fixture
def chat(db, world):
    return Repository(db).get_or_create_session(world.user.id, world.jobs[0].id)


def test_answer_is_generated_and_logged(db, world, ctx, chat, provider_factory, client_for) -> None:
    provider = provider_factory("  I would love to join.  ")
    workflow = _workflow(db, client_for, provider)

    data = workflow.generate_answer(ctx, session_id=chat.id, question="Why us?", word_limit=200)

    assert data["success"] is True
    assert data["answer"] == "I would love to join."
    assert data["session_id"] == chat.id

    request = db.get(GenerationRequest, data["input_id"])
    assert request.feature == "answer"
    assert request.question == "Why us?"
    assert request.word_limit == 200
    assert request.prompt == provider.calls[0]["prompt"]
    assert "Babbage & Co" in request.prompt
    assert "Please keep the answer under 200 words." in request.prompt
    assert db.get(GenerationResult, request.id).content == "I would love to join."

    logs = Repository(db).list_usage_logs(world.user.id)
    assert len(logs) == 1
    assert logs[0].request_id == request.id
    assert logs[0].token_method == "chars"
    assert logs[0].input_tokens > 0


def test_answers_are_appended_not_replaced(db, ctx, chat, provider_factory, client_for) -> None:
    replies = iter(["First answer", "Second answer"])
    workflow = _workflow(db, client_for, provider_factory(lambda prompt: next(replies)))

    first = workflow.generate_answer(ctx, session_id=chat.id, question="Why us?")
    second = workflow.generate_answer(ctx, session_id=chat.id, question="Why us?")

    assert first["input_id"] != second["input_id"]
    assert _count(db, GenerationRequest) == 2
    assert _count(db, GenerationResult) == 2
    history = Repository(db).list_session_history(chat.id)
    assert [result.content for _, result in history] == ["First answer", "Second answer"]


def test_regenerate_links_to_the_previous_question(db, ctx, chat, provider_factory, client_for) -> None:
    provider = provider_factory("An answer")
    workflow = _workflow(db, client_for, provider)
    first = workflow.generate_answer(ctx, session_id=chat.id, question="Why us?", word_limit=150)

    again = workflow.regenerate_answer(ctx, input_id=first["input_id"], comment="More concise")

    request = db.get(GenerationRequest, again["input_id"])
    assert request.parent_request_id == first["input_id"]
    assert request.question == "Why us?"
    assert request.comment == "More concise"
    assert request.word_limit == 150
    assert "User has requested this adjustment: More concise" in provider.calls[1]["prompt"]


def test_quota_exceeded_skips_generation_and_logs(db, world, ctx, chat, provider_factory, client_for) -> None:
    Repository(db).grant_credits(world.user.id, "answer", -10)
    provider = provider_factory("never")
    workflow = _workflow(db, client_for, provider, answer_limit_policy="balance")

    with pytest.raises(QuotaExceeded):
        workflow.generate_answer(ctx, session_id=chat.id, question="Why us?")

    assert provider.calls == []
    assert _count(db, GenerationRequest) == 0
    assert _count(db, UsageLog) == 0


def test_daily_limit_counts_earlier_requests(db, ctx, chat, provider_factory, client_for) -> None:
    provider = provider_factory("ok")
    workflow = _workflow(db, client_for, provider, answer_daily_limit=1)

    workflow.generate_answer(ctx, session_id=chat.id, question="Why us?")
    with pytest.raises(QuotaExceeded):
        workflow.generate_answer(ctx, session_id=chat.id, question="Why now?")

    assert len(provider.calls) == 1


def test_foreign_session_is_not_found(db, ctx, seed, provider_factory, client_for) -> None:
    other = seed(email="other@example.com", job_count=1)
    foreign = Repository(db).get_or_create_session(other.user.id, other.jobs[0].id)
    provider = provider_factory("never")

    with pytest.raises(NotFound):
        _workflow(db, client_for, provider).generate_answer(ctx, session_id=foreign.id, question="Why?")
    assert provider.calls == []


@pytest.mark.parametrize(("question", "word_limit"), [("   ", None), ("Why?", 0)])
def test_invalid_input_is_rejected(db, ctx, chat, provider_factory, client_for, question, word_limit) -> None:
    with pytest.raises(ValidationFailed):
        _workflow(db, client_for, provider_factory()).generate_answer(
            ctx, session_id=chat.id, question=question, word_limit=word_limit
        )


def test_missing_skills_profile_is_not_found(db, provider_factory, client_for) -> None:
    repo = Repository(db)
    user = repo.create_user("bare@example.com")
    company = repo.get_or_create_company("Acme")
    job = repo.create_job(company_id=company.id, title="Intern")
    chat = repo.get_or_create_session(user.id, job.id)
    ctx = RequestContext(user_id=user.id, trace_id="trace-bare")

    with pytest.raises(NotFound):
        _workflow(db, client_for, provider_factory()).generate_answer(ctx, session_id=chat.id, question="Why?")


def test_usage_log_failure_does_not_block_the_answer(
    db, world, ctx, chat, provider_factory, client_for, monkeypatch
) -> None:
    def broken_usage_log(self, **kwargs):
        raise SQLAlchemyError("usage table locked")

    monkeypatch.setattr(Repository, "create_usage_log", broken_usage_log)
    workflow = _workflow(db, client_for, provider_factory("Still answered"))

    data = workflow.generate_answer(ctx, session_id=chat.id, question="Why us?")

    assert data["answer"] == "Still answered"
    assert db.get(GenerationResult, data["input_id"]).content == "Still answered"
    assert _count(db, UsageLog) == 0


def test_request_log_failure_aborts_before_generation(
    db, ctx, chat, provider_factory, client_for, monkeypatch
) -> None:
    def broken_request_log(self, **kwargs):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(Repository, "create_generation_request", broken_request_log)
    provider = provider_factory("never")

    with pytest.raises(PersistenceFailure):
        _workflow(db, client_for, provider).generate_answer(ctx, session_id=chat.id, question="Why us?")
    assert provider.calls == []


def test_provider_failure_keeps_request_but_no_result(
    db, world, ctx, chat, provider_factory, client_for
) -> None:
    provider = provider_factory(error=UpstreamFailure("down", kind="network"))
    workflow = _workflow(db, client_for, provider, answer_limit_policy="balance")

    with pytest.raises(UpstreamFailure):
        workflow.generate_answer(ctx, session_id=chat.id, question="Why us?")

    db.expire_all()
    assert _count(db, GenerationRequest) == 1
    assert _count(db, GenerationResult) == 0
    assert Repository(db).get_usage_counter(world.user.id).answer_credits == 1
